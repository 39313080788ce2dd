"""
Canonical JSON Serialization

Deterministic JSON serialization for hashing and comparison:
- Sorted keys (lexicographic)
- No whitespace
- Consistent formatting of dates, enums, sets and dataclasses
- UTF-8 encoding

The same object always produces the same JSON string, which is what makes
decision fingerprints and table-pack hashes stable across rounds and runs.
"""
from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


def _default_serializer(obj: Any) -> Any:
    """
    Custom JSON serializer for non-standard types.

    Handles:
    - datetime/date: ISO 8601 format, aware datetimes in UTC with "Z"
    - Enum: value
    - dataclass: dict
    - read-only mappings: dict
    - set/frozenset: sorted list
    """
    if isinstance(obj, datetime):
        if obj.tzinfo is not None:
            return obj.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
        return obj.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3]
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json(obj: Any) -> str:
    """
    Serialize object to canonical JSON string.

    Example:
        >>> canonical_json({"b": 1, "a": 2})
        '{"a":2,"b":1}'
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        default=_default_serializer,
        ensure_ascii=False,
    )


def content_hash(obj: Any) -> str:
    """Compute SHA-256 hex digest of the canonical JSON representation."""
    return hashlib.sha256(canonical_json(obj).encode("utf-8")).hexdigest()


def content_hash_short(obj: Any, length: int = 12) -> str:
    """Truncated content hash for log lines and display."""
    return content_hash(obj)[:length]
