"""
TariffPilot Product Readiness Models
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class MissingProductData:
    """Missing profile fields, split by whether they block progress."""
    critical: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProfileFinding:
    code: str
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class ProfileValidation:
    """
    Completeness/consistency check of an analyst's product profile.

    Errors make the profile unusable (the analyst should retry); warnings
    are inconsistencies worth surfacing.
    """
    errors: tuple[ProfileFinding, ...] = ()
    warnings: tuple[ProfileFinding, ...] = ()
    calculated_readiness: int = 0

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def needs_retry(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "calculated_readiness": self.calculated_readiness,
            "needs_retry": self.needs_retry,
        }


# =============================================================================
# Essential Character Analysis
# =============================================================================

@dataclass(frozen=True)
class EssentialCharacterComponent:
    """One component weighed in a GIR 3(b) essential-character analysis."""
    name: Optional[str] = None
    bulk_percent: Optional[float] = None
    value_percent: Optional[float] = None
    functional_role: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "bulk_percent": self.bulk_percent,
            "value_percent": self.value_percent,
            "functional_role": self.functional_role,
        }


@dataclass(frozen=True)
class EssentialCharacterAnalysis:
    components: tuple[EssentialCharacterComponent, ...] = ()
    essential_component: Optional[str] = None
    justification: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "components": [c.to_dict() for c in self.components],
            "essential_component": self.essential_component,
            "justification": self.justification,
        }


@dataclass(frozen=True)
class EssentialCharacterCheck:
    errors: tuple[str, ...] = ()
    total_bulk: float = 0
    total_value: float = 0

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "totals": {"bulk": self.total_bulk, "value": self.total_value},
        }


# =============================================================================
# HS Code Format
# =============================================================================

@dataclass(frozen=True)
class HsFormatCheck:
    """
    An HS code checked against a destination country's national format.

    Attributes:
        valid: False only when the code cannot be used (non-digits, fewer
            than 4 digits, or fewer digits than the country requires)
        received: The code as given
        code: The usable code: as given, or corrected
        corrected: Reformatted or truncated code, when a correction was made
        truncated: Extra national digits were cut off
        error: Why the code is unusable
        warning: What was corrected
        suggestion: How to fix an unusable code
    """
    valid: bool
    received: str
    code: Optional[str] = None
    corrected: Optional[str] = None
    truncated: bool = False
    error: Optional[str] = None
    warning: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "valid": self.valid,
            "received": self.received,
            "code": self.code,
            "truncated": self.truncated,
        }
        for key in ("corrected", "error", "warning", "suggestion"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result
