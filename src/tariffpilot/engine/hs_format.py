"""
HS code format checks.

National tariff schedules extend the 6-digit HS subheading with their own
digits (EU 8, US/UK/IL/CN 10) and dot layouts. The layouts live in the
tables pack; a code is checked and, where possible, corrected to the
destination country's layout.
"""
from __future__ import annotations

import re
from typing import Optional

from ..models import HsFormatCheck
from ..tables import ClassificationTables


MIN_DIGITS = 4

_DIGITS = re.compile(r"[0-9]+")


def format_hs_code(
    code: str,
    country: Optional[str],
    tables: ClassificationTables,
) -> str:
    """
    Lay out the digits of `code` in the country's dot groups.

    Only whole groups are emitted, so digits past the last complete group
    are dropped. Codes too short to fill two groups are returned undotted.
    """
    digits = code.replace(".", "")
    parts = []
    position = 0
    for size in tables.hs_format(country).groups:
        if position + size > len(digits):
            break
        parts.append(digits[position:position + size])
        position += size
    if len(parts) < 2:
        return digits
    return ".".join(parts)


def validate_hs_format(
    hs_code: str,
    country: Optional[str],
    tables: ClassificationTables,
) -> HsFormatCheck:
    """Check `hs_code` against the national format of `country`."""
    hs_format = tables.hs_format(country)
    label = country or "DEFAULT"
    digits = hs_code.replace(".", "")

    if not _DIGITS.fullmatch(digits):
        return HsFormatCheck(
            valid=False,
            received=hs_code,
            error="HS code must contain only digits",
        )
    if len(digits) < MIN_DIGITS:
        return HsFormatCheck(
            valid=False,
            received=hs_code,
            error=f"HS code must have at least {MIN_DIGITS} digits (heading)",
        )

    if len(digits) < hs_format.digits:
        return HsFormatCheck(
            valid=False,
            received=hs_code,
            error=(
                f"HS code for {label} requires {hs_format.digits} digits, "
                f"got {len(digits)}"
            ),
            suggestion=(
                f"Add national subheading digits. Expected format: {hs_format.example}"
            ),
        )

    if len(digits) > hs_format.digits:
        corrected = format_hs_code(digits[:hs_format.digits], country, tables)
        return HsFormatCheck(
            valid=True,
            received=hs_code,
            code=corrected,
            corrected=corrected,
            truncated=True,
            warning=(
                f"HS code has {len(digits)} digits, {label} uses "
                f"{hs_format.digits}. Truncated."
            ),
        )

    if not re.fullmatch(hs_format.pattern, hs_code):
        corrected = format_hs_code(digits, country, tables)
        return HsFormatCheck(
            valid=True,
            received=hs_code,
            code=corrected,
            corrected=corrected,
            warning="HS code format corrected",
        )

    return HsFormatCheck(valid=True, received=hs_code, code=hs_code)
