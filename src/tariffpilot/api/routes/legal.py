"""Explanatory-note parsing and matching endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ...boundary import profile_from_dict
from ...engine import check_legal_match, parse_legal_text, validate_against_legal_text
from ...exceptions import StateValidationError
from ...tables import ClassificationTables
from ..dependencies import get_tables
from ..schemas import LegalMatchRequest, LegalParseRequest

router = APIRouter(prefix="/legal", tags=["Legal"])


@router.post("/parse")
async def parse(
    request: LegalParseRequest,
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    """Inclusion, exclusion, condition and guidance statements plus rule relevance."""
    return parse_legal_text(request.text, request.heading, tables).to_dict()


@router.post("/match")
async def match(
    request: LegalMatchRequest,
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    """
    Cross-check a product profile against the text. With a proposed code,
    also validate that code against the text's heading.
    """
    profile = profile_from_dict(request.product_profile)
    if profile is None:
        raise StateValidationError(message="product_profile is malformed")

    parsed = parse_legal_text(request.text, request.heading, tables)
    result: dict[str, Any] = {"match": check_legal_match(profile, parsed, tables).to_dict()}
    if request.code:
        validation = validate_against_legal_text(request.code, profile, [parsed], tables)
        result["validation"] = validation.to_dict()
    return result
