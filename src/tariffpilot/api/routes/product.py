"""Product profile and HS code format endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ...boundary import essential_character_analysis_from_dict, profile_from_dict
from ...engine import (
    build_analyze_feedback,
    validate_essential_character_analysis,
    validate_hs_format,
    validate_product_profile,
)
from ...exceptions import StateValidationError
from ...tables import ClassificationTables
from ..dependencies import get_tables
from ..schemas import HsFormatRequest, ProductValidateRequest

router = APIRouter(prefix="/product", tags=["Product"])


@router.post("/validate")
async def validate(
    request: ProductValidateRequest,
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    """
    Completeness and consistency of a product profile, with retry feedback
    for the analyst when it has errors. An essential-character analysis,
    when sent, is checked as well.
    """
    profile = profile_from_dict(request.product_profile)
    if profile is None:
        raise StateValidationError(message="product_profile is malformed")

    validation = validate_product_profile(profile)
    result: dict[str, Any] = {
        "validation": validation.to_dict(),
        "feedback": build_analyze_feedback(validation.errors, tables),
    }
    if request.essential_character_analysis is not None:
        analysis = essential_character_analysis_from_dict(request.essential_character_analysis)
        result["essential_character"] = validate_essential_character_analysis(analysis).to_dict()
    return result


@router.post("/hs-format")
async def hs_format(
    request: HsFormatRequest,
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    """Check an HS code against the destination country's national format."""
    return validate_hs_format(request.code, request.country, tables).to_dict()
