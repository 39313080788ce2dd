"""Request schemas for the API."""
from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, Field


class CasesRequest(BaseModel):
    """Precedent cases checked against a proposed code."""
    target_code: str = Field(..., description="Proposed HS code, e.g. '8471.30'")
    cases: list[Any] = Field(default_factory=list, description="Raw precedent case objects")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "target_code": "8471.30",
                    "cases": [
                        {"reference": "DE-BTI-123456", "classification_code": "8471.30",
                         "country_code": "DE", "date": "2023-05-01"},
                        {"bti_number": "FR123456-2023", "hs_code": "8471.41"},
                    ],
                }
            ]
        }
    }


class RelevanceRequest(CasesRequest):
    product_keywords: str = Field("", description="Free-text product keywords")
    as_of: Optional[dt.date] = Field(None, description="Reference date for recency (today if unset)")


class LegalParseRequest(BaseModel):
    text: str = Field(..., description="Explanatory-note text")
    heading: Optional[str] = Field(None, description="Heading the text belongs to, e.g. '8471'")


class LegalMatchRequest(LegalParseRequest):
    """
    Product profile checked against one explanatory-note text. When `code`
    is given, the response also validates that code against the text.
    """
    product_profile: dict[str, Any] = Field(..., description="Raw product profile object")
    code: Optional[str] = Field(None, description="Proposed HS code to validate")


class ProductValidateRequest(BaseModel):
    """
    An analyst's product profile, and optionally the GIR 3(b)
    essential-character analysis that came with it.
    """
    product_profile: dict[str, Any] = Field(..., description="Raw product profile object")
    essential_character_analysis: Optional[dict[str, Any]] = Field(
        None, description="Raw essential-character analysis object"
    )


class HsFormatRequest(BaseModel):
    code: str = Field(..., description="HS code as proposed, e.g. '847130001'")
    country: Optional[str] = Field(None, description="Destination country, e.g. 'IL'")
