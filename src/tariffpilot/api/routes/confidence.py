"""Confidence scoring endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ...engine import ConfidenceCalculator
from ...models import ConversationState
from ...tables import ClassificationTables
from ..dependencies import get_state, get_tables

router = APIRouter(prefix="/confidence", tags=["Confidence"])


@router.post("")
async def score_confidence(
    state: ConversationState = Depends(get_state),
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    """Overall confidence with sub-score breakdown and penalties."""
    return ConfidenceCalculator(tables).score(state).to_dict()


@router.post("/factors")
async def confidence_factors(
    state: ConversationState = Depends(get_state),
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    return ConfidenceCalculator(tables).analyze_factors(state).to_dict()
