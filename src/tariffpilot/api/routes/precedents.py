"""Precedent consensus, relevance and validation endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ...boundary import cases_from_list
from ...engine import analyze_consensus, rank_by_relevance, validate_against_precedents
from ...tables import ClassificationTables
from ..dependencies import get_tables
from ..schemas import CasesRequest, RelevanceRequest

router = APIRouter(prefix="/precedents", tags=["Precedents"])


@router.post("/consensus")
async def consensus(
    request: CasesRequest,
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    """Majority agreement among the cases, relative to the target code."""
    cases = cases_from_list(request.cases)
    return analyze_consensus(cases, request.target_code, tables).to_dict()


@router.post("/relevance")
async def relevance(
    request: RelevanceRequest,
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    """Cases ranked by relevance to the target code, highest first."""
    cases = cases_from_list(request.cases)
    ranked = rank_by_relevance(
        cases, request.target_code, request.product_keywords, tables, request.as_of
    )
    return {
        "target_code": request.target_code,
        "ranked": [
            {"case": case.to_dict(), "relevance": score.to_dict()}
            for case, score in ranked
        ],
    }


@router.post("/validate")
async def validate(
    request: CasesRequest,
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    cases = cases_from_list(request.cases)
    return validate_against_precedents(request.target_code, cases, tables).to_dict()
