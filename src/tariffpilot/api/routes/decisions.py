"""Next-action and termination endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from ...engine import DecisionEngine
from ...models import ConversationState
from ...tables import ClassificationTables
from ..dependencies import get_state, get_tables

router = APIRouter(tags=["Decisions"])


@router.post("/decide")
async def decide(
    state: ConversationState = Depends(get_state),
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    """
    Decide the single next action for a conversation snapshot.

    The response carries the decision and its fingerprint, which is
    identical for identical snapshots and tables.
    """
    decision = DecisionEngine(tables).decide(state)
    return {
        "report_id": state.report_id,
        "decision": decision.to_dict(),
        "fingerprint": decision.fingerprint(),
        "tables_hash": tables.content_hash,
    }


@router.post("/terminate")
async def terminate(
    state: ConversationState = Depends(get_state),
    tables: ClassificationTables = Depends(get_tables),
) -> dict[str, Any]:
    """Whether the runner should stop, and with which status."""
    return DecisionEngine(tables).should_terminate(state).to_dict()
