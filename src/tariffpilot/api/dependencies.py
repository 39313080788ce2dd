"""Shared request dependencies."""
from __future__ import annotations

from typing import Any

from fastapi import Body, Depends, Request

from ..boundary import state_from_dict
from ..models import ConversationState
from ..tables import ClassificationTables


def get_tables(request: Request) -> ClassificationTables:
    """Tables pack loaded at startup."""
    return request.app.state.tables


def get_state(
    snapshot: dict[str, Any] = Body(..., description="Raw conversation state snapshot"),
    tables: ClassificationTables = Depends(get_tables),
) -> ConversationState:
    """Request body adapted into a ConversationState; StateValidationError maps to 422."""
    return state_from_dict(snapshot, tables)
