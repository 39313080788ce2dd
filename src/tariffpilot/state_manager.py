"""
TariffPilot Conversation State Manager

Pure functions that return a NEW ConversationState for each runner-applied
change. Snapshots are never mutated in place.

Invariants enforced here:
- current_state is append-only per field: a populated sub-document may be
  replaced by a newer one but never cleared
- terminal statuses (completed, failed, escalated) are final
"""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from .exceptions import AppendOnlyViolationError, StateValidationError, TerminalStateError
from .models import (
    CURRENT_STATE_FIELDS,
    ConversationState,
    ConversationStatus,
    Decision,
    RoundRecord,
)


logger = logging.getLogger(__name__)

RECENT_ROUNDS_IN_SUMMARY = 5


def create_initial_state(report_id: str, max_rounds: int = 10) -> ConversationState:
    """Fresh conversation: round 0, no sub-documents, status initializing."""
    return ConversationState(report_id=report_id, max_rounds=max_rounds)


def append_round(
    state: ConversationState,
    agent: Optional[str],
    action: Optional[str],
    input: Optional[dict[str, Any]] = None,
    output: Optional[dict[str, Any]] = None,
    confidence_after: Optional[int] = None,
    duration_ms: int = 0,
    timestamp: Optional[datetime] = None,
) -> ConversationState:
    """Record an executed round and advance current_round by one."""
    confidence = state.overall_confidence if confidence_after is None else confidence_after
    record = RoundRecord(
        round=state.current_round + 1,
        agent=agent,
        action=action,
        input=dict(input or {}),
        output=dict(output or {}),
        confidence_after=confidence,
        duration_ms=duration_ms,
        timestamp=timestamp or datetime.now(timezone.utc),
    )
    return dataclasses.replace(
        state,
        current_round=state.current_round + 1,
        rounds=(*state.rounds, record),
        confidence_trajectory=(*state.confidence_trajectory, confidence),
    )


def _is_set(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (tuple, list)):
        return len(value) > 0
    return True


def update_current_state(state: ConversationState, **updates: Any) -> ConversationState:
    """
    Replace current_state fields.

    Raises:
        StateValidationError: If a key is not a current_state field
        AppendOnlyViolationError: If a populated field would be cleared
    """
    unknown = sorted(set(updates) - set(CURRENT_STATE_FIELDS))
    if unknown:
        raise StateValidationError(
            message=f"Unknown current_state fields: {', '.join(unknown)}",
            details={"fields": unknown},
            report_id=state.report_id,
        )

    current = state.current_state
    for name, value in updates.items():
        if name == "product_readiness":
            continue
        if _is_set(getattr(current, name)) and not _is_set(value):
            raise AppendOnlyViolationError(
                message=f"Cannot clear current_state.{name} once set",
                details={"field": name},
                report_id=state.report_id,
            )

    if "candidate_headings" in updates:
        updates["candidate_headings"] = tuple(updates["candidate_headings"] or ())

    return dataclasses.replace(
        state,
        current_state=dataclasses.replace(current, **updates),
    )


def update_status(
    state: ConversationState,
    status: ConversationStatus,
    reason: Optional[str] = None,
) -> ConversationState:
    """
    Move to a new status. Re-asserting the current terminal status is
    allowed; leaving it is not.

    Raises:
        TerminalStateError: If the conversation is already terminal
    """
    if state.status.is_terminal and status != state.status:
        raise TerminalStateError(
            message=(
                f"Conversation is {state.status.value}; cannot move to {status.value}"
            ),
            details={"current": state.status.value, "requested": status.value},
            report_id=state.report_id,
        )
    if status.is_terminal and not state.status.is_terminal:
        logger.info(
            "Conversation %s -> %s: %s", state.report_id, status.value, reason,
            extra={"report_id": state.report_id, "round": state.current_round},
        )
    return dataclasses.replace(
        state,
        status=status,
        termination_reason=reason or state.termination_reason,
    )


def set_pending_action(state: ConversationState, decision: Optional[Decision]) -> ConversationState:
    return dataclasses.replace(
        state,
        pending_action=decision.to_dict() if decision is not None else None,
    )


def increment_self_healing(state: ConversationState) -> ConversationState:
    return dataclasses.replace(state, self_healing_attempts=state.self_healing_attempts + 1)


def update_confidence(state: ConversationState, confidence: float) -> ConversationState:
    return dataclasses.replace(state, overall_confidence=confidence)


def generate_escalation_summary(state: ConversationState) -> dict[str, Any]:
    """
    Hand-off summary for human review: where the conversation stands, the
    last five rounds and recommendations derived from why it stopped.
    """
    current = state.current_state
    validation = current.validation_result
    precedents = current.precedents

    recommendations = []
    if state.self_healing_attempts >= 3:
        recommendations.append(
            "Self-healing exhausted - manual review of classification logic needed"
        )
    if state.current_round >= state.max_rounds:
        recommendations.append(
            "Maximum rounds reached - consider simplifying product description "
            "or providing more details"
        )
    if precedents is not None and precedents.has_conflicts:
        recommendations.append(
            "Conflicting precedents found - legal expert review recommended"
        )

    return {
        "report_id": state.report_id,
        "total_rounds": state.current_round,
        "final_confidence": state.overall_confidence,
        "termination_reason": state.termination_reason,
        "current_classification": (
            current.gir_decision.hs_code
            if current.gir_decision and current.gir_decision.hs_code
            else "Not determined"
        ),
        "product": (
            current.product_profile.standardized_name
            if current.product_profile and current.product_profile.standardized_name
            else "Unknown"
        ),
        "issues": [i.to_dict() for i in validation.issues] if validation else [],
        "recent_actions": [
            {
                "round": r.round,
                "agent": r.agent,
                "action": r.action,
                "confidence": r.confidence_after,
            }
            for r in state.rounds[-RECENT_ROUNDS_IN_SUMMARY:]
        ],
        "recommendations": recommendations,
    }


def escalate(state: ConversationState, reason: str) -> ConversationState:
    """Move to ESCALATED and attach the escalation summary."""
    escalated = update_status(state, ConversationStatus.ESCALATED, reason)
    return dataclasses.replace(
        escalated,
        escalation_summary=generate_escalation_summary(escalated),
    )
