"""
TariffPilot Decision Models

The single instruction the decision engine emits per round, and the
termination verdict.

A Decision names WHAT to do next and WHO should do it. The runner executes
it, writes the results back into current_state and calls the engine again.
The `specific_request` payload is opaque to the engine beyond building it;
its keys are stable identifiers that collaborators depend on.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..canon import content_hash
from .enums import Action, Agent, ConversationStatus, Stage


@dataclass(frozen=True)
class Decision:
    """
    One next action.

    Attributes:
        action: What to do
        reason: Human-readable justification (always non-empty)
        stage: Workflow stage the action belongs to
        agent: Collaborator to invoke, if any
        specific_request: Action-specific payload for the collaborator
        questions: Questions for the user (REQUEST_USER_INPUT)
        confidence_note: Caveat attached to a moderate-confidence FINALIZE
        self_healing: True when the runner must count this against the
            self-healing attempt cap
    """
    action: Action
    reason: str
    stage: Stage
    agent: Optional[Agent] = None
    specific_request: Optional[dict[str, Any]] = None
    questions: tuple[str, ...] = ()
    confidence_note: Optional[str] = None
    self_healing: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.action in (Action.FINALIZE, Action.ESCALATE)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary, omitting absent optional fields."""
        result: dict[str, Any] = {
            "action": self.action.value,
            "reason": self.reason,
            "stage": self.stage.value,
        }
        if self.agent is not None:
            result["agent"] = self.agent.value
        if self.specific_request is not None:
            result["specific_request"] = self.specific_request
        if self.questions:
            result["questions"] = list(self.questions)
        if self.confidence_note is not None:
            result["confidence_note"] = self.confidence_note
        if self.self_healing:
            result["self_healing"] = True
        return result

    def fingerprint(self) -> str:
        """SHA-256 of the canonical decision; identical states give identical fingerprints."""
        return content_hash(self.to_dict())


@dataclass(frozen=True)
class TerminationResult:
    """Whether the runner should stop, and with which status."""
    should_stop: bool
    reason: Optional[str] = None
    status: Optional[ConversationStatus] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"should_stop": self.should_stop}
        if self.reason is not None:
            result["reason"] = self.reason
        if self.status is not None:
            result["status"] = self.status.value
        return result
