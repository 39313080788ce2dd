"""
TariffPilot Exception Hierarchy

Exceptions raised at the edges of the system: loading lookup tables,
adapting raw conversation snapshots, and mutating state between rounds.

The decision core itself never raises for domain conditions. Missing or
malformed sub-documents are "not yet provided", and unresolvable situations
surface as an ESCALATE decision.

Exception codes follow the pattern: TP_<CATEGORY>_<SPECIFIC>
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class TariffPilotError(Exception):
    """
    Base exception for all TariffPilot errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (TP_*)
        details: Additional context about the error
        report_id: Associated classification report if applicable
    """
    message: str
    code: str = "TP_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)
    report_id: Optional[str] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.code}] {self.message}"]
        if self.report_id:
            parts.append(f"(report: {self.report_id})")
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/API responses."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.report_id:
            result["report_id"] = self.report_id
        return result


# =============================================================================
# Lookup Table Errors
# =============================================================================

@dataclass
class TablesLoadError(TariffPilotError):
    """Failed to read a lookup-table pack from file."""
    code: str = "TP_TABLES_LOAD_ERROR"


@dataclass
class TablesValidationError(TariffPilotError):
    """Lookup-table pack failed schema validation."""
    code: str = "TP_TABLES_VALIDATION_ERROR"


@dataclass
class TablesVersionMismatch(TariffPilotError):
    """Lookup-table pack schema version is not supported."""
    code: str = "TP_TABLES_VERSION_MISMATCH"


# =============================================================================
# Conversation State Errors
# =============================================================================

@dataclass
class StateValidationError(TariffPilotError):
    """Raw conversation snapshot cannot be adapted into a ConversationState."""
    code: str = "TP_STATE_VALIDATION_ERROR"


@dataclass
class AppendOnlyViolationError(TariffPilotError):
    """A populated current_state field was cleared."""
    code: str = "TP_APPEND_ONLY_VIOLATION"


@dataclass
class TerminalStateError(TariffPilotError):
    """Conversation is already completed, failed or escalated."""
    code: str = "TP_TERMINAL_STATE"
