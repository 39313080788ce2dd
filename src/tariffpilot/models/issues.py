"""
TariffPilot Validation Issues

Issues reported by the quality validator, modelled as a closed set of
variants. The decision engine dispatches on the variant to choose a
self-healing remediation; anything it does not recognise arrives as
UnrecognizedIssue and takes the generic remediation branch.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union

from .enums import IssueSeverity, IssueType
from .precedent import PrecedentCase


@dataclass(frozen=True)
class _IssueBase:
    description: str = ""
    severity: IssueSeverity = IssueSeverity.MEDIUM


@dataclass(frozen=True)
class GirHierarchyViolation(_IssueBase):
    """Rules were applied out of hierarchical order."""
    issue_type: ClassVar[IssueType] = IssueType.GIR_HIERARCHY_VIOLATION

    missing_state: Optional[str] = None

    @property
    def type(self) -> str:
        return self.issue_type.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "description": self.description,
            "missing_state": self.missing_state,
        }


@dataclass(frozen=True)
class EssentialCharacterIncomplete(_IssueBase):
    """Essential-character analysis lacks a material/value breakdown."""
    issue_type: ClassVar[IssueType] = IssueType.ESSENTIAL_CHARACTER_INCOMPLETE

    @property
    def type(self) -> str:
        return self.issue_type.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class EnContradiction(_IssueBase):
    """The proposed heading contradicts an explanatory note."""
    issue_type: ClassVar[IssueType] = IssueType.EN_CONTRADICTION

    conflicting_heading: Optional[str] = None
    note_text: Optional[str] = None

    @property
    def type(self) -> str:
        return self.issue_type.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "description": self.description,
            "conflicting_heading": self.conflicting_heading,
            "note_text": self.note_text,
        }


@dataclass(frozen=True)
class PrecedentConflict(_IssueBase):
    """The proposed code disagrees with a prior ruling."""
    issue_type: ClassVar[IssueType] = IssueType.PRECEDENT_CONFLICT

    bti_case: Optional[PrecedentCase] = None

    @property
    def type(self) -> str:
        return self.issue_type.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "description": self.description,
            "bti_case": self.bti_case.to_dict() if self.bti_case else None,
        }


@dataclass(frozen=True)
class ConfidenceBelowThreshold(_IssueBase):
    issue_type: ClassVar[IssueType] = IssueType.CONFIDENCE_BELOW_THRESHOLD

    @property
    def type(self) -> str:
        return self.issue_type.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class UnrecognizedIssue(_IssueBase):
    """
    Catch-all for issue tags outside the known set.

    Attributes:
        raw_type: The tag as reported (e.g. "en_condition")
        details: Any remaining fields of the reported issue
    """
    raw_type: str = "unknown"
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> str:
        return self.raw_type

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.type,
            "severity": self.severity.value,
            "description": self.description,
        }
        if self.details:
            result["details"] = self.details
        return result


ValidationIssue = Union[
    GirHierarchyViolation,
    EssentialCharacterIncomplete,
    EnContradiction,
    PrecedentConflict,
    ConfidenceBelowThreshold,
    UnrecognizedIssue,
]


KNOWN_ISSUE_CLASSES: dict[IssueType, type] = {
    IssueType.GIR_HIERARCHY_VIOLATION: GirHierarchyViolation,
    IssueType.ESSENTIAL_CHARACTER_INCOMPLETE: EssentialCharacterIncomplete,
    IssueType.EN_CONTRADICTION: EnContradiction,
    IssueType.PRECEDENT_CONFLICT: PrecedentConflict,
    IssueType.CONFIDENCE_BELOW_THRESHOLD: ConfidenceBelowThreshold,
}
