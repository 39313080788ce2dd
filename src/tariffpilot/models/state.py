"""
TariffPilot Conversation State Models

The immutable snapshot the decision engine reads once per round.

Key components:
- ConversationState: Aggregate root (round counters, status, current_state)
- CurrentState: Progressively populated sub-documents, append-only per field
- ProductProfile, LegalResearch, Precedents, ClassificationDecision,
  ValidationResult, RegulatoryStatus: the sub-documents themselves
- RoundRecord: One entry of the round history

A sub-document that is None (or an empty collection) means "not yet
provided"; the engine treats it as an unsatisfied stage, never as an error.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .enums import ConversationStatus
from .issues import ValidationIssue
from .precedent import ConsensusResult, PrecedentCase


# =============================================================================
# Product
# =============================================================================

@dataclass(frozen=True)
class Component:
    """A material or component of the product, with optional shares."""
    name: Optional[str] = None
    material: Optional[str] = None
    weight_percent: Optional[float] = None
    value_percent: Optional[float] = None
    function: Optional[str] = None

    @property
    def has_percentages(self) -> bool:
        return bool(self.weight_percent or self.value_percent)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "material": self.material,
            "weight_percent": self.weight_percent,
            "value_percent": self.value_percent,
            "function": self.function,
        }


@dataclass(frozen=True)
class ProductProfile:
    """
    What the product analyst knows about the goods.

    Attributes:
        standardized_name: Commercial/standardised product name
        function: Primary function or purpose
        material_composition: Free-text composition ("70% steel, 30% ABS")
        materials: Structured materials with weight/value shares
        components_breakdown: Structured components of a composite good
        essential_character: Component giving the product its identity
        industry_specific_data: Technical specifications (power, dimensions...)
        state: Physical state or condition (assembled, unfinished...)
        is_composite: Whether the goods are composite / a set
        potential_gir_path: Interpretive rules the analyst expects to apply
        readiness_score: Readiness as self-reported by the analyst
    """
    standardized_name: Optional[str] = None
    function: Optional[str] = None
    material_composition: Optional[str] = None
    materials: tuple[Component, ...] = ()
    components_breakdown: tuple[Component, ...] = ()
    essential_character: Optional[str] = None
    industry_specific_data: Optional[dict[str, Any]] = None
    state: Optional[str] = None
    is_composite: bool = False
    potential_gir_path: tuple[str, ...] = ()
    readiness_score: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "standardized_name": self.standardized_name,
            "function": self.function,
            "material_composition": self.material_composition,
            "materials": [m.to_dict() for m in self.materials],
            "components_breakdown": [c.to_dict() for c in self.components_breakdown],
            "essential_character": self.essential_character,
            "industry_specific_data": self.industry_specific_data,
            "state": self.state,
            "is_composite": self.is_composite,
            "potential_gir_path": list(self.potential_gir_path),
            "readiness_score": self.readiness_score,
        }


# =============================================================================
# Legal Research
# =============================================================================

@dataclass(frozen=True)
class LegalDocument:
    """Explanatory-note text for a heading."""
    heading: Optional[str] = None
    text: str = ""
    source: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"heading": self.heading, "text": self.text, "source": self.source}


@dataclass(frozen=True)
class LegalNote:
    """A numbered or lettered Section/Chapter note."""
    number: Optional[str] = None
    text: str = ""
    type: Optional[str] = None        # "Section Note", "Chapter Note", "Sub-note"
    source: Optional[str] = None

    @property
    def is_section_note(self) -> bool:
        return self.type == "Section Note"

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "text": self.text,
            "type": self.type,
            "source": self.source,
        }


@dataclass(frozen=True)
class VerifiedSource:
    url: Optional[str] = None
    authority_tier: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "authority_tier": self.authority_tier}


@dataclass(frozen=True)
class LegalResearch:
    """Legal texts gathered for the candidate headings."""
    en_documents: tuple[LegalDocument, ...] = ()
    notes: tuple[LegalNote, ...] = ()
    verified_sources: tuple[VerifiedSource, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "en_documents": [d.to_dict() for d in self.en_documents],
            "notes": [n.to_dict() for n in self.notes],
            "verified_sources": [s.to_dict() for s in self.verified_sources],
        }


# =============================================================================
# Precedents
# =============================================================================

@dataclass(frozen=True)
class Precedents:
    """Prior rulings found by the precedent researcher."""
    bti_cases: tuple[PrecedentCase, ...] = ()
    wco_opinions: tuple[PrecedentCase, ...] = ()
    consensus: Optional[ConsensusResult] = None

    @property
    def has_conflicts(self) -> bool:
        return self.consensus is not None and self.consensus.has_conflicts

    def to_dict(self) -> dict[str, Any]:
        return {
            "bti_cases": [c.to_dict() for c in self.bti_cases],
            "wco_opinions": [c.to_dict() for c in self.wco_opinions],
            "consensus": self.consensus.to_dict() if self.consensus else None,
        }


# =============================================================================
# Classification, Validation, Regulatory
# =============================================================================

@dataclass(frozen=True)
class ClassificationDecision:
    """
    The classifier's decision (the "gir_decision" sub-document).

    `gir_applied` is the free-text rule label as reported; it is resolved
    to an InterpretiveRule through the rule table when scoring.
    `confidence` may be a fraction (0.85) or a percentage (85).
    """
    hs_code: Optional[str] = None
    gir_applied: str = ""
    confidence: Optional[float] = None
    audit_trail: tuple[Any, ...] = ()
    reasoning: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "hs_code": self.hs_code,
            "gir_applied": self.gir_applied,
            "confidence": self.confidence,
            "audit_trail": list(self.audit_trail),
            "reasoning": self.reasoning,
        }


@dataclass(frozen=True)
class ValidationResult:
    passed: bool = False
    score: Optional[float] = None
    issues: tuple[ValidationIssue, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "score": self.score,
            "issues": [i.to_dict() for i in self.issues],
        }


@dataclass(frozen=True)
class RegulatoryStatus:
    import_allowed: Optional[bool] = None
    requirements: tuple[str, ...] = ()
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "import_allowed": self.import_allowed,
            "requirements": list(self.requirements),
            "notes": self.notes,
        }


# =============================================================================
# Current State
# =============================================================================

CURRENT_STATE_FIELDS = (
    "product_profile",
    "product_readiness",
    "candidate_headings",
    "legal_research",
    "precedents",
    "gir_decision",
    "validation_result",
    "regulatory_status",
)


@dataclass(frozen=True)
class CurrentState:
    """
    Sub-documents populated progressively over the conversation.

    Append-only per field: once set, a field may be replaced by a newer
    value but never cleared (see state_manager.update_current_state).
    """
    product_profile: Optional[ProductProfile] = None
    product_readiness: int = 0
    candidate_headings: tuple[str, ...] = ()
    legal_research: Optional[LegalResearch] = None
    precedents: Optional[Precedents] = None
    gir_decision: Optional[ClassificationDecision] = None
    validation_result: Optional[ValidationResult] = None
    regulatory_status: Optional[RegulatoryStatus] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "product_profile": self.product_profile.to_dict() if self.product_profile else None,
            "product_readiness": self.product_readiness,
            "candidate_headings": list(self.candidate_headings),
            "legal_research": self.legal_research.to_dict() if self.legal_research else None,
            "precedents": self.precedents.to_dict() if self.precedents else None,
            "gir_decision": self.gir_decision.to_dict() if self.gir_decision else None,
            "validation_result": (
                self.validation_result.to_dict() if self.validation_result else None
            ),
            "regulatory_status": (
                self.regulatory_status.to_dict() if self.regulatory_status else None
            ),
        }


# =============================================================================
# Rounds and Conversation
# =============================================================================

@dataclass(frozen=True)
class RoundRecord:
    """One executed round, as recorded by the runner."""
    round: int
    agent: Optional[str] = None
    action: Optional[str] = None
    input: dict[str, Any] = field(default_factory=dict)
    output: dict[str, Any] = field(default_factory=dict)
    confidence_after: int = 0
    duration_ms: int = 0
    timestamp: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "round": self.round,
            "agent": self.agent,
            "action": self.action,
            "input": self.input,
            "output": self.output,
            "confidence_after": self.confidence_after,
            "duration_ms": self.duration_ms,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass(frozen=True)
class ConversationState:
    """
    Aggregate root of a classification conversation.

    Attributes:
        report_id: Classification job identifier
        current_round: Rounds executed so far
        max_rounds: Round cap; reaching it forces escalation
        self_healing_attempts: Self-healing actions executed; >= 3 escalates
        overall_confidence: Last computed 0-100 score (stale until recomputed)
        status: Lifecycle status; terminal once completed/failed/escalated
        current_state: Sub-documents gathered so far
        rounds: Round history
        confidence_trajectory: overall_confidence after each round
        termination_reason: Why the conversation stopped
        pending_action: Decision awaiting execution by the runner
        escalation_summary: Hand-off summary for human review
    """
    report_id: Optional[str] = None
    current_round: int = 0
    max_rounds: int = 10
    self_healing_attempts: int = 0
    overall_confidence: float = 0
    status: ConversationStatus = ConversationStatus.INITIALIZING
    current_state: CurrentState = field(default_factory=CurrentState)
    rounds: tuple[RoundRecord, ...] = ()
    confidence_trajectory: tuple[float, ...] = ()
    termination_reason: Optional[str] = None
    pending_action: Optional[dict[str, Any]] = None
    escalation_summary: Optional[dict[str, Any]] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "report_id": self.report_id,
            "current_round": self.current_round,
            "max_rounds": self.max_rounds,
            "self_healing_attempts": self.self_healing_attempts,
            "overall_confidence": self.overall_confidence,
            "status": self.status.value,
            "current_state": self.current_state.to_dict(),
            "rounds": [r.to_dict() for r in self.rounds],
            "confidence_trajectory": list(self.confidence_trajectory),
            "termination_reason": self.termination_reason,
            "pending_action": self.pending_action,
            "escalation_summary": self.escalation_summary,
        }
