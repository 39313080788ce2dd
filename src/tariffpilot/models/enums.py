"""
TariffPilot Enumerations

All enumeration types used throughout TariffPilot, organized by domain area.

All enums inherit from (str, Enum) for JSON serialization compatibility.
The string values are stable identifiers: downstream collaborators and the
audit trail depend on them.
"""
from __future__ import annotations

from enum import Enum


# =============================================================================
# Workflow Stages and Actions
# =============================================================================

class Stage(str, Enum):
    """Workflow stages, in strict precedence order."""
    PRODUCT_UNDERSTANDING = "product_understanding"
    LEGAL_RESEARCH = "legal_research"
    PRECEDENT_SEARCH = "precedent_search"
    CLASSIFICATION = "classification"
    VALIDATION = "validation"
    REGULATORY = "regulatory"
    FINALIZATION = "finalization"


class Action(str, Enum):
    """The single next action the engine can emit."""
    ANALYZE_PRODUCT = "analyze_product"
    REFINE_PRODUCT = "refine_product"
    REQUEST_USER_INPUT = "request_user_input"
    IDENTIFY_CANDIDATES = "identify_candidates"
    FETCH_LEGAL_SOURCES = "fetch_legal_sources"
    SEARCH_PRECEDENTS = "search_precedents"
    CLASSIFY = "classify"
    VALIDATE = "validate"
    SELF_HEAL = "self_heal"
    CHECK_REGULATORY = "check_regulatory"
    FINALIZE = "finalize"
    ESCALATE = "escalate"


class Agent(str, Enum):
    """Collaborators the runner can invoke on the engine's behalf."""
    PRODUCT_ANALYST = "ProductAnalyst"
    HS_LEGAL_EXPERT = "HSLegalExpert"
    PRECEDENT_RESEARCHER = "PrecedentResearcher"
    GIR_STATE_MACHINE = "GIRStateMachine"
    QUALITY_VALIDATOR = "QualityValidator"
    REGULATORY_EXPERT = "RegulatoryExpert"


# =============================================================================
# Conversation Status
# =============================================================================

class ConversationStatus(str, Enum):
    """Lifecycle status of a classification conversation."""
    INITIALIZING = "initializing"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    ESCALATED = "escalated"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset({
    ConversationStatus.COMPLETED,
    ConversationStatus.FAILED,
    ConversationStatus.ESCALATED,
})


# =============================================================================
# Interpretive Rules
# =============================================================================

class InterpretiveRule(str, Enum):
    """
    General Interpretive Rules, in hierarchical order.

    GIR 3(b) is the essential-character rule; GIR 3(c) and GIR 4 are the
    last-resort tier where genuine ambiguity remains.
    """
    GIR1 = "GIR1"
    GIR2 = "GIR2"
    GIR2A = "GIR2a"
    GIR2B = "GIR2b"
    GIR3A = "GIR3a"
    GIR3B = "GIR3b"
    GIR3C = "GIR3c"
    GIR4 = "GIR4"
    GIR6 = "GIR6"


class RuleTier(str, Enum):
    """Intrinsic strength tier of an interpretive rule."""
    PRIMARY = "primary"              # Terms of the headings, most specific
    SUBJECTIVE = "subjective"        # Essential character judgments
    LAST_RESORT = "last_resort"      # Last in numerical order, most akin
    SUBHEADING = "subheading"        # Subheading-level comparison


# =============================================================================
# Validation Issues
# =============================================================================

class IssueType(str, Enum):
    """Known validation issue tags the engine can remediate."""
    GIR_HIERARCHY_VIOLATION = "gir_hierarchy_violation"
    ESSENTIAL_CHARACTER_INCOMPLETE = "essential_character_incomplete"
    EN_CONTRADICTION = "en_contradiction"
    PRECEDENT_CONFLICT = "precedent_conflict"
    CONFIDENCE_BELOW_THRESHOLD = "confidence_below_threshold"


class IssueSeverity(str, Enum):
    """Severity reported by the quality validator."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# =============================================================================
# Precedents
# =============================================================================

class ConsensusTier(str, Enum):
    """Agreement tier among precedent cases."""
    STRONG = "strong"                # >= 0.9
    MODERATE = "moderate"            # >= 0.7
    WEAK = "weak"                    # >= 0.5
    NONE = "none"                    # no clear consensus


class ConfidenceArea(str, Enum):
    """Areas of the confidence breakdown."""
    PRODUCT = "product"
    LEGAL = "legal"
    GIR = "gir"
    PRECEDENT = "precedent"
    VALIDATION = "validation"
