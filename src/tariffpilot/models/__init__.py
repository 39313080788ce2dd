"""
TariffPilot Models

All domain models for the TariffPilot classification decision core.

Exports all models organized by category for convenient imports:

    from tariffpilot.models import (
        # Enums
        Stage, Action, Agent, ConversationStatus, InterpretiveRule,
        # State
        ConversationState, CurrentState, ProductProfile, ...
        # Issues
        ValidationIssue, GirHierarchyViolation, UnrecognizedIssue, ...
        # Precedents
        PrecedentCase, ConsensusResult, RelevanceScore,
        # Decisions
        Decision, TerminationResult,
        # Confidence
        ConfidenceResult, FactorAnalysis,
    )
"""
from __future__ import annotations

# =============================================================================
# Enums
# =============================================================================
from .enums import (
    Action,
    Agent,
    ConfidenceArea,
    ConsensusTier,
    ConversationStatus,
    InterpretiveRule,
    IssueSeverity,
    IssueType,
    RuleTier,
    Stage,
)

# =============================================================================
# Precedents
# =============================================================================
from .precedent import (
    CaseSummary,
    ConsensusResult,
    PrecedentCase,
    PrecedentValidation,
    ReferenceInfo,
    RelevanceScore,
    chapter_of,
    heading_of,
)

# =============================================================================
# Validation Issues
# =============================================================================
from .issues import (
    KNOWN_ISSUE_CLASSES,
    ConfidenceBelowThreshold,
    EnContradiction,
    EssentialCharacterIncomplete,
    GirHierarchyViolation,
    PrecedentConflict,
    UnrecognizedIssue,
    ValidationIssue,
)

# =============================================================================
# Conversation State
# =============================================================================
from .state import (
    CURRENT_STATE_FIELDS,
    ClassificationDecision,
    Component,
    ConversationState,
    CurrentState,
    LegalDocument,
    LegalNote,
    LegalResearch,
    Precedents,
    ProductProfile,
    RegulatoryStatus,
    RoundRecord,
    ValidationResult,
    VerifiedSource,
)

# =============================================================================
# Decisions, Confidence, Legal Text, Product
# =============================================================================
from .decision import Decision, TerminationResult
from .confidence import (
    ComponentScore,
    ConfidenceBreakdown,
    ConfidenceResult,
    FactorAnalysis,
    Recommendation,
)
from .legal import LegalMatch, LegalValidation, ParsedLegalText, RuleRelevance
from .product import (
    EssentialCharacterAnalysis,
    EssentialCharacterCheck,
    EssentialCharacterComponent,
    HsFormatCheck,
    MissingProductData,
    ProfileFinding,
    ProfileValidation,
)


__all__ = [
    # Enums
    "Action",
    "Agent",
    "ConfidenceArea",
    "ConsensusTier",
    "ConversationStatus",
    "InterpretiveRule",
    "IssueSeverity",
    "IssueType",
    "RuleTier",
    "Stage",
    # Precedents
    "CaseSummary",
    "ConsensusResult",
    "PrecedentCase",
    "PrecedentValidation",
    "ReferenceInfo",
    "RelevanceScore",
    "chapter_of",
    "heading_of",
    # Issues
    "KNOWN_ISSUE_CLASSES",
    "ConfidenceBelowThreshold",
    "EnContradiction",
    "EssentialCharacterIncomplete",
    "GirHierarchyViolation",
    "PrecedentConflict",
    "UnrecognizedIssue",
    "ValidationIssue",
    # State
    "CURRENT_STATE_FIELDS",
    "ClassificationDecision",
    "Component",
    "ConversationState",
    "CurrentState",
    "LegalDocument",
    "LegalNote",
    "LegalResearch",
    "Precedents",
    "ProductProfile",
    "RegulatoryStatus",
    "RoundRecord",
    "ValidationResult",
    "VerifiedSource",
    # Decisions
    "Decision",
    "TerminationResult",
    # Confidence
    "ComponentScore",
    "ConfidenceBreakdown",
    "ConfidenceResult",
    "FactorAnalysis",
    "Recommendation",
    # Legal text
    "LegalMatch",
    "LegalValidation",
    "ParsedLegalText",
    "RuleRelevance",
    # Product
    "EssentialCharacterAnalysis",
    "EssentialCharacterCheck",
    "EssentialCharacterComponent",
    "HsFormatCheck",
    "MissingProductData",
    "ProfileFinding",
    "ProfileValidation",
]
