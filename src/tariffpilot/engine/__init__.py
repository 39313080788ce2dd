"""
TariffPilot Engine

The deterministic decision core.

Services:
- DecisionEngine: Stage policy returning the single next action
- ConfidenceCalculator: Weighted sub-scores minus penalties
- Consensus: Precedent agreement and relevance scoring
- Legal text: Explanatory-note parsing and product cross-checks
- Product: Readiness scoring, profile validation and analyst feedback
- HS format: National code layouts, checked and corrected

Usage:
    from tariffpilot.engine import DecisionEngine, ConfidenceCalculator

    engine = DecisionEngine(tables)
    decision = engine.decide(state)
"""
from __future__ import annotations

from .confidence import (
    ConfidenceCalculator,
    analyze_confidence_factors,
    calculate_confidence,
    get_confidence_trend,
    round_half_up,
)
from .consensus import (
    analyze_consensus,
    build_precedent_context,
    consensus_tier,
    parse_reference,
    rank_by_relevance,
    score_relevance,
    validate_against_precedents,
)
from .decision_engine import (
    DecisionEngine,
    all_stages_complete,
    decide_next_action,
    should_terminate,
)
from .hs_format import format_hs_code, validate_hs_format
from .legal_text import (
    build_legal_context,
    check_legal_match,
    extract_legal_notes,
    parse_legal_text,
    score_rule_relevance,
    split_sentences,
    validate_against_legal_text,
)
from .product import (
    build_analyze_feedback,
    calculate_readiness_score,
    generate_questions,
    has_detailed_material_breakdown,
    identify_missing_product_data,
    validate_essential_character_analysis,
    validate_product_profile,
)

__all__ = [
    # Decision engine
    "DecisionEngine",
    "all_stages_complete",
    "decide_next_action",
    "should_terminate",
    # Confidence
    "ConfidenceCalculator",
    "analyze_confidence_factors",
    "calculate_confidence",
    "get_confidence_trend",
    "round_half_up",
    # Consensus
    "analyze_consensus",
    "build_precedent_context",
    "consensus_tier",
    "parse_reference",
    "rank_by_relevance",
    "score_relevance",
    "validate_against_precedents",
    # Legal text
    "build_legal_context",
    "check_legal_match",
    "extract_legal_notes",
    "parse_legal_text",
    "score_rule_relevance",
    "split_sentences",
    "validate_against_legal_text",
    # Product
    "build_analyze_feedback",
    "calculate_readiness_score",
    "generate_questions",
    "has_detailed_material_breakdown",
    "identify_missing_product_data",
    "validate_essential_character_analysis",
    "validate_product_profile",
    # HS code format
    "format_hs_code",
    "validate_hs_format",
]
