"""
TariffPilot Confidence Calculator

Combines five weighted sub-scores and penalty deductions into a single
0-100 confidence value.

Sub-scores (weights from the tables pack):
- Product understanding
- Legal foundation
- Interpretive-rule strength
- Precedent support
- Validation success

Scoring is DETERMINISTIC and side-effect free: the same state and tables
always give the same breakdown, penalties and overall value.
"""
from __future__ import annotations

import math
from typing import Optional

from ..models import (
    ClassificationDecision,
    ComponentScore,
    ConfidenceArea,
    ConfidenceBreakdown,
    ConfidenceResult,
    ConversationState,
    CurrentState,
    FactorAnalysis,
    LegalResearch,
    Precedents,
    ProductProfile,
    Recommendation,
    ValidationResult,
)
from ..tables import ClassificationTables, get_default_tables


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative input."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


# =============================================================================
# Confidence Calculator
# =============================================================================

class ConfidenceCalculator:
    """
    Scores a conversation state against a tables pack.

    Usage:
        calculator = ConfidenceCalculator(tables)
        result = calculator.score(state)
        result.overall          # int in [0, 100]
        result.breakdown.gir    # ComponentScore(score, weight)
    """

    def __init__(self, tables: ClassificationTables):
        self.tables = tables

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def score(self, state: ConversationState) -> ConfidenceResult:
        current = state.current_state
        weights = self.tables.weights

        breakdown = ConfidenceBreakdown(
            product=ComponentScore(
                self.product_score(current.product_profile, current.product_readiness),
                weights.product,
            ),
            legal=ComponentScore(self.legal_score(current.legal_research), weights.legal),
            gir=ComponentScore(self.gir_score(current.gir_decision), weights.gir),
            precedent=ComponentScore(
                self.precedent_score(current.precedents), weights.precedent
            ),
            validation=ComponentScore(
                self.validation_score(current.validation_result), weights.validation
            ),
        )

        raw_weighted = breakdown.weighted_sum
        penalties = self.penalties(current)

        return ConfidenceResult(
            overall=round_half_up(clamp(raw_weighted - penalties)),
            breakdown=breakdown,
            penalties=penalties,
            raw_weighted=raw_weighted,
        )

    def analyze_factors(self, state: ConversationState) -> FactorAnalysis:
        """
        Re-run the scorer and recommend improvements for every sub-score
        under its factor threshold.
        """
        result = self.score(state)
        thresholds = self.tables.thresholds
        breakdown = result.breakdown
        recommendations: list[Recommendation] = []

        if breakdown.product.score < thresholds.factor_product:
            recommendations.append(Recommendation(
                area=ConfidenceArea.PRODUCT,
                issue="Product data incomplete",
                suggestion="Gather more technical specifications or material composition details",
            ))

        if breakdown.legal.score < thresholds.factor_legal:
            recommendations.append(Recommendation(
                area=ConfidenceArea.LEGAL,
                issue="Legal foundation weak",
                suggestion="Fetch official Explanatory Notes and Section/Chapter Notes",
            ))

        if breakdown.gir.score < thresholds.factor_gir:
            recommendations.append(Recommendation(
                area=ConfidenceArea.GIR,
                issue="Classification rule ambiguous",
                suggestion=(
                    "GIR 3(b)/3(c)/4 used - consider additional product analysis "
                    "or user clarification"
                ),
            ))

        if breakdown.precedent.score < thresholds.factor_precedent:
            recommendations.append(Recommendation(
                area=ConfidenceArea.PRECEDENT,
                issue="Precedent support lacking or conflicting",
                suggestion="Search for additional BTI cases or WCO opinions",
            ))

        return FactorAnalysis(
            overall_score=result.overall,
            breakdown=breakdown,
            penalties=result.penalties,
            recommendations=tuple(recommendations),
        )

    # -------------------------------------------------------------------------
    # Sub-scores
    # -------------------------------------------------------------------------

    def product_score(self, profile: Optional[ProductProfile], readiness: int) -> float:
        if profile is None:
            return 0
        cfg = self.tables.scoring.product

        score = readiness or cfg.default_readiness
        if profile.material_composition and "%" in profile.material_composition:
            score += cfg.material_percent_bonus
        if profile.essential_character:
            score += cfg.essential_character_bonus
        if (
            profile.industry_specific_data
            and len(profile.industry_specific_data) >= cfg.industry_data_min_fields
        ):
            score += cfg.industry_data_bonus
        return min(100, score)

    def legal_score(self, research: Optional[LegalResearch]) -> float:
        if research is None:
            return 0
        cfg = self.tables.scoring.legal

        score = cfg.research_base
        if research.en_documents:
            score += cfg.documents_bonus
            if any(
                len(doc.text) > cfg.substantial_document_length
                for doc in research.en_documents
            ):
                score += cfg.substantial_document_bonus

        if research.notes:
            score += cfg.notes_bonus
            if any(note.is_section_note for note in research.notes):
                score += cfg.section_note_bonus

        top_sources = [
            s for s in research.verified_sources
            if s.authority_tier == cfg.top_authority_tier
        ]
        score += min(cfg.top_source_cap, len(top_sources) * cfg.per_top_source)
        return min(100, score)

    def gir_score(self, decision: Optional[ClassificationDecision]) -> float:
        if decision is None:
            return 0
        cfg = self.tables.scoring.gir

        score: float = self.tables.rule_strength(decision.gir_applied)
        if decision.confidence:
            fraction = (
                decision.confidence / 100 if decision.confidence > 1 else decision.confidence
            )
            score = score * cfg.strength_share + fraction * 100 * (1 - cfg.strength_share)

        if len(decision.audit_trail) >= cfg.audit_trail_min_entries:
            score += cfg.audit_trail_bonus
        return min(100, score)

    def precedent_score(self, precedents: Optional[Precedents]) -> float:
        cfg = self.tables.scoring.precedent
        if precedents is None:
            return cfg.not_searched

        score = cfg.searched_base
        if precedents.wco_opinions:
            score += cfg.authority_opinion_bonus
        if precedents.bti_cases:
            score += min(cfg.case_cap, len(precedents.bti_cases) * cfg.per_case)

        consensus = precedents.consensus
        if consensus is not None:
            if consensus.agreement_rate > cfg.high_agreement_rate:
                score += cfg.high_agreement_bonus
            elif consensus.has_conflicts:
                score -= cfg.conflict_penalty

        return clamp(score)

    def validation_score(self, result: Optional[ValidationResult]) -> float:
        cfg = self.tables.scoring.validation
        if result is None:
            return cfg.not_validated
        if not result.passed:
            return cfg.failed
        return result.score or cfg.passed_default

    # -------------------------------------------------------------------------
    # Penalties
    # -------------------------------------------------------------------------

    def penalties(self, current: CurrentState) -> float:
        cfg = self.tables.scoring.penalties
        penalty = 0

        precedents = current.precedents
        if precedents is not None and not precedents.bti_cases:
            penalty += cfg.no_cases_found
        if precedents is not None and precedents.has_conflicts:
            penalty += cfg.consensus_conflicts

        if current.gir_decision is not None and self.tables.is_last_resort(
            current.gir_decision.gir_applied
        ):
            penalty += cfg.last_resort_rule

        if current.validation_result is not None:
            penalty += len(current.validation_result.issues) * cfg.per_validation_issue

        return penalty


# =============================================================================
# Convenience Functions
# =============================================================================

def calculate_confidence(
    state: ConversationState,
    tables: Optional[ClassificationTables] = None,
) -> ConfidenceResult:
    """Score a state with the given (or the default) tables."""
    return ConfidenceCalculator(tables or get_default_tables()).score(state)


def analyze_confidence_factors(
    state: ConversationState,
    tables: Optional[ClassificationTables] = None,
) -> FactorAnalysis:
    return ConfidenceCalculator(tables or get_default_tables()).analyze_factors(state)


def get_confidence_trend(state: ConversationState) -> tuple[float, ...]:
    """overall_confidence recorded after each round."""
    return state.confidence_trajectory
