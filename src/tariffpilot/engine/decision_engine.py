"""
TariffPilot Decision Engine

Determines the single next action of a classification conversation.

Rule-based, not learned. Stages are checked in strict precedence order and
the engine always returns the action for the EARLIEST unsatisfied stage:

    product understanding -> legal research -> precedent search ->
    classification -> validation -> regulatory -> finalization

Key properties:
- Pure: reads an immutable ConversationState, never mutates it
- Total: every state yields exactly one Decision (ESCALATE when nothing
  else applies, always with a reason)
- Deterministic: identical state and tables give an identical decision
  (same fingerprint)

The engine only describes the next collaborator call; invoking it and
writing results back is the runner's job.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from ..canon import content_hash_short
from ..models import (
    Action,
    Agent,
    ConfidenceBelowThreshold,
    ConversationState,
    ConversationStatus,
    CurrentState,
    Decision,
    EnContradiction,
    EssentialCharacterIncomplete,
    GirHierarchyViolation,
    InterpretiveRule,
    PrecedentConflict,
    Stage,
    TerminationResult,
    ValidationIssue,
    ValidationResult,
)
from ..tables import ClassificationTables, get_default_tables
from .product import (
    generate_questions,
    has_detailed_material_breakdown,
    identify_missing_product_data,
)


logger = logging.getLogger(__name__)

DEFAULT_RESTART_RULE = InterpretiveRule.GIR1.value
MODERATE_CONFIDENCE_NOTE = "Recommend verification for high-value shipments"


# =============================================================================
# Completeness
# =============================================================================

def all_stages_complete(current: CurrentState) -> bool:
    """
    Every stage satisfied: profile, legal research, precedents, decision,
    a PASSED validation and regulatory status. Shared by decide() and
    should_terminate() so the two cannot disagree.
    """
    return bool(
        current.product_profile
        and current.legal_research
        and current.precedents
        and current.gir_decision
        and current.validation_result is not None
        and current.validation_result.passed
        and current.regulatory_status
    )


# =============================================================================
# Decision Engine
# =============================================================================

class DecisionEngine:
    """
    Stage policy over a tables pack.

    Usage:
        engine = DecisionEngine(tables)
        decision = engine.decide(state)
        verdict = engine.should_terminate(state)
    """

    def __init__(self, tables: ClassificationTables):
        self.tables = tables

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def decide(self, state: ConversationState) -> Decision:
        decision = self._decide(state)

        log_extra = {
            "report_id": state.report_id,
            "action": decision.action.value,
            "stage": decision.stage.value,
            "round": state.current_round,
            "confidence": state.overall_confidence,
            "decision_hash_short": content_hash_short(decision.to_dict()),
        }
        if decision.action == Action.ESCALATE:
            logger.info("Escalating: %s", decision.reason, extra=log_extra)
        else:
            logger.debug("Next action %s", decision.action.value, extra=log_extra)
        return decision

    def should_terminate(self, state: ConversationState) -> TerminationResult:
        """
        Read-only stop check over the same state and thresholds as decide().
        """
        thresholds = self.tables.thresholds

        if state.status.is_terminal:
            return TerminationResult(
                should_stop=True,
                reason=f"Already in terminal state: {state.status.value}",
                status=state.status,
            )

        if state.current_round >= state.max_rounds:
            return TerminationResult(
                should_stop=True,
                reason="Maximum rounds reached",
                status=ConversationStatus.ESCALATED,
            )

        if all_stages_complete(state.current_state):
            if state.overall_confidence >= thresholds.finalize_high:
                return TerminationResult(
                    should_stop=True,
                    reason="High confidence classification complete",
                    status=ConversationStatus.COMPLETED,
                )
            if state.overall_confidence >= thresholds.finalize_min:
                return TerminationResult(
                    should_stop=True,
                    reason="Moderate confidence classification complete",
                    status=ConversationStatus.COMPLETED,
                )

        return TerminationResult(should_stop=False)

    # -------------------------------------------------------------------------
    # Stage policy
    # -------------------------------------------------------------------------

    def _decide(self, state: ConversationState) -> Decision:
        thresholds = self.tables.thresholds
        current = state.current_state

        # Termination guards
        if state.current_round >= state.max_rounds:
            return Decision(
                action=Action.ESCALATE,
                reason="Maximum rounds reached - complex case requiring human review",
                stage=Stage.FINALIZATION,
            )
        if state.self_healing_attempts >= thresholds.max_self_healing_attempts:
            return Decision(
                action=Action.ESCALATE,
                reason=(
                    f"Self-healing failed after "
                    f"{thresholds.max_self_healing_attempts} attempts"
                ),
                stage=Stage.FINALIZATION,
            )

        # Product understanding
        profile = current.product_profile
        if profile is None:
            return Decision(
                action=Action.ANALYZE_PRODUCT,
                agent=Agent.PRODUCT_ANALYST,
                reason="Need initial product understanding",
                stage=Stage.PRODUCT_UNDERSTANDING,
            )

        if current.product_readiness < thresholds.product_readiness:
            missing = identify_missing_product_data(profile)
            if missing.critical:
                return Decision(
                    action=Action.REQUEST_USER_INPUT,
                    reason="Insufficient product data - critical information missing",
                    questions=generate_questions(missing.critical, self.tables),
                    stage=Stage.PRODUCT_UNDERSTANDING,
                )
            return Decision(
                action=Action.REFINE_PRODUCT,
                agent=Agent.PRODUCT_ANALYST,
                specific_request={
                    "type": "refine",
                    "focus": missing.optional[0] if missing.optional else "general",
                    "reason": "Improve product data completeness",
                },
                reason=(
                    f"Product readiness below {thresholds.product_readiness}%, "
                    "attempting refinement"
                ),
                stage=Stage.PRODUCT_UNDERSTANDING,
            )

        # Essential-character decisions reach back for a material breakdown
        if self._applied_rule(current) == InterpretiveRule.GIR3B:
            if not has_detailed_material_breakdown(profile):
                return Decision(
                    action=Action.REFINE_PRODUCT,
                    agent=Agent.PRODUCT_ANALYST,
                    specific_request={
                        "type": "refine",
                        "focus": "materials",
                        "reason": (
                            "GIR 3(b) requires detailed material composition "
                            "with %weight and %value"
                        ),
                    },
                    reason="GIR 3(b) essential character analysis needs material breakdown",
                    stage=Stage.PRODUCT_UNDERSTANDING,
                )

        # Legal research
        if not current.candidate_headings:
            return Decision(
                action=Action.IDENTIFY_CANDIDATES,
                agent=Agent.HS_LEGAL_EXPERT,
                reason="Need to identify potential HS headings",
                stage=Stage.LEGAL_RESEARCH,
            )
        if current.legal_research is None:
            return Decision(
                action=Action.FETCH_LEGAL_SOURCES,
                agent=Agent.HS_LEGAL_EXPERT,
                specific_request={"headings": list(current.candidate_headings)},
                reason="Need Explanatory Notes and Section/Chapter Notes for classification",
                stage=Stage.LEGAL_RESEARCH,
            )

        # Precedent search
        if current.precedents is None:
            return Decision(
                action=Action.SEARCH_PRECEDENTS,
                agent=Agent.PRECEDENT_RESEARCHER,
                specific_request={
                    "product_name": profile.standardized_name,
                    "candidate_headings": list(current.candidate_headings),
                },
                reason="Need to check existing classifications and precedents",
                stage=Stage.PRECEDENT_SEARCH,
            )

        # Classification
        if current.gir_decision is None:
            return Decision(
                action=Action.CLASSIFY,
                agent=Agent.GIR_STATE_MACHINE,
                specific_request={
                    "product": profile.to_dict(),
                    "legal": current.legal_research.to_dict(),
                    "precedents": current.precedents.to_dict(),
                },
                reason="Ready to classify - all prerequisites gathered",
                stage=Stage.CLASSIFICATION,
            )

        # Validation
        if current.validation_result is None:
            return Decision(
                action=Action.VALIDATE,
                agent=Agent.QUALITY_VALIDATOR,
                reason="Need to validate classification logic",
                stage=Stage.VALIDATION,
            )
        if not current.validation_result.passed:
            return self._self_heal(state, current.validation_result)

        # Regulatory
        if current.regulatory_status is None:
            return Decision(
                action=Action.CHECK_REGULATORY,
                agent=Agent.REGULATORY_EXPERT,
                specific_request={"hs_code": current.gir_decision.hs_code},
                reason="Need to check import legality and requirements",
                stage=Stage.REGULATORY,
            )

        # Confidence and finalization
        confidence = state.overall_confidence
        if confidence < thresholds.confidence_boost_below:
            return self._boost_confidence(state)

        if all_stages_complete(current) and confidence >= thresholds.finalize_high:
            return Decision(
                action=Action.FINALIZE,
                reason="High confidence, all checks passed",
                stage=Stage.FINALIZATION,
            )
        if all_stages_complete(current) and confidence >= thresholds.finalize_min:
            return Decision(
                action=Action.FINALIZE,
                reason="Moderate confidence - classification complete with caveats",
                confidence_note=MODERATE_CONFIDENCE_NOTE,
                stage=Stage.FINALIZATION,
            )

        return Decision(
            action=Action.ESCALATE,
            reason="Low confidence after all stages - requires expert review",
            stage=Stage.FINALIZATION,
        )

    def _applied_rule(self, current: CurrentState) -> Optional[InterpretiveRule]:
        if current.gir_decision is None:
            return None
        entry = self.tables.resolve_rule(current.gir_decision.gir_applied)
        return entry.rule if entry else None

    # -------------------------------------------------------------------------
    # Self-healing
    # -------------------------------------------------------------------------

    def _self_heal(self, state: ConversationState, validation: ValidationResult) -> Decision:
        """Remediate the FIRST reported issue; no issues means escalate."""
        if not validation.issues:
            return Decision(
                action=Action.ESCALATE,
                reason="Validation failed with unidentified issues",
                stage=Stage.FINALIZATION,
            )
        decision = self._remediate(state, validation.issues[0])
        return dataclasses.replace(decision, self_healing=True)

    def _remediate(self, state: ConversationState, issue: ValidationIssue) -> Decision:
        if isinstance(issue, GirHierarchyViolation):
            return Decision(
                action=Action.SELF_HEAL,
                agent=Agent.GIR_STATE_MACHINE,
                specific_request={
                    "type": "re_run_gir",
                    "constraints": {
                        "enforce_hierarchy": True,
                        "start_from": issue.missing_state or DEFAULT_RESTART_RULE,
                    },
                },
                reason=f"GIR hierarchy violation: {issue.description}",
                stage=Stage.CLASSIFICATION,
            )

        elif isinstance(issue, EssentialCharacterIncomplete):
            return Decision(
                action=Action.REFINE_PRODUCT,
                agent=Agent.PRODUCT_ANALYST,
                specific_request={
                    "type": "refine",
                    "focus": "material_value_breakdown",
                    "reason": "Need detailed material analysis for GIR 3(b) essential character",
                },
                reason="Essential character analysis incomplete",
                stage=Stage.PRODUCT_UNDERSTANDING,
            )

        elif isinstance(issue, EnContradiction):
            return Decision(
                action=Action.SELF_HEAL,
                agent=Agent.GIR_STATE_MACHINE,
                specific_request={
                    "type": "re_classify",
                    "constraints": {
                        "exclude_headings": [issue.conflicting_heading],
                        "notes_to_respect": [issue.note_text],
                    },
                },
                reason=f"EN contradiction: {issue.description}",
                stage=Stage.CLASSIFICATION,
            )

        elif isinstance(issue, PrecedentConflict):
            gir_decision = state.current_state.gir_decision
            conflicting = issue.bti_case
            return Decision(
                action=Action.SELF_HEAL,
                agent=Agent.HS_LEGAL_EXPERT,
                specific_request={
                    "type": "reconcile_precedent",
                    "our_classification": gir_decision.to_dict() if gir_decision else None,
                    "conflicting_bti": conflicting.to_dict() if conflicting else None,
                },
                reason=(
                    f"Precedent conflict with "
                    f"{conflicting.reference if conflicting else 'unidentified case'}"
                ),
                stage=Stage.LEGAL_RESEARCH,
            )

        elif isinstance(issue, ConfidenceBelowThreshold):
            return self._boost_confidence(state)

        else:
            return Decision(
                action=Action.SELF_HEAL,
                agent=Agent.GIR_STATE_MACHINE,
                specific_request={
                    "type": "re_run_gir",
                    "feedback": issue.description,
                },
                reason=f"Validation issue: {issue.description}",
                stage=Stage.CLASSIFICATION,
            )

    # -------------------------------------------------------------------------
    # Confidence boost
    # -------------------------------------------------------------------------

    def _boost_confidence(self, state: ConversationState) -> Decision:
        """First matching remedy for low confidence."""
        current = state.current_state
        gir_decision = current.gir_decision
        precedents = current.precedents

        if gir_decision is not None and self.tables.is_last_resort(gir_decision.gir_applied):
            return Decision(
                action=Action.REQUEST_USER_INPUT,
                reason=(
                    f"{gir_decision.gir_applied} used - true ambiguity exists. "
                    "Need user intent clarification."
                ),
                questions=self.tables.questions.intent_clarification,
                stage=Stage.PRODUCT_UNDERSTANDING,
            )

        min_cases = self.tables.thresholds.min_precedent_cases
        if precedents is None or len(precedents.bti_cases) < min_cases:
            return Decision(
                action=Action.SEARCH_PRECEDENTS,
                agent=Agent.PRECEDENT_RESEARCHER,
                specific_request={
                    "type": "deep_search",
                    "expanded_terms": True,
                    "product_name": (
                        current.product_profile.standardized_name
                        if current.product_profile else None
                    ),
                },
                reason="Low confidence - need more supporting precedents",
                stage=Stage.PRECEDENT_SEARCH,
            )

        if precedents.has_conflicts:
            return Decision(
                action=Action.SELF_HEAL,
                agent=Agent.HS_LEGAL_EXPERT,
                specific_request={
                    "type": "reconcile_conflicts",
                    "conflicts": [c.to_dict() for c in precedents.consensus.conflicting_cases],
                },
                reason="Conflicting precedents need legal analysis",
                stage=Stage.LEGAL_RESEARCH,
            )

        if current.legal_research is None or not current.legal_research.notes:
            return Decision(
                action=Action.FETCH_LEGAL_SOURCES,
                agent=Agent.HS_LEGAL_EXPERT,
                specific_request={
                    "focus": "section_chapter_notes",
                    "headings": list(current.candidate_headings),
                },
                reason="Low confidence - need Section/Chapter Notes verification",
                stage=Stage.LEGAL_RESEARCH,
            )

        return Decision(
            action=Action.REFINE_PRODUCT,
            agent=Agent.PRODUCT_ANALYST,
            specific_request={
                "type": "deep_analysis",
                "focus": "essential_character",
                "reason": "Improve confidence through detailed product analysis",
            },
            reason="Low confidence - attempting deeper product analysis",
            stage=Stage.PRODUCT_UNDERSTANDING,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def decide_next_action(
    state: ConversationState,
    tables: Optional[ClassificationTables] = None,
) -> Decision:
    """Decide with the given (or the default) tables."""
    return DecisionEngine(tables or get_default_tables()).decide(state)


def should_terminate(
    state: ConversationState,
    tables: Optional[ClassificationTables] = None,
) -> TerminationResult:
    return DecisionEngine(tables or get_default_tables()).should_terminate(state)
