"""
TariffPilot Boundary Adapter

Turns raw conversation snapshots (dicts from JSON) into the immutable
domain ConversationState the decision core reads.

Leniency rules:
- Each current_state sub-document is validated on its own. A malformed
  one is logged at WARNING and treated as not yet provided (None).
- Malformed list items (components, explanatory-note documents, legal
  notes, verified sources, precedent cases, issues, round records) are
  skipped the same way; the rest of their list and their parent survive.
- Scalar fields that carry no decision weight (readiness_score,
  industry_specific_data) fall back to None instead of failing the
  sub-document.
- Only an unusable top level (not a mapping, or counters that are not
  numbers) raises StateValidationError.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from ..engine.consensus import consensus_tier
from ..exceptions import StateValidationError
from ..models import (
    KNOWN_ISSUE_CLASSES,
    CaseSummary,
    ClassificationDecision,
    Component,
    ConfidenceBelowThreshold,
    ConsensusResult,
    ConversationState,
    ConversationStatus,
    CurrentState,
    EnContradiction,
    EssentialCharacterAnalysis,
    EssentialCharacterComponent,
    EssentialCharacterIncomplete,
    GirHierarchyViolation,
    IssueSeverity,
    IssueType,
    LegalDocument,
    LegalNote,
    LegalResearch,
    PrecedentCase,
    PrecedentConflict,
    Precedents,
    ProductProfile,
    RegulatoryStatus,
    RoundRecord,
    UnrecognizedIssue,
    ValidationIssue,
    ValidationResult,
    VerifiedSource,
)
from ..tables import ClassificationTables, get_default_tables
from .schemas import (
    CaseSummaryIn,
    ClassificationDecisionIn,
    ComponentIn,
    ConsensusIn,
    ConversationStateIn,
    EssentialCharacterAnalysisIn,
    EssentialCharacterComponentIn,
    IssueIn,
    LegalDocumentIn,
    LegalNoteIn,
    LegalResearchIn,
    PrecedentCaseIn,
    PrecedentsIn,
    ProductProfileIn,
    RegulatoryStatusIn,
    RoundRecordIn,
    ValidationResultIn,
    VerifiedSourceIn,
)


logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def _validate_leniently(
    schema: type[SchemaT],
    raw: Any,
    what: str,
) -> Optional[SchemaT]:
    """Validated schema, or None (logged) when `raw` is absent or malformed."""
    if raw is None:
        return None
    try:
        return schema.model_validate(raw)
    except ValidationError as e:
        logger.warning("Ignoring malformed %s: %d validation errors", what, e.error_count())
        return None


def _convert_list(
    items: list[Any],
    convert: Callable[[Any], Optional[Any]],
) -> tuple:
    converted = (convert(item) for item in items)
    return tuple(item for item in converted if item is not None)


# =============================================================================
# Sub-document Conversion
# =============================================================================

def _component(raw: Any) -> Optional[Component]:
    schema = _validate_leniently(ComponentIn, raw, "component")
    if schema is None:
        return None
    return Component(**schema.model_dump())


def profile_from_dict(raw: Any) -> Optional[ProductProfile]:
    schema = _validate_leniently(ProductProfileIn, raw, "product_profile")
    if schema is None:
        return None
    return ProductProfile(
        standardized_name=schema.standardized_name,
        function=schema.function,
        material_composition=schema.material_composition,
        materials=_convert_list(schema.materials, _component),
        components_breakdown=_convert_list(schema.components_breakdown, _component),
        essential_character=schema.essential_character,
        industry_specific_data=schema.industry_specific_data,
        state=schema.state,
        is_composite=schema.is_composite,
        potential_gir_path=tuple(schema.potential_gir_path),
        readiness_score=schema.readiness_score,
    )


def _essential_character_component(raw: Any) -> Optional[EssentialCharacterComponent]:
    schema = _validate_leniently(
        EssentialCharacterComponentIn, raw, "essential character component"
    )
    if schema is None:
        return None
    return EssentialCharacterComponent(**schema.model_dump())


def essential_character_analysis_from_dict(
    raw: Any,
) -> Optional[EssentialCharacterAnalysis]:
    schema = _validate_leniently(
        EssentialCharacterAnalysisIn, raw, "essential_character_analysis"
    )
    if schema is None:
        return None
    return EssentialCharacterAnalysis(
        components=_convert_list(schema.components, _essential_character_component),
        essential_component=schema.essential_component,
        justification=schema.justification,
    )


def _legal_document(raw: Any) -> Optional[LegalDocument]:
    schema = _validate_leniently(LegalDocumentIn, raw, "explanatory note document")
    if schema is None:
        return None
    return LegalDocument(**schema.model_dump())


def _legal_note(raw: Any) -> Optional[LegalNote]:
    schema = _validate_leniently(LegalNoteIn, raw, "legal note")
    if schema is None:
        return None
    return LegalNote(**schema.model_dump())


def _verified_source(raw: Any) -> Optional[VerifiedSource]:
    schema = _validate_leniently(VerifiedSourceIn, raw, "verified source")
    if schema is None:
        return None
    return VerifiedSource(**schema.model_dump())


def legal_research_from_dict(raw: Any) -> Optional[LegalResearch]:
    schema = _validate_leniently(LegalResearchIn, raw, "legal_research")
    if schema is None:
        return None
    return LegalResearch(
        en_documents=_convert_list(schema.en_documents, _legal_document),
        notes=_convert_list(schema.notes, _legal_note),
        verified_sources=_convert_list(schema.verified_sources, _verified_source),
    )


def case_from_dict(raw: Any) -> Optional[PrecedentCase]:
    schema = _validate_leniently(PrecedentCaseIn, raw, "precedent case")
    if schema is None:
        return None
    return PrecedentCase(**schema.model_dump())


def cases_from_list(raw: Any) -> tuple[PrecedentCase, ...]:
    if not isinstance(raw, list):
        return ()
    return _convert_list(raw, case_from_dict)


def _case_summary(schema: CaseSummaryIn) -> CaseSummary:
    return CaseSummary(**schema.model_dump())


def consensus_from_dict(
    raw: Any,
    tables: ClassificationTables,
) -> Optional[ConsensusResult]:
    schema = _validate_leniently(ConsensusIn, raw, "consensus")
    if schema is None:
        return None
    return ConsensusResult(
        has_consensus=schema.has_consensus,
        consensus_code=schema.consensus_code,
        agreement_rate=schema.agreement_rate,
        total_cases=schema.total_cases,
        target_matches_consensus=schema.target_matches_consensus,
        supporting_cases=tuple(_case_summary(c) for c in schema.supporting_cases),
        conflicting_cases=tuple(_case_summary(c) for c in schema.conflicting_cases),
        tier=consensus_tier(schema.agreement_rate, tables),
        analysis=schema.analysis,
    )


def precedents_from_dict(
    raw: Any,
    tables: ClassificationTables,
) -> Optional[Precedents]:
    schema = _validate_leniently(PrecedentsIn, raw, "precedents")
    if schema is None:
        return None
    return Precedents(
        bti_cases=cases_from_list(schema.bti_cases),
        wco_opinions=cases_from_list(schema.wco_opinions),
        consensus=consensus_from_dict(schema.consensus, tables),
    )


def decision_from_dict(raw: Any) -> Optional[ClassificationDecision]:
    schema = _validate_leniently(ClassificationDecisionIn, raw, "gir_decision")
    if schema is None:
        return None
    return ClassificationDecision(
        hs_code=schema.hs_code,
        gir_applied=schema.gir_applied,
        confidence=schema.confidence,
        audit_trail=tuple(schema.audit_trail),
        reasoning=schema.reasoning,
    )


def _severity(value: str) -> IssueSeverity:
    try:
        return IssueSeverity(value.lower())
    except ValueError:
        return IssueSeverity.MEDIUM


def _json_safe(extras: dict[str, Any]) -> dict[str, Any]:
    return json.loads(json.dumps(extras, default=str))


def issue_from_dict(raw: Any) -> Optional[ValidationIssue]:
    """
    Map a reported issue onto the closed issue variants. Unknown tags
    become UnrecognizedIssue carrying the remaining fields.
    """
    schema = _validate_leniently(IssueIn, raw, "validation issue")
    if schema is None:
        return None

    extras = dict(schema.model_extra or {})
    common = {
        "description": schema.description,
        "severity": _severity(schema.severity),
    }

    try:
        issue_type = IssueType(schema.type)
    except ValueError:
        return UnrecognizedIssue(
            raw_type=schema.type or "unknown",
            details=_json_safe(extras),
            **common,
        )

    issue_class = KNOWN_ISSUE_CLASSES[issue_type]
    if issue_class is GirHierarchyViolation:
        missing = extras.get("missing_state")
        return GirHierarchyViolation(
            missing_state=str(missing) if missing else None, **common
        )
    elif issue_class is EnContradiction:
        heading = extras.get("conflicting_heading")
        note = extras.get("note_text")
        return EnContradiction(
            conflicting_heading=str(heading) if heading is not None else None,
            note_text=str(note) if note is not None else None,
            **common,
        )
    elif issue_class is PrecedentConflict:
        return PrecedentConflict(bti_case=case_from_dict(extras.get("bti_case")), **common)
    elif issue_class is EssentialCharacterIncomplete:
        return EssentialCharacterIncomplete(**common)
    elif issue_class is ConfidenceBelowThreshold:
        return ConfidenceBelowThreshold(**common)
    else:
        return UnrecognizedIssue(raw_type=schema.type, details=_json_safe(extras), **common)


def validation_from_dict(raw: Any) -> Optional[ValidationResult]:
    schema = _validate_leniently(ValidationResultIn, raw, "validation_result")
    if schema is None:
        return None
    return ValidationResult(
        passed=schema.passed,
        score=schema.score,
        issues=_convert_list(schema.issues, issue_from_dict),
    )


def regulatory_from_dict(raw: Any) -> Optional[RegulatoryStatus]:
    schema = _validate_leniently(RegulatoryStatusIn, raw, "regulatory_status")
    if schema is None:
        return None
    return RegulatoryStatus(
        import_allowed=schema.import_allowed,
        requirements=tuple(schema.requirements),
        notes=schema.notes,
    )


def _headings(raw: Any) -> tuple[str, ...]:
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Ignoring malformed candidate_headings of type %s", type(raw).__name__)
        return ()
    headings = []
    for item in raw:
        if isinstance(item, str):
            headings.append(item)
        elif isinstance(item, Mapping) and item.get("heading"):
            headings.append(str(item["heading"]))
        elif isinstance(item, (int, float)):
            headings.append(str(item))
    return tuple(headings)


def _readiness(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return 0
    return int(raw)


def current_state_from_dict(
    raw: Mapping[str, Any],
    tables: ClassificationTables,
) -> CurrentState:
    return CurrentState(
        product_profile=profile_from_dict(raw.get("product_profile")),
        product_readiness=_readiness(raw.get("product_readiness")),
        candidate_headings=_headings(raw.get("candidate_headings")),
        legal_research=legal_research_from_dict(raw.get("legal_research")),
        precedents=precedents_from_dict(raw.get("precedents"), tables),
        gir_decision=decision_from_dict(raw.get("gir_decision")),
        validation_result=validation_from_dict(raw.get("validation_result")),
        regulatory_status=regulatory_from_dict(raw.get("regulatory_status")),
    )


def _round(raw: Any) -> Optional[RoundRecord]:
    schema = _validate_leniently(RoundRecordIn, raw, "round record")
    if schema is None:
        return None
    return RoundRecord(
        round=schema.round,
        agent=schema.agent,
        action=schema.action,
        input=schema.input,
        output=schema.output,
        confidence_after=schema.confidence_after,
        duration_ms=schema.duration_ms,
        timestamp=schema.timestamp,
    )


# =============================================================================
# Top Level
# =============================================================================

def state_from_dict(
    data: Any,
    tables: Optional[ClassificationTables] = None,
) -> ConversationState:
    """
    Adapt a raw snapshot into a ConversationState.

    Raises:
        StateValidationError: If `data` is not a mapping, or its counters,
            status or current_state are unusable
    """
    tables = tables or get_default_tables()

    if not isinstance(data, Mapping):
        raise StateValidationError(
            message="Conversation state must be a JSON object",
            details={"type": type(data).__name__},
        )

    try:
        schema = ConversationStateIn.model_validate(dict(data))
    except ValidationError as e:
        raise StateValidationError(
            message=f"Conversation state validation failed: {e.error_count()} errors",
            details={"errors": json.loads(e.json(include_url=False))},
            report_id=str(data.get("report_id")) if data.get("report_id") else None,
        ) from e

    try:
        status = ConversationStatus(schema.status)
    except ValueError as e:
        raise StateValidationError(
            message=f"Unknown conversation status: {schema.status}",
            details={"status": schema.status},
            report_id=schema.report_id,
        ) from e

    return ConversationState(
        report_id=schema.report_id,
        current_round=schema.current_round,
        max_rounds=schema.max_rounds,
        self_healing_attempts=schema.self_healing_attempts,
        overall_confidence=schema.overall_confidence,
        status=status,
        current_state=current_state_from_dict(schema.current_state, tables),
        rounds=_convert_list(schema.rounds, _round),
        confidence_trajectory=tuple(schema.confidence_trajectory),
        termination_reason=schema.termination_reason,
        pending_action=schema.pending_action,
        escalation_summary=schema.escalation_summary,
    )
