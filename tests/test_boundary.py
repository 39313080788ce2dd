"""
Tests for the boundary adapter.

Validates:
- Field aliases from different collaborators
- Malformed sub-documents degrade to "not yet provided"
- Issue tags map onto the closed issue variants
- Only an unusable top level raises StateValidationError
"""
from __future__ import annotations

import logging
from datetime import date

import pytest

from tariffpilot.boundary import case_from_dict, issue_from_dict, state_from_dict
from tariffpilot.engine import DecisionEngine
from tariffpilot.exceptions import StateValidationError
from tariffpilot.models import (
    Action,
    ConsensusTier,
    ConversationStatus,
    EnContradiction,
    GirHierarchyViolation,
    IssueSeverity,
    PrecedentConflict,
    UnrecognizedIssue,
)

from tests.conftest import make_raw_state


def _current(**sub_documents) -> dict:
    raw = make_raw_state()
    raw["current_state"].update(sub_documents)
    return raw


# =============================================================================
# Top Level
# =============================================================================

class TestStateFromDict:

    def test_raw_snapshot(self, tables):
        state = state_from_dict(make_raw_state(), tables)

        assert state.report_id == "RPT-RAW-001"
        assert state.current_round == 4
        assert state.overall_confidence == 72
        assert state.status == ConversationStatus.ACTIVE
        assert state.current_state.product_readiness == 85
        assert state.current_state.candidate_headings == ("8471", "8473")

    def test_profile_aliases(self, tables):
        profile = state_from_dict(make_raw_state(), tables).current_state.product_profile

        assert profile.standardized_name == "Laptop computer"
        assert profile.function == "Portable automatic data processing machine"

    def test_null_scalars_fall_back_to_defaults(self, tables):
        state = state_from_dict(make_raw_state(current_round=None, max_rounds=None), tables)

        assert state.current_round == 0
        assert state.max_rounds == 10

    @pytest.mark.parametrize("data", [[], "state", 42])
    def test_not_a_mapping(self, tables, data):
        with pytest.raises(StateValidationError) as exc_info:
            state_from_dict(data, tables)

        assert exc_info.value.code == "TP_STATE_VALIDATION_ERROR"

    def test_unusable_counter(self, tables):
        with pytest.raises(StateValidationError) as exc_info:
            state_from_dict(make_raw_state(current_round="fourth"), tables)

        assert exc_info.value.report_id == "RPT-RAW-001"
        assert exc_info.value.details["errors"][0]["loc"] == ["current_round"]

    def test_unknown_status(self, tables):
        with pytest.raises(StateValidationError, match="Unknown conversation status"):
            state_from_dict(make_raw_state(status="paused"), tables)

    def test_malformed_rounds_skipped(self, tables):
        raw = make_raw_state(rounds=[
            {"round": 1, "agent": "ProductAnalyst", "action": "analyze_product"},
            {"agent": "HSLegalExpert"},
        ])

        state = state_from_dict(raw, tables)

        assert len(state.rounds) == 1
        assert state.rounds[0].agent == "ProductAnalyst"


# =============================================================================
# Sub-documents
# =============================================================================

class TestLeniency:

    def test_malformed_profile_is_not_provided(self, tables, caplog):
        caplog.set_level(logging.WARNING, logger="tariffpilot")

        state = state_from_dict(_current(product_profile={"materials": "aluminium"}), tables)

        assert state.current_state.product_profile is None
        assert state.current_state.product_readiness == 85
        assert any("Ignoring malformed product_profile" in r.getMessage() for r in caplog.records)

    def test_non_object_sub_document(self, tables):
        state = state_from_dict(_current(gir_decision="GIR1"), tables)

        assert state.current_state.gir_decision is None

    @pytest.mark.parametrize("readiness", ["high", True, None, [85]])
    def test_unusable_readiness_is_zero(self, tables, readiness):
        state = state_from_dict(_current(product_readiness=readiness), tables)

        assert state.current_state.product_readiness == 0

    def test_heading_shapes(self, tables):
        state = state_from_dict(
            _current(candidate_headings=["8471", {"heading": "8473"}, 8528, {"code": "x"}]),
            tables,
        )

        assert state.current_state.candidate_headings == ("8471", "8473", "8528")

    def test_headings_not_a_list(self, tables):
        state = state_from_dict(_current(candidate_headings="8471"), tables)

        assert state.current_state.candidate_headings == ()

    def test_composition_list_joined(self, tables):
        raw = _current(product_profile={
            "product_name": "Laptop",
            "material_composition": ["60% aluminium", "40% plastics"],
            "potential_gir_path": "GRI 1",
        })

        profile = state_from_dict(raw, tables).current_state.product_profile

        assert profile.material_composition == "60% aluminium, 40% plastics"
        assert profile.potential_gir_path == ("GRI 1",)

    def test_decision_aliases(self, tables):
        raw = _current(gir_decision={
            "classification": "8471.30",
            "gri_applied": "GRI 1",
            "audit_trail": None,
        })

        decision = state_from_dict(raw, tables).current_state.gir_decision

        assert decision.hs_code == "8471.30"
        assert decision.gir_applied == "GRI 1"
        assert decision.audit_trail == ()

    def test_legal_document_aliases(self, tables):
        raw = _current(legal_research={
            "en_documents": [{"hs_code": "8471", "content": "Portable machines."}],
            "notes": [{"number": 5, "text": "Chapter 84 note", "type": "Chapter Note"}],
        })

        research = state_from_dict(raw, tables).current_state.legal_research

        assert research.en_documents[0].heading == "8471"
        assert research.en_documents[0].text == "Portable machines."
        assert research.notes[0].number == "5"

    def test_precedents_with_consensus(self, tables):
        raw = _current(precedents={
            "bti_cases": [
                {"bti_number": "DE-BTI-1", "hs_code": "8471.30"},
                "not a case",
                {"reference": "DE-BTI-2", "classification": "8471.30", "issue_date": "someday"},
            ],
            "wco_opinions": None,
            "consensus": {
                "has_consensus": True,
                "consensus_code": "8471.30",
                "agreement_rate": 0.95,
                "total_cases": 1,
                "supporting_cases": [{"bti_number": "DE-BTI-1", "hs_code": "8471.30"}],
            },
        })

        precedents = state_from_dict(raw, tables).current_state.precedents

        assert [c.reference for c in precedents.bti_cases] == ["DE-BTI-1"]
        assert precedents.wco_opinions == ()
        assert precedents.consensus.tier == ConsensusTier.STRONG
        assert precedents.consensus.supporting_cases[0].reference == "DE-BTI-1"

    @pytest.mark.parametrize("score,expected", [(85.5, 86), (72.4, 72), (90, 90), ("high", None)])
    def test_readiness_score_coerced(self, tables, score, expected):
        raw = _current(product_profile={
            "product_name": "Laptop computer",
            "primary_function": "Portable automatic data processing machine",
            "readiness_score": score,
        })

        profile = state_from_dict(raw, tables).current_state.product_profile

        assert profile is not None
        assert profile.readiness_score == expected

    def test_fractional_readiness_score_keeps_product_stage(self, tables):
        raw = _current(
            product_profile={
                "product_name": "Laptop computer",
                "primary_function": "Portable automatic data processing machine",
                "material_composition": "60% aluminium, 40% plastics",
                "readiness_score": 85.5,
            },
            product_readiness=90,
        )

        decision = DecisionEngine(tables).decide(state_from_dict(raw, tables))

        assert decision.action == Action.FETCH_LEGAL_SOURCES

    def test_note_without_text_keeps_legal_research(self, tables, caplog):
        caplog.set_level(logging.WARNING, logger="tariffpilot")
        raw = _current(legal_research={
            "en_documents": [{"heading": "8471", "text": "Portable machines."}],
            "notes": [{"number": "2", "text": None}],
        })

        state = state_from_dict(raw, tables)

        research = state.current_state.legal_research
        assert research is not None
        assert research.notes[0].text == ""
        assert not any("legal_research" in r.getMessage() for r in caplog.records)
        assert DecisionEngine(tables).decide(state).action == Action.SEARCH_PRECEDENTS

    def test_malformed_legal_items_skipped(self, tables):
        raw = _current(legal_research={
            "en_documents": [{"heading": "8471", "text": "Portable machines."}, "8473", {"text": 5}],
            "notes": [{"number": "2", "text": "Note 2"}, None, {"text": ["a"]}],
            "verified_sources": [{"url": "https://example.org", "authority_tier": 1},
                                 {"authority_tier": "first"}],
        })

        research = state_from_dict(raw, tables).current_state.legal_research

        assert [d.heading for d in research.en_documents] == ["8471"]
        assert [n.number for n in research.notes] == ["2"]
        assert [s.authority_tier for s in research.verified_sources] == [1]

    def test_malformed_components_skipped(self, tables):
        raw = _current(product_profile={
            "product_name": "Gift set",
            "components_breakdown": [
                {"name": "Mug", "weight_percent": 70},
                {"name": "Tea", "weight_percent": "thirty"},
                "spoon",
            ],
            "materials": [{"material": "ceramic", "weight_percent": 70}, 12],
        })

        profile = state_from_dict(raw, tables).current_state.product_profile

        assert [c.name for c in profile.components_breakdown] == ["Mug"]
        assert [m.material for m in profile.materials] == ["ceramic"]

    def test_industry_data_not_a_mapping(self, tables):
        raw = _current(product_profile={
            "product_name": "Laptop computer",
            "industry_specific_data": "electronics",
        })

        profile = state_from_dict(raw, tables).current_state.product_profile

        assert profile.industry_specific_data is None

    def test_regulatory_requirements_stringified(self, tables):
        raw = _current(regulatory_status={"import_allowed": True, "requirements": ["CE", 2]})

        status = state_from_dict(raw, tables).current_state.regulatory_status

        assert status.requirements == ("CE", "2")


class TestPrecedentCaseAliases:

    def test_aliases_and_date_trimming(self):
        case = case_from_dict({
            "bti_number": "DE-BTI-123456",
            "hs_code": "8471.30",
            "authority": "EU BTI",
            "country": "DE",
            "issue_date": "2023-05-01T10:00:00Z",
        })

        assert case.reference == "DE-BTI-123456"
        assert case.classification_code == "8471.30"
        assert case.source == "EU BTI"
        assert case.country_code == "DE"
        assert case.date == date(2023, 5, 1)

    def test_description_fields_merged(self):
        case = case_from_dict({
            "reference": "FR123456-2023",
            "classification_code": "8471.30",
            "goods_description": "Portable computer",
            "classification_justification": "GRI 1 and Note 5",
        })

        assert case.description == "Portable computer GRI 1 and Note 5"

    def test_missing_code_is_empty(self):
        assert case_from_dict({"reference": "X"}).classification_code == ""


# =============================================================================
# Issues
# =============================================================================

class TestIssueMapping:

    def test_hierarchy_violation(self):
        issue = issue_from_dict({
            "type": "gir_hierarchy_violation",
            "severity": "HIGH",
            "description": "GIR3b before GIR1",
            "missing_state": "GIR1",
        })

        assert isinstance(issue, GirHierarchyViolation)
        assert issue.severity == IssueSeverity.HIGH
        assert issue.missing_state == "GIR1"

    def test_en_contradiction(self):
        issue = issue_from_dict({
            "type": "en_contradiction",
            "message": "Excluded by EN",
            "conflicting_heading": 8528,
        })

        assert isinstance(issue, EnContradiction)
        assert issue.description == "Excluded by EN"
        assert issue.conflicting_heading == "8528"

    def test_precedent_conflict_carries_case(self):
        issue = issue_from_dict({
            "type": "precedent_conflict",
            "bti_case": {"reference": "DE-BTI-1", "classification_code": "8473.30"},
        })

        assert isinstance(issue, PrecedentConflict)
        assert issue.bti_case.classification_code == "8473.30"

    def test_unknown_tag_keeps_extras(self):
        issue = issue_from_dict({
            "type": "en_condition",
            "severity": "critical",
            "conditions": ["provided that"],
        })

        assert isinstance(issue, UnrecognizedIssue)
        assert issue.type == "en_condition"
        assert issue.severity == IssueSeverity.MEDIUM
        assert issue.details == {"conditions": ["provided that"]}

    @pytest.mark.parametrize("raw", [42, "gir_hierarchy_violation", None])
    def test_malformed_issue_skipped(self, raw):
        assert issue_from_dict(raw) is None

    def test_issues_inside_validation_result(self, tables):
        raw = _current(validation_result={
            "passed": None,
            "issues": [{"type": "essential_character_incomplete"}, 42],
        })

        result = state_from_dict(raw, tables).current_state.validation_result

        assert result.passed is False
        assert [i.type for i in result.issues] == ["essential_character_incomplete"]
