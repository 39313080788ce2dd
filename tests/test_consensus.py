"""
Tests for precedent consensus and relevance.

Validates:
- Majority grouping, first-seen tie-breaking and tiers
- Heading-level target matching
- Additive relevance points and unclamped normalisation
- Reference parsing formats
- Validation of a proposed code against consensus
"""
from __future__ import annotations

from datetime import date

import pytest

from tariffpilot.engine import (
    analyze_consensus,
    build_precedent_context,
    consensus_tier,
    parse_reference,
    rank_by_relevance,
    score_relevance,
    validate_against_precedents,
)
from tariffpilot.models import ConsensusTier, IssueSeverity, PrecedentConflict

from tests.conftest import make_case, make_cases


AS_OF = date(2024, 6, 1)


# =============================================================================
# Consensus
# =============================================================================

class TestAnalyzeConsensus:

    def test_no_cases(self, tables):
        result = analyze_consensus([], "8471.30", tables)

        assert result.has_consensus is False
        assert result.consensus_code is None
        assert result.agreement_rate == 0.0
        assert result.total_cases == 0
        assert result.analysis == "No precedent cases found"
        assert result.tier == ConsensusTier.NONE

    def test_strong_consensus_with_outlier(self, tables):
        cases = make_cases(*(["8471.30"] * 9 + ["8473.30"]))

        result = analyze_consensus(cases, "8471.30", tables)

        assert result.has_consensus is True
        assert result.consensus_code == "8471.30"
        assert result.agreement_rate == pytest.approx(0.9)
        assert result.tier == ConsensusTier.STRONG
        assert result.analysis == "Strong consensus (90%) for 8471.30. 1 outlier(s) exist."
        assert len(result.supporting_cases) == 9
        assert len(result.conflicting_cases) == 1

    def test_unanimous_consensus_has_no_outlier_note(self, tables):
        result = analyze_consensus(make_cases("8471.30", "8471.30"), "8471.30", tables)

        assert result.analysis == "Strong consensus (100%) for 8471.30."
        assert result.has_conflicts is False

    def test_moderate_consensus(self, tables):
        cases = make_cases("8471.30", "8471.30", "8471.30", "8473.30")

        result = analyze_consensus(cases, "8471.30", tables)

        assert result.has_consensus is True
        assert result.tier == ConsensusTier.MODERATE
        assert result.analysis == (
            "Moderate consensus (75%) for 8471.30. "
            "1 case(s) suggest alternative classifications."
        )

    def test_weak_agreement_is_not_consensus(self, tables):
        cases = make_cases("8471.30", "8471.30", "8473.30", "8517.62")

        result = analyze_consensus(cases, "8471.30", tables)

        assert result.has_consensus is False
        assert result.tier == ConsensusTier.WEAK
        assert result.analysis.startswith("Weak consensus (50%) for 8471.30.")

    def test_two_thirds_majority_is_weak(self, tables):
        cases = make_cases("8471.30", "8471.30", "8517.12")

        result = analyze_consensus(cases, "8471.30", tables)

        assert result.consensus_code == "8471.30"
        assert result.agreement_rate == pytest.approx(2 / 3, abs=1e-3)
        assert result.has_consensus is False
        assert result.tier == ConsensusTier.WEAK
        assert result.target_matches_consensus is True
        assert [c.classification_code for c in result.conflicting_cases] == ["8517.12"]

    @pytest.mark.parametrize("codes", [
        ("8471.30", "8471.30", "8517.12"),
        ("8471.30", "8473.30", "8517.12"),
        ("8471.30", "8471.30", "8471.30", "8473.30", "8517.12"),
        ("8473.30", "8471.30", "8471.30", "8473.30"),
    ])
    def test_majority_case_never_lowers_rate(self, tables, codes):
        before = analyze_consensus(make_cases(*codes), "8471.30", tables)

        after = analyze_consensus(make_cases(*codes, before.consensus_code), "8471.30", tables)

        assert after.consensus_code == before.consensus_code
        assert after.agreement_rate >= before.agreement_rate

    @pytest.mark.parametrize("codes", [
        ("8471.30",),
        ("8471.30", "8471.30", "8517.12"),
        ("8471.30", "8473.30", "8517.12"),
        ("8473.30", "8471.30", "8471.30", "8473.30"),
    ])
    def test_new_code_case_never_raises_rate(self, tables, codes):
        before = analyze_consensus(make_cases(*codes), "8471.30", tables)

        after = analyze_consensus(make_cases(*codes, "9999.99"), "8471.30", tables)

        assert after.agreement_rate <= before.agreement_rate

    def test_split_cases_have_no_consensus(self, tables):
        cases = make_cases("8471.30", "8473.30", "8517.62")

        result = analyze_consensus(cases, "8471.30", tables)

        assert result.tier == ConsensusTier.NONE
        assert result.analysis.startswith("No clear consensus.")

    def test_tie_goes_to_first_seen_code(self, tables):
        cases = make_cases("8473.30", "8471.30", "8471.30", "8473.30")

        result = analyze_consensus(cases, "8471.30", tables)

        assert result.consensus_code == "8473.30"
        assert result.agreement_rate == 0.5

    def test_target_matches_on_shared_heading(self, tables):
        result = analyze_consensus(make_cases("8471.30", "8471.30"), "8471.41", tables)

        assert result.target_matches_consensus is True

    def test_target_in_other_heading_does_not_match(self, tables):
        result = analyze_consensus(make_cases("8471.30", "8471.30"), "8473.30", tables)

        assert result.target_matches_consensus is False

    def test_conflict_reasons(self, tables):
        result = analyze_consensus(make_cases("8471.30", "8471.30", "8473.30"), "8471.30", tables)

        assert result.conflicting_cases[0].conflict_reason == (
            "Classified as 8473.30 instead of 8471.30"
        )

    def test_missing_code_groups_as_unknown(self, tables):
        cases = make_cases("", "", "8471.30")

        result = analyze_consensus(cases, "8471.30", tables)

        assert result.consensus_code == "unknown"

    @pytest.mark.parametrize("rate,tier", [
        (1.0, ConsensusTier.STRONG),
        (0.9, ConsensusTier.STRONG),
        (0.75, ConsensusTier.MODERATE),
        (0.7, ConsensusTier.MODERATE),
        (0.5, ConsensusTier.WEAK),
        (0.49, ConsensusTier.NONE),
    ])
    def test_tier_thresholds(self, tables, rate, tier):
        assert consensus_tier(rate, tables) == tier


# =============================================================================
# Relevance
# =============================================================================

class TestScoreRelevance:

    def test_all_factors(self, tables):
        case = make_case(
            issued=date(2023, 1, 15),
            description="Laptop computer with aluminium housing",
        )

        result = score_relevance(
            case, "8471.30", "laptop computer aluminium", tables, as_of=AS_OF
        )

        assert result.score == 60
        assert result.normalized == 80
        assert result.max_score == 100
        assert result.details == (
            "Exact code match",
            "3 keyword matches",
            "Recent (within 3 years)",
            "Regional source",
        )

    @pytest.mark.parametrize("code,points,detail", [
        ("8471.30", 30, "Exact code match"),
        ("8471.41", 20, "Same 4-digit heading"),
        ("8473.30", 10, "Same chapter"),
    ])
    def test_best_code_match_only(self, tables, code, points, detail):
        case = make_case(classification_code=code, source=None, country_code=None)

        result = score_relevance(case, "8471.30", tables=tables, as_of=AS_OF)

        assert result.score == points
        assert result.details == (detail,)

    def test_unrelated_code_scores_nothing(self, tables):
        case = make_case(classification_code="8517.62", source=None, country_code=None)

        result = score_relevance(case, "8471.30", tables=tables, as_of=AS_OF)

        assert result.score == 0
        assert result.details == ()

    def test_world_authority_source(self, tables):
        case = make_case(source="WCO", country_code=None)

        result = score_relevance(case, "8471.30", tables=tables, as_of=AS_OF)

        assert result.score == 45
        assert "WCO source" in result.details

    def test_regional_by_country_code(self, tables):
        case = make_case(source=None, country_code="fr")

        result = score_relevance(case, "8471.30", tables=tables, as_of=AS_OF)

        assert result.score == 35

    def test_keyword_points_capped(self, tables):
        case = make_case(
            source=None,
            country_code=None,
            description="portable laptop computer aluminium keyboard display battery",
        )
        keywords = "portable laptop computer aluminium keyboard display battery"

        result = score_relevance(case, "8471.30", keywords, tables, as_of=AS_OF)

        assert result.score == 30 + 25
        assert "7 keyword matches" in result.details

    def test_short_keywords_ignored(self, tables):
        case = make_case(source=None, country_code=None, description="usb pc hub")

        result = score_relevance(case, "8517.62", "usb pc hub", tables, as_of=AS_OF)

        assert result.score == 0

    def test_recency_is_strict(self, tables):
        case = make_case(source=None, country_code=None, issued=date(2021, 6, 1))

        result = score_relevance(case, "8517.62", tables=tables, as_of=AS_OF)

        assert result.score == 0

    def test_normalized_is_not_capped(self, tables):
        case = make_case(
            source="WCO",
            country_code=None,
            issued=date(2024, 1, 1),
            description="portable laptop computer aluminium keyboard",
        )

        result = score_relevance(
            case, "8471.30", "portable laptop computer aluminium keyboard", tables, as_of=AS_OF
        )

        assert result.score == 80
        assert result.normalized == 107


class TestRankByRelevance:

    def test_highest_score_first(self, tables):
        chapter = make_case(reference="A", classification_code="8473.30", source=None, country_code=None)
        exact = make_case(reference="B", classification_code="8471.30", source=None, country_code=None)
        heading = make_case(reference="C", classification_code="8471.41", source=None, country_code=None)

        ranked = rank_by_relevance([chapter, exact, heading], "8471.30", tables=tables, as_of=AS_OF)

        assert [case.reference for case, _ in ranked] == ["B", "C", "A"]

    def test_ties_keep_input_order(self, tables):
        first = make_case(reference="first", source=None, country_code=None)
        second = make_case(reference="second", source=None, country_code=None)

        ranked = rank_by_relevance([first, second], "8471.30", tables=tables, as_of=AS_OF)

        assert [case.reference for case, _ in ranked] == ["first", "second"]


# =============================================================================
# References
# =============================================================================

class TestParseReference:

    @pytest.mark.parametrize("reference,country,number", [
        ("DE-BTI-123456", "DE", "123456"),
        ("DEBTI123456", "DE", "123456"),
        ("FR123456-2023", "FR", "123456"),
        ("BTI-NL-98765", "NL", "98765"),
        ("nl-bti-4242", "NL", "4242"),
    ])
    def test_known_formats(self, reference, country, number):
        info = parse_reference(reference)

        assert info.parsed is True
        assert info.country_code == country
        assert info.number == number
        assert info.full_reference == reference

    def test_unknown_format(self):
        info = parse_reference("Ruling 2023/17")

        assert info.parsed is False
        assert info.country_code == "XX"
        assert info.number == "Ruling 2023/17"


# =============================================================================
# Validation and Context
# =============================================================================

class TestValidateAgainstPrecedents:

    def test_matching_consensus_confirms(self, tables):
        cases = make_cases("8471.30", "8471.30", "8471.30", "8473.30")

        result = validate_against_precedents("8471.30", cases, tables)

        assert result.valid is True
        assert result.issues == ()
        assert result.confirmations == (
            "Classification matches precedent consensus (75% agreement)",
        )
        assert result.confidence_impact == 10

    def test_conflicting_with_consensus(self, tables):
        cases = make_cases("8471.30", "8471.30", "8471.30")

        result = validate_against_precedents("8517.62", cases, tables)

        assert result.valid is False
        assert result.confidence_impact == -15
        issue = result.issues[0]
        assert isinstance(issue, PrecedentConflict)
        assert issue.severity == IssueSeverity.HIGH
        assert issue.bti_case == cases[0]

    def test_split_precedents_flagged(self, tables):
        cases = make_cases("8471.30", "8473.30", "8517.62")

        result = validate_against_precedents("9999.00", cases, tables)

        assert result.valid is True
        assert result.confidence_impact == -5
        assert [i.type for i in result.issues] == ["precedent_no_consensus"]
        assert result.issues[0].severity == IssueSeverity.MEDIUM

    def test_no_cases(self, tables):
        result = validate_against_precedents("8471.30", [], tables)

        assert result.issues == ()
        assert result.confidence_impact == -5
        assert result.to_dict()["consensus"]["analysis"] == "No precedent cases found"


class TestPrecedentContext:

    def test_context_lists_consensus_and_cases(self, tables):
        cases = make_cases("8471.30", "8471.30", "8473.30")

        text = build_precedent_context(cases, "8471.30", tables=tables, as_of=AS_OF)

        assert text.startswith("## Precedent Analysis\n")
        assert "**Consensus Status:** Weak consensus (67%) for 8471.30." in text
        assert "**Supporting Cases:**" in text
        assert "- DE-BTI-100003: Classified as 8473.30 instead of 8471.30" in text
        assert "**Most Relevant Cases (by score):**" in text

    def test_empty_context(self, tables):
        text = build_precedent_context([], "8471.30", tables=tables, as_of=AS_OF)

        assert "**Consensus Status:** No precedent cases found" in text
        assert "Supporting Cases" not in text
