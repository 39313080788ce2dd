"""
TariffPilot Precedent Consensus Analyzer

Scores prior rulings for relevance to a target classification and detects
majority agreement vs. conflict among them.

Key features:
- Grouping by reported code, majority by group size
- Ties broken by first-encountered code (input order)
- Fixed additive relevance points, normalised without clamping
- Reference parsing for common ruling-number formats
"""
from __future__ import annotations

import re
from datetime import date
from typing import Optional, Sequence

from ..models import (
    CaseSummary,
    ConsensusResult,
    ConsensusTier,
    IssueSeverity,
    PrecedentCase,
    PrecedentConflict,
    PrecedentValidation,
    ReferenceInfo,
    RelevanceScore,
    UnrecognizedIssue,
    chapter_of,
    heading_of,
)
from ..tables import ClassificationTables, get_default_tables
from .confidence import round_half_up


UNKNOWN_CODE = "unknown"

REFERENCE_PATTERNS = (
    re.compile(r"^([A-Z]{2})-?BTI-?(\d+)", re.IGNORECASE),     # DE-BTI-123456, DEBTI123456
    re.compile(r"^([A-Z]{2})(\d{6,})", re.IGNORECASE),         # FR123456-2023
    re.compile(r"^BTI-?([A-Z]{2})-?(\d+)", re.IGNORECASE),     # BTI-NL-98765
)


def _code_of(case: PrecedentCase) -> str:
    return case.classification_code or UNKNOWN_CODE


def _same_heading(code_a: str, code_b: str) -> bool:
    heading = heading_of(code_a)
    return bool(heading) and heading == heading_of(code_b)


# =============================================================================
# Consensus
# =============================================================================

def consensus_tier(agreement_rate: float, tables: ClassificationTables) -> ConsensusTier:
    thresholds = tables.thresholds
    if agreement_rate >= thresholds.consensus_strong:
        return ConsensusTier.STRONG
    if agreement_rate >= thresholds.consensus_agreement:
        return ConsensusTier.MODERATE
    if agreement_rate >= thresholds.consensus_weak:
        return ConsensusTier.WEAK
    return ConsensusTier.NONE


def _consensus_analysis(
    tier: ConsensusTier,
    agreement_rate: float,
    consensus_code: str,
    conflict_count: int,
) -> str:
    percent = round_half_up(agreement_rate * 100)
    if tier == ConsensusTier.STRONG:
        text = f"Strong consensus ({percent}%) for {consensus_code}."
        if conflict_count > 0:
            text += f" {conflict_count} outlier(s) exist."
        return text
    if tier == ConsensusTier.MODERATE:
        return (
            f"Moderate consensus ({percent}%) for {consensus_code}. "
            f"{conflict_count} case(s) suggest alternative classifications."
        )
    if tier == ConsensusTier.WEAK:
        return (
            f"Weak consensus ({percent}%) for {consensus_code}. Significant variation "
            "in precedent decisions - careful analysis required."
        )
    return (
        "No clear consensus. Precedent cases are split across multiple codes. "
        "Expert review recommended."
    )


def analyze_consensus(
    cases: Sequence[PrecedentCase],
    target_code: str,
    tables: Optional[ClassificationTables] = None,
) -> ConsensusResult:
    """
    Majority agreement among cases.

    The consensus code is the largest group's code; on equal sizes the
    code seen first wins. agreement_rate = majority size / total, and
    consensus holds iff it reaches the agreement threshold (0.7). The
    target matches when it equals the consensus code or shares its
    4-digit heading.
    """
    tables = tables or get_default_tables()

    if not cases:
        return ConsensusResult(
            has_consensus=False,
            consensus_code=None,
            agreement_rate=0.0,
            total_cases=0,
            target_matches_consensus=False,
            tier=ConsensusTier.NONE,
            analysis="No precedent cases found",
        )

    groups: dict[str, list[PrecedentCase]] = {}
    for case in cases:
        groups.setdefault(_code_of(case), []).append(case)

    majority_code = ""
    majority_count = 0
    for code, members in groups.items():
        if len(members) > majority_count:
            majority_code, majority_count = code, len(members)

    total = len(cases)
    agreement_rate = majority_count / total
    conflicting = [c for c in cases if _code_of(c) != majority_code]
    tier = consensus_tier(agreement_rate, tables)

    return ConsensusResult(
        has_consensus=agreement_rate >= tables.thresholds.consensus_agreement,
        consensus_code=majority_code,
        agreement_rate=agreement_rate,
        total_cases=total,
        target_matches_consensus=(
            majority_code == target_code or _same_heading(majority_code, target_code)
        ),
        supporting_cases=tuple(CaseSummary.from_case(c) for c in groups[majority_code]),
        conflicting_cases=tuple(
            CaseSummary.from_case(
                c,
                conflict_reason=f"Classified as {_code_of(c)} instead of {majority_code}",
            )
            for c in conflicting
        ),
        tier=tier,
        analysis=_consensus_analysis(tier, agreement_rate, majority_code, len(conflicting)),
    )


# =============================================================================
# Relevance
# =============================================================================

def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return day.replace(year=day.year - years, day=28)


def _keywords(text: str, min_length: int) -> list[str]:
    return [k for k in text.lower().split() if len(k) >= min_length]


def score_relevance(
    case: PrecedentCase,
    target_code: str,
    product_keywords: str = "",
    tables: Optional[ClassificationTables] = None,
    as_of: Optional[date] = None,
) -> RelevanceScore:
    """
    Additive relevance of one case to a target code.

    Code match (exact > heading > chapter, only the best applies), keyword
    overlap with the case description, recency, and source authority.
    `normalized` divides by the fixed divisor (75) and is not capped.
    """
    tables = tables or get_default_tables()
    factors = tables.relevance
    as_of = as_of or date.today()

    score = 0
    details: list[str] = []

    code = case.classification_code or ""
    if code and code == target_code:
        score += factors.exact_match
        details.append("Exact code match")
    elif _same_heading(code, target_code):
        score += factors.heading_match
        details.append("Same 4-digit heading")
    elif chapter_of(code) and chapter_of(code) == chapter_of(target_code):
        score += factors.chapter_match
        details.append("Same chapter")

    description = (case.description or "").lower()
    matched = [
        k for k in _keywords(product_keywords, factors.keyword_min_length)
        if k in description
    ]
    if matched:
        score += factors.keyword_match * min(len(matched), factors.keyword_cap)
        details.append(f"{len(matched)} keyword matches")

    if case.date is not None and case.date > _years_before(as_of, factors.recent_years):
        score += factors.recent
        details.append(f"Recent (within {factors.recent_years} years)")

    source = case.source or ""
    country = (case.country_code or "").upper()
    if source in factors.top_authority_sources:
        score += factors.top_authority
        details.append(f"{source} source")
    elif any(marker in source for marker in factors.regional_markers) or (
        country in factors.regional_countries
    ):
        score += factors.regional
        details.append("Regional source")

    return RelevanceScore(
        score=score,
        max_score=factors.max_score,
        normalized=round_half_up(score / factors.normalization_divisor * 100),
        details=tuple(details),
    )


def rank_by_relevance(
    cases: Sequence[PrecedentCase],
    target_code: str,
    product_keywords: str = "",
    tables: Optional[ClassificationTables] = None,
    as_of: Optional[date] = None,
) -> list[tuple[PrecedentCase, RelevanceScore]]:
    """Cases with their relevance, highest score first (stable on ties)."""
    scored = [
        (case, score_relevance(case, target_code, product_keywords, tables, as_of))
        for case in cases
    ]
    return sorted(scored, key=lambda pair: pair[1].score, reverse=True)


# =============================================================================
# Reference Parsing
# =============================================================================

def parse_reference(reference: str) -> ReferenceInfo:
    """
    Extract issuing country and number from a ruling reference.

    Recognises DE-BTI-123456, DEBTI123456, FR123456-2023 and BTI-NL-98765;
    anything else is returned unparsed with country "XX".
    """
    for pattern in REFERENCE_PATTERNS:
        match = pattern.match(reference)
        if match:
            return ReferenceInfo(
                country_code=match.group(1).upper(),
                number=match.group(2),
                full_reference=reference,
                parsed=True,
            )
    return ReferenceInfo(
        country_code="XX",
        number=reference,
        full_reference=reference,
        parsed=False,
    )


# =============================================================================
# Validation and Context
# =============================================================================

def validate_against_precedents(
    code: str,
    cases: Sequence[PrecedentCase],
    tables: Optional[ClassificationTables] = None,
) -> PrecedentValidation:
    """
    Check a proposed code against precedent consensus.

    A code that misses an established consensus yields a high-severity
    PrecedentConflict citing the first supporting case; split precedents
    yield a medium-severity "precedent_no_consensus" issue.
    """
    tables = tables or get_default_tables()
    impact = tables.precedent_impact
    consensus = analyze_consensus(cases, code, tables)

    issues = []
    confirmations = []

    if consensus.has_consensus and not consensus.target_matches_consensus:
        cited = next(
            (c for c in cases if _code_of(c) == consensus.consensus_code), None
        )
        issues.append(PrecedentConflict(
            description=(
                f"Classification {code} conflicts with precedent consensus "
                f"{consensus.consensus_code}"
            ),
            severity=IssueSeverity.HIGH,
            bti_case=cited,
        ))

    if consensus.has_consensus and consensus.target_matches_consensus:
        percent = round_half_up(consensus.agreement_rate * 100)
        confirmations.append(
            f"Classification matches precedent consensus ({percent}% agreement)"
        )

    if consensus.has_conflicts and not consensus.has_consensus:
        issues.append(UnrecognizedIssue(
            raw_type="precedent_no_consensus",
            description=(
                "Precedent cases show no clear consensus - classification "
                "requires careful justification"
            ),
            severity=IssueSeverity.MEDIUM,
            details={
                "conflicting_cases": [c.to_dict() for c in consensus.conflicting_cases],
            },
        ))

    if consensus.target_matches_consensus:
        confidence_impact = impact.matches_consensus
    elif consensus.has_consensus:
        confidence_impact = impact.conflicts_with_consensus
    else:
        confidence_impact = impact.no_consensus

    return PrecedentValidation(
        valid=not any(i.severity == IssueSeverity.HIGH for i in issues),
        consensus=consensus,
        issues=tuple(issues),
        confirmations=tuple(confirmations),
        confidence_impact=confidence_impact,
    )


def build_precedent_context(
    cases: Sequence[PrecedentCase],
    target_code: str,
    product_keywords: str = "",
    tables: Optional[ClassificationTables] = None,
    as_of: Optional[date] = None,
) -> str:
    """Markdown summary of consensus and the most relevant cases, for collaborator prompts."""
    tables = tables or get_default_tables()
    consensus = analyze_consensus(cases, target_code, tables)

    lines = ["## Precedent Analysis", "", f"**Consensus Status:** {consensus.analysis}", ""]

    if consensus.supporting_cases:
        lines.append("**Supporting Cases:**")
        for summary in consensus.supporting_cases[:5]:
            issued = summary.date.isoformat() if summary.date else "date unknown"
            lines.append(
                f"- {summary.reference}: {summary.classification_code} "
                f"({summary.country_code or 'XX'}, {issued})"
            )
        lines.append("")

    if consensus.conflicting_cases:
        lines.append("**Conflicting Cases:**")
        for summary in consensus.conflicting_cases[:3]:
            lines.append(f"- {summary.reference}: {summary.conflict_reason}")
        lines.append("")

    ranked = rank_by_relevance(cases, target_code, product_keywords, tables, as_of)
    if ranked:
        lines.append("**Most Relevant Cases (by score):**")
        for case, relevance in ranked[:3]:
            lines.append(
                f"- {case.reference or 'Unknown'}: Score {relevance.normalized}/100 - "
                f"{', '.join(relevance.details)}"
            )

    return "\n".join(lines) + "\n"
