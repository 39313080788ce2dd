"""
TariffPilot Legal-Text Matcher

Parses explanatory-note text into categorised statements and cross-checks
a product against them.

Key features:
- Sentence split on '.' or ';' followed by whitespace
- Multi-category membership by keyword set (categories overlap)
- Keywords match as substrings ("predominant" hits "predominantly");
  the short condition words "if", "when" and "where" match whole words
  only, so "if" does not fire inside "classified"
- Rule relevance by keyword hits over the whole text
"""
from __future__ import annotations

import re
import string
from functools import lru_cache
from typing import Iterable, Optional, Sequence

from ..models import (
    EnContradiction,
    IssueSeverity,
    LegalMatch,
    LegalNote,
    LegalValidation,
    ParsedLegalText,
    ProductProfile,
    RuleRelevance,
    UnrecognizedIssue,
    heading_of,
)
from ..tables import ClassificationTables, get_default_tables


SENTENCE_SPLIT = re.compile(r"[.;]\s+")
MIN_SENTENCE_LENGTH = 10

NOTE_PATTERN = re.compile(r"(?:Note|Notes?)\s*(\d+)[.:\s]+([^.]{20,500})", re.IGNORECASE)
SUB_NOTE_PATTERN = re.compile(r"\(([a-z])\)[.:\s]+([^;]{20,300})", re.IGNORECASE)

EXCERPT_LENGTH = 100
CONDITION_LENGTH = 200


WHOLE_WORD_KEYWORDS = frozenset({"if", "when", "where"})


@lru_cache(maxsize=32)
def _word_pattern(keyword: str) -> re.Pattern:
    return re.compile(r"(?<!\w)" + re.escape(keyword) + r"(?!\w)")


def _contains_phrase(text: str, keyword: str) -> bool:
    """`text` must already be lowercase."""
    if keyword in WHOLE_WORD_KEYWORDS:
        return _word_pattern(keyword).search(text) is not None
    return keyword in text


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(_contains_phrase(text, k) for k in keywords)


# =============================================================================
# Parsing
# =============================================================================

def split_sentences(text: str) -> list[str]:
    return [
        s.strip() for s in SENTENCE_SPLIT.split(text)
        if len(s) > MIN_SENTENCE_LENGTH
    ]


def parse_legal_text(
    text: Optional[str],
    heading: Optional[str] = None,
    tables: Optional[ClassificationTables] = None,
) -> ParsedLegalText:
    """
    Split legal text into inclusion, exclusion, condition,
    essential-character and composite statements, and score its relevance
    to each interpretive rule.
    """
    if not text:
        return ParsedLegalText(heading=heading)

    tables = tables or get_default_tables()
    keywords = tables.legal_keywords

    includes: list[str] = []
    excludes: list[str] = []
    conditions: list[str] = []
    essential: list[str] = []
    composite: list[str] = []

    for sentence in split_sentences(text):
        lower = sentence.lower()
        if _contains_any(lower, keywords.includes):
            includes.append(sentence)
        if _contains_any(lower, keywords.excludes):
            excludes.append(sentence)
        if _contains_any(lower, keywords.conditions):
            conditions.append(sentence)
        if _contains_any(lower, keywords.essential_character):
            essential.append(sentence)
        if _contains_any(lower, keywords.composite):
            composite.append(sentence)

    return ParsedLegalText(
        heading=heading,
        includes=tuple(includes),
        excludes=tuple(excludes),
        conditions=tuple(conditions),
        essential_character_guidance=tuple(essential),
        composite=tuple(composite),
        rule_relevance=score_rule_relevance(text, tables),
        raw_text=text,
    )


def score_rule_relevance(
    text: str,
    tables: ClassificationTables,
) -> tuple[RuleRelevance, ...]:
    """Keyword hits per rule, rules without hits omitted, most hits first."""
    lower = text.lower()
    scored = []
    for entry in tables.rule_keywords:
        hits = sum(1 for k in entry.keywords if _contains_phrase(lower, k))
        if hits > 0:
            scored.append(RuleRelevance(rule=entry.rule, score=hits, weight=entry.weight))
    scored.sort(key=lambda r: r.score, reverse=True)
    return tuple(scored)


def extract_legal_notes(text: str, source: str) -> tuple[LegalNote, ...]:
    """
    Numbered notes ("Note 2. ...") and lettered sub-notes ("(a) ...") found
    in Section or Chapter text. Note type follows the source label.
    """
    note_type = "Section Note" if "Section" in source else "Chapter Note"
    notes = [
        LegalNote(
            number=match.group(1),
            text=match.group(2).strip(),
            type=note_type,
            source=source,
        )
        for match in NOTE_PATTERN.finditer(text)
    ]
    notes.extend(
        LegalNote(
            number=match.group(1),
            text=match.group(2).strip(),
            type="Sub-note",
            source=source,
        )
        for match in SUB_NOTE_PATTERN.finditer(text)
    )
    return tuple(notes)


# =============================================================================
# Matching
# =============================================================================

def _product_terms(profile: ProductProfile) -> str:
    parts = [
        profile.standardized_name,
        profile.function,
        profile.material_composition,
        profile.essential_character,
    ]
    return " ".join(p for p in parts if p).lower()


def _shared_terms(sentence: str, product_terms: str, min_length: int) -> int:
    count = 0
    for token in sentence.lower().split():
        term = token.strip(string.punctuation)
        if len(term) >= min_length and term in product_terms:
            count += 1
    return count


def _excerpt(sentence: str) -> str:
    return sentence[:EXCERPT_LENGTH] + "..."


def check_legal_match(
    profile: ProductProfile,
    parsed: ParsedLegalText,
    tables: Optional[ClassificationTables] = None,
) -> LegalMatch:
    """
    Cross-check a product's descriptive terms against parsed statements.

    An inclusion or exclusion sentence matches when it shares at least two
    significant terms (longer than four characters) with the product.
    Each matched inclusion adds the inclusion bonus, each matched exclusion
    subtracts the exclusion penalty. Conditions are listed for
    verification without scoring.
    """
    tables = tables or get_default_tables()
    settings = tables.legal_match
    terms = _product_terms(profile)

    matched_includes = [
        s for s in parsed.includes
        if _shared_terms(s, terms, settings.min_term_length) >= settings.min_shared_terms
    ]
    matched_excludes = [
        s for s in parsed.excludes
        if _shared_terms(s, terms, settings.min_term_length) >= settings.min_shared_terms
    ]

    notes = [f'Product matches legal inclusion: "{_excerpt(s)}"' for s in matched_includes]
    notes.extend(
        f'WARNING: Product may match legal exclusion: "{_excerpt(s)}"'
        for s in matched_excludes
    )

    return LegalMatch(
        matched_includes=tuple(matched_includes),
        matched_excludes=tuple(matched_excludes),
        condition_issues=tuple(c[:CONDITION_LENGTH] for c in parsed.conditions),
        confidence_adjustment=(
            len(matched_includes) * settings.include_bonus
            - len(matched_excludes) * settings.exclude_penalty
        ),
        notes=tuple(notes),
    )


def validate_against_legal_text(
    code: str,
    profile: ProductProfile,
    parsed_texts: Sequence[ParsedLegalText],
    tables: Optional[ClassificationTables] = None,
) -> LegalValidation:
    """
    Check a proposed code against the parsed texts of its own heading.

    A matched exclusion yields a high-severity EnContradiction naming the
    heading and the exclusion sentence; conditions yield a medium-severity
    "en_condition" issue. Any issue costs the issue impact, otherwise any
    confirmation earns the confirmation impact.
    """
    tables = tables or get_default_tables()
    settings = tables.legal_match
    target_heading = heading_of(code)

    issues = []
    confirmations = []

    for parsed in parsed_texts:
        if not parsed.heading or heading_of(parsed.heading) != target_heading:
            continue

        match = check_legal_match(profile, parsed, tables)

        if match.matches_excludes:
            issues.append(EnContradiction(
                description=(
                    f"Product may be excluded from {parsed.heading} based on "
                    "explanatory notes"
                ),
                severity=IssueSeverity.HIGH,
                conflicting_heading=parsed.heading,
                note_text=match.matched_excludes[0],
            ))

        if match.matches_includes:
            confirmations.append(
                f"Product matches inclusion criteria for {parsed.heading}"
            )

        if match.condition_issues:
            issues.append(UnrecognizedIssue(
                raw_type="en_condition",
                description="Explanatory notes contain conditions that need verification",
                severity=IssueSeverity.MEDIUM,
                details={"conditions": list(match.condition_issues)},
            ))

    if issues:
        impact = -settings.issue_impact
    elif confirmations:
        impact = settings.confirmation_impact
    else:
        impact = 0

    return LegalValidation(
        valid=not any(i.severity == IssueSeverity.HIGH for i in issues),
        issues=tuple(issues),
        confirmations=tuple(confirmations),
        confidence_impact=impact,
    )


def build_legal_context(parsed_texts: Sequence[ParsedLegalText]) -> str:
    """Markdown digest of parsed texts, for collaborator prompts."""
    lines = ["## Relevant Explanatory Notes", ""]

    for parsed in parsed_texts:
        lines.append(f"### {parsed.heading or 'Unknown heading'}")

        if parsed.includes:
            lines.append("**This heading INCLUDES:**")
            lines.extend(f"- {s}" for s in parsed.includes[:5])

        if parsed.excludes:
            lines.append("**This heading EXCLUDES:**")
            lines.extend(f"- {s}" for s in parsed.excludes[:5])

        if parsed.essential_character_guidance:
            lines.append("**Essential Character Guidance:**")
            lines.extend(f"- {s}" for s in parsed.essential_character_guidance[:3])

        if parsed.rule_relevance:
            ranked = ", ".join(f"{r.rule} (score: {r.score})" for r in parsed.rule_relevance)
            lines.append(f"**Rule Relevance:** {ranked}")

        lines.append("")

    return "\n".join(lines) + "\n"
