"""
TariffPilot Lookup Tables

Immutable configuration the decision core is parameterised with. Built once
by the loader and passed explicitly into every scoring and matching
function; nothing in the core reads module-level constants.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from ..models.enums import InterpretiveRule, RuleTier


DEFAULT_HS_FORMAT = "DEFAULT"


# =============================================================================
# Scoring
# =============================================================================

@dataclass(frozen=True)
class Weights:
    product: float
    legal: float
    gir: float
    precedent: float
    validation: float


@dataclass(frozen=True)
class RuleEntry:
    """An interpretive rule with the labels that identify it."""
    rule: InterpretiveRule
    labels: tuple[str, ...]
    strength: int
    tier: RuleTier

    def matches(self, label: str) -> bool:
        lowered = label.lower()
        return any(candidate.lower() in lowered for candidate in self.labels)


@dataclass(frozen=True)
class ProductScoring:
    default_readiness: int
    material_percent_bonus: int
    essential_character_bonus: int
    industry_data_bonus: int
    industry_data_min_fields: int


@dataclass(frozen=True)
class LegalScoring:
    research_base: int
    documents_bonus: int
    substantial_document_bonus: int
    substantial_document_length: int
    notes_bonus: int
    section_note_bonus: int
    top_authority_tier: int
    per_top_source: int
    top_source_cap: int


@dataclass(frozen=True)
class GirScoring:
    default_strength: int
    strength_share: float
    audit_trail_min_entries: int
    audit_trail_bonus: int


@dataclass(frozen=True)
class PrecedentScoring:
    not_searched: int
    searched_base: int
    authority_opinion_bonus: int
    per_case: int
    case_cap: int
    high_agreement_rate: float
    high_agreement_bonus: int
    conflict_penalty: int


@dataclass(frozen=True)
class ValidationScoring:
    not_validated: int
    failed: int
    passed_default: int


@dataclass(frozen=True)
class Penalties:
    no_cases_found: int
    consensus_conflicts: int
    last_resort_rule: int
    per_validation_issue: int


@dataclass(frozen=True)
class Scoring:
    product: ProductScoring
    legal: LegalScoring
    gir: GirScoring
    precedent: PrecedentScoring
    validation: ValidationScoring
    penalties: Penalties


# =============================================================================
# Thresholds
# =============================================================================

@dataclass(frozen=True)
class Thresholds:
    product_readiness: int
    confidence_boost_below: int
    finalize_high: int
    finalize_min: int
    max_self_healing_attempts: int
    min_precedent_cases: int
    consensus_agreement: float
    consensus_strong: float
    consensus_weak: float
    factor_product: int
    factor_legal: int
    factor_gir: int
    factor_precedent: int


# =============================================================================
# Legal Text
# =============================================================================

@dataclass(frozen=True)
class LegalKeywords:
    includes: tuple[str, ...]
    excludes: tuple[str, ...]
    conditions: tuple[str, ...]
    essential_character: tuple[str, ...]
    composite: tuple[str, ...]


@dataclass(frozen=True)
class RuleKeywords:
    rule: str
    keywords: tuple[str, ...]
    weight: str


@dataclass(frozen=True)
class LegalMatchSettings:
    min_term_length: int
    min_shared_terms: int
    include_bonus: int
    exclude_penalty: int
    issue_impact: int
    confirmation_impact: int


# =============================================================================
# Questions
# =============================================================================

@dataclass(frozen=True)
class QuestionTemplates:
    templates: Mapping[str, str]
    fallback: str
    intent_clarification: tuple[str, ...]

    def question_for(self, field_name: str) -> str:
        template = self.templates.get(field_name)
        if template is not None:
            return template
        return self.fallback.format(field=field_name)


# =============================================================================
# Product Analysis
# =============================================================================

@dataclass(frozen=True)
class HsFormat:
    """
    National HS code layout: digit groups joined by dots.

    (4, 2, 2, 2) is "8471.30.00.10"; (4, 2) is the 6-digit "8471.30".
    """
    groups: tuple[int, ...]
    example: str

    @property
    def digits(self) -> int:
        return sum(self.groups)

    @property
    def pattern(self) -> str:
        return r"\.".join(rf"\d{{{size}}}" for size in self.groups)


@dataclass(frozen=True)
class ProfileFeedback:
    """Retry instructions for the analyst, keyed by profile finding code."""
    messages: Mapping[str, str]
    fallback: str

    def message_for(self, code: str, message: str) -> str:
        template = self.messages.get(code)
        if template is not None:
            return template
        return self.fallback.format(message=message)


# =============================================================================
# Precedents
# =============================================================================

@dataclass(frozen=True)
class RelevanceFactors:
    exact_match: int
    heading_match: int
    chapter_match: int
    keyword_match: int
    keyword_cap: int
    keyword_min_length: int
    recent: int
    recent_years: int
    top_authority: int
    regional: int
    normalization_divisor: int
    top_authority_sources: tuple[str, ...]
    regional_markers: tuple[str, ...]
    regional_countries: tuple[str, ...]

    @property
    def max_score(self) -> int:
        """
        Nominal maximum reported next to a score: exact and heading points,
        capped keyword points, recency and top authority (100 by default).
        The normalisation divisor is smaller, so normalised scores can
        exceed 100.
        """
        return (
            self.exact_match
            + self.heading_match
            + self.keyword_match * self.keyword_cap
            + self.recent
            + self.top_authority
        )


@dataclass(frozen=True)
class PrecedentImpact:
    matches_consensus: int
    conflicts_with_consensus: int
    no_consensus: int


# =============================================================================
# Tables
# =============================================================================

@dataclass(frozen=True)
class ClassificationTables:
    """
    Every lookup table the decision core depends on.

    Attributes:
        id: Pack identifier
        version: Pack version string
        schema_version: Schema version the pack was written against
        content_hash: SHA-256 of the validated pack content
    """
    id: str
    version: str
    schema_version: str
    content_hash: str
    weights: Weights
    rules: tuple[RuleEntry, ...]
    scoring: Scoring
    thresholds: Thresholds
    legal_keywords: LegalKeywords
    rule_keywords: tuple[RuleKeywords, ...]
    legal_match: LegalMatchSettings
    questions: QuestionTemplates
    relevance: RelevanceFactors
    precedent_impact: PrecedentImpact
    hs_formats: Mapping[str, HsFormat]
    profile_feedback: ProfileFeedback

    def resolve_rule(self, label: Optional[str]) -> Optional[RuleEntry]:
        """
        Resolve a free-text rule label ("GRI 3(b)", "GIR3b - essential
        character") to its rule entry. Rules are tried in table order.
        """
        if not label:
            return None
        for entry in self.rules:
            if entry.matches(label):
                return entry
        return None

    def rule_strength(self, label: Optional[str]) -> int:
        entry = self.resolve_rule(label)
        if entry is None:
            return self.scoring.gir.default_strength
        return entry.strength

    def is_last_resort(self, label: Optional[str]) -> bool:
        entry = self.resolve_rule(label)
        return entry is not None and entry.tier == RuleTier.LAST_RESORT

    def hs_format(self, country: Optional[str]) -> HsFormat:
        """Format for a destination country; unknown countries get DEFAULT."""
        if country and country.upper() in self.hs_formats:
            return self.hs_formats[country.upper()]
        return self.hs_formats[DEFAULT_HS_FORMAT]
