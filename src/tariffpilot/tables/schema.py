"""
TariffPilot Lookup Table Schemas

Pydantic models for validating lookup-table pack YAML/JSON files.

A tables pack carries every constant the decision core depends on: scoring
weights, interpretive-rule strengths, thresholds, keyword sets, question
templates, precedent relevance factors, national HS code formats and
analyst feedback messages. The schemas map to the frozen dataclasses in
tariffpilot.tables.loader.

Schema versioning:
- schema_version field tracks breaking changes
- Loaders check major-version compatibility
"""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0.0"


# =============================================================================
# Enums as Literals (for YAML validation)
# =============================================================================

InterpretiveRuleValue = Literal[
    "GIR1", "GIR2", "GIR2a", "GIR2b", "GIR3a", "GIR3b", "GIR3c", "GIR4", "GIR6"
]

RuleTierValue = Literal["primary", "subjective", "last_resort", "subheading"]

KeywordWeightValue = Literal["primary", "secondary", "fallback"]


# =============================================================================
# Scoring Schemas
# =============================================================================

class WeightsSchema(BaseModel):
    """Weights of the five confidence sub-scores. Must sum to 1.0."""
    product: float = Field(0.20, ge=0, le=1)
    legal: float = Field(0.25, ge=0, le=1)
    gir: float = Field(0.30, ge=0, le=1)
    precedent: float = Field(0.15, ge=0, le=1)
    validation: float = Field(0.10, ge=0, le=1)

    @model_validator(mode="after")
    def validate_sum(self) -> "WeightsSchema":
        total = self.product + self.legal + self.gir + self.precedent + self.validation
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"weights must sum to 1.0, got {total}")
        return self


class RuleSchema(BaseModel):
    """
    One interpretive rule.

    `labels` are the spellings that identify the rule inside a free-text
    gir_applied value, matched case-insensitively as substrings. Rules are
    tried in pack order, so more specific labels ("GIR2a") must come before
    labels they contain ("GIR2").
    """
    rule: InterpretiveRuleValue
    labels: list[str] = Field(..., min_length=1)
    strength: int = Field(..., ge=0, le=100)
    tier: RuleTierValue


class ProductScoringSchema(BaseModel):
    default_readiness: int = 50
    material_percent_bonus: int = 10
    essential_character_bonus: int = 10
    industry_data_bonus: int = 5
    industry_data_min_fields: int = 4


class LegalScoringSchema(BaseModel):
    research_base: int = 40
    documents_bonus: int = 20
    substantial_document_bonus: int = 10
    substantial_document_length: int = 500
    notes_bonus: int = 15
    section_note_bonus: int = 5
    top_authority_tier: int = 1
    per_top_source: int = 3
    top_source_cap: int = 10


class GirScoringSchema(BaseModel):
    default_strength: int = 70
    strength_share: float = Field(0.7, ge=0, le=1)
    audit_trail_min_entries: int = 2
    audit_trail_bonus: int = 5


class PrecedentScoringSchema(BaseModel):
    not_searched: int = 70
    searched_base: int = 50
    authority_opinion_bonus: int = 30
    per_case: int = 5
    case_cap: int = 20
    high_agreement_rate: float = 0.8
    high_agreement_bonus: int = 15
    conflict_penalty: int = 20


class ValidationScoringSchema(BaseModel):
    not_validated: int = 50
    failed: int = 20
    passed_default: int = 80


class PenaltiesSchema(BaseModel):
    no_cases_found: int = 5
    consensus_conflicts: int = 10
    last_resort_rule: int = 10
    per_validation_issue: int = 3


class ScoringSchema(BaseModel):
    product: ProductScoringSchema = Field(default_factory=ProductScoringSchema)
    legal: LegalScoringSchema = Field(default_factory=LegalScoringSchema)
    gir: GirScoringSchema = Field(default_factory=GirScoringSchema)
    precedent: PrecedentScoringSchema = Field(default_factory=PrecedentScoringSchema)
    validation: ValidationScoringSchema = Field(default_factory=ValidationScoringSchema)
    penalties: PenaltiesSchema = Field(default_factory=PenaltiesSchema)


# =============================================================================
# Policy Thresholds
# =============================================================================

class ThresholdsSchema(BaseModel):
    """Stage-advancement and factor-analysis thresholds."""
    product_readiness: int = 80
    confidence_boost_below: int = 70
    finalize_high: int = 80
    finalize_min: int = 60
    max_self_healing_attempts: int = 3
    min_precedent_cases: int = 2

    consensus_agreement: float = Field(0.7, ge=0, le=1)
    consensus_strong: float = Field(0.9, ge=0, le=1)
    consensus_weak: float = Field(0.5, ge=0, le=1)

    factor_product: int = 80
    factor_legal: int = 70
    factor_gir: int = 70
    factor_precedent: int = 60

    @model_validator(mode="after")
    def validate_ordering(self) -> "ThresholdsSchema":
        if self.finalize_min > self.finalize_high:
            raise ValueError("finalize_min must not exceed finalize_high")
        if not self.consensus_weak <= self.consensus_agreement <= self.consensus_strong:
            raise ValueError(
                "consensus thresholds must satisfy weak <= agreement <= strong"
            )
        return self


# =============================================================================
# Keyword Sets
# =============================================================================

class LegalKeywordsSchema(BaseModel):
    """Phrases that place a sentence in a category."""
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    conditions: list[str] = Field(default_factory=list)
    essential_character: list[str] = Field(default_factory=list)
    composite: list[str] = Field(default_factory=list)

    @field_validator("*")
    @classmethod
    def lowercase(cls, v: list[str]) -> list[str]:
        return [k.lower() for k in v]


class RuleKeywordsSchema(BaseModel):
    """Keywords whose presence makes a text relevant to a rule."""
    rule: str
    keywords: list[str] = Field(..., min_length=1)
    weight: KeywordWeightValue

    @field_validator("keywords")
    @classmethod
    def lowercase(cls, v: list[str]) -> list[str]:
        return [k.lower() for k in v]


class LegalMatchSchema(BaseModel):
    min_term_length: int = 5
    min_shared_terms: int = 2
    include_bonus: int = 5
    exclude_penalty: int = 20
    issue_impact: int = 10
    confirmation_impact: int = 5


# =============================================================================
# Questions
# =============================================================================

class QuestionsSchema(BaseModel):
    """Question templates keyed by missing product field."""
    templates: dict[str, str] = Field(default_factory=dict)
    fallback: str = "Please provide details about: {field}"
    intent_clarification: list[str] = Field(default_factory=list)

    @field_validator("fallback")
    @classmethod
    def fallback_has_placeholder(cls, v: str) -> str:
        if "{field}" not in v:
            raise ValueError("fallback template must contain '{field}'")
        return v


# =============================================================================
# Product Analysis
# =============================================================================

class HsFormatSchema(BaseModel):
    """Digit groups of a national HS code, e.g. [4, 2, 2] for 8471.30.00."""
    groups: list[int] = Field(..., min_length=1)
    example: str

    @field_validator("groups")
    @classmethod
    def positive_groups(cls, v: list[int]) -> list[int]:
        if any(size <= 0 for size in v):
            raise ValueError("digit groups must be positive")
        return v

    @model_validator(mode="after")
    def example_fits_groups(self) -> "HsFormatSchema":
        sizes = [len(part) for part in self.example.split(".")]
        if sizes != self.groups:
            raise ValueError(f"example {self.example!r} does not match groups {self.groups}")
        return self


def _default_hs_formats() -> dict[str, HsFormatSchema]:
    return {"DEFAULT": HsFormatSchema(groups=[4, 2], example="8471.30")}


class ProfileFeedbackSchema(BaseModel):
    """Analyst retry instructions keyed by profile finding code."""
    messages: dict[str, str] = Field(default_factory=dict)
    fallback: str = "• {message}"

    @field_validator("fallback")
    @classmethod
    def fallback_has_placeholder(cls, v: str) -> str:
        if "{message}" not in v:
            raise ValueError("fallback template must contain '{message}'")
        return v


# =============================================================================
# Precedent Relevance
# =============================================================================

class RelevanceSchema(BaseModel):
    """Additive points for ranking a precedent case against a target code."""
    exact_match: int = 30
    heading_match: int = 20
    chapter_match: int = 10
    keyword_match: int = 5
    keyword_cap: int = 5
    keyword_min_length: int = 4
    recent: int = 10
    recent_years: int = 3
    top_authority: int = 15
    regional: int = 5
    normalization_divisor: int = Field(75, gt=0)
    top_authority_sources: list[str] = Field(default_factory=lambda: ["WCO"])
    regional_markers: list[str] = Field(default_factory=lambda: ["EU"])
    regional_countries: list[str] = Field(default_factory=list)

    @field_validator("regional_countries")
    @classmethod
    def uppercase_countries(cls, v: list[str]) -> list[str]:
        return [c.upper() for c in v]


class PrecedentImpactSchema(BaseModel):
    """Confidence impact of checking a code against precedent consensus."""
    matches_consensus: int = 10
    conflicts_with_consensus: int = -15
    no_consensus: int = -5


# =============================================================================
# Top-level Pack
# =============================================================================

class TablesPackSchema(BaseModel):
    """Top-level schema for a lookup-table pack YAML/JSON file."""
    schema_version: str = Field(SCHEMA_VERSION, description="Schema version for compatibility")
    id: str = Field(..., description="Pack identifier")
    version: str = Field(..., description="Pack version string")
    description: Optional[str] = None

    weights: WeightsSchema = Field(default_factory=WeightsSchema)
    rules: list[RuleSchema] = Field(..., min_length=1)
    scoring: ScoringSchema = Field(default_factory=ScoringSchema)
    thresholds: ThresholdsSchema = Field(default_factory=ThresholdsSchema)
    legal_keywords: LegalKeywordsSchema = Field(default_factory=LegalKeywordsSchema)
    rule_keywords: list[RuleKeywordsSchema] = Field(default_factory=list)
    legal_match: LegalMatchSchema = Field(default_factory=LegalMatchSchema)
    questions: QuestionsSchema = Field(default_factory=QuestionsSchema)
    relevance: RelevanceSchema = Field(default_factory=RelevanceSchema)
    precedent_impact: PrecedentImpactSchema = Field(default_factory=PrecedentImpactSchema)
    hs_formats: dict[str, HsFormatSchema] = Field(default_factory=_default_hs_formats)
    profile_feedback: ProfileFeedbackSchema = Field(default_factory=ProfileFeedbackSchema)

    @field_validator("hs_formats")
    @classmethod
    def uppercase_countries(cls, v: dict[str, HsFormatSchema]) -> dict[str, HsFormatSchema]:
        formats = {country.upper(): fmt for country, fmt in v.items()}
        if "DEFAULT" not in formats:
            raise ValueError("hs_formats must define a DEFAULT format")
        return formats

    @model_validator(mode="after")
    def validate_unique_rules(self) -> "TablesPackSchema":
        seen: set[str] = set()
        for rule in self.rules:
            if rule.rule in seen:
                raise ValueError(f"Duplicate rule in rule table: {rule.rule}")
            seen.add(rule.rule)
        return self


# =============================================================================
# Validation Functions
# =============================================================================

def validate_tables_pack(data: dict[str, Any]) -> TablesPackSchema:
    """
    Validate a tables pack dictionary against the schema.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return TablesPackSchema.model_validate(data)


def check_schema_version(data: dict[str, Any]) -> bool:
    """Check major-version compatibility of a pack's schema_version."""
    pack_version = str(data.get("schema_version", SCHEMA_VERSION))
    pack_major = pack_version.split(".")[0]
    current_major = SCHEMA_VERSION.split(".")[0]
    return pack_major == current_major
