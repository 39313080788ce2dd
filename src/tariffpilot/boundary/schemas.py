"""
TariffPilot Boundary Schemas

Pydantic models for raw conversation snapshots as collaborators and
runners send them. Field aliases written by different collaborators are
accepted here and nowhere else:

- gir_applied / gri_applied
- hs_code / classification (decisions); classification_code / hs_code /
  classification (cases)
- reference / bti_number, date / issue_date
- description / product_description / goods_description /
  classification_justification
"""
from __future__ import annotations

import datetime as dt
import math
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def _none_to_empty_list(v: Any) -> Any:
    return [] if v is None else v


def _to_date_string(v: Any) -> Any:
    # "2023-05-01T10:00:00Z" -> "2023-05-01"
    if isinstance(v, dt.datetime):
        return v.date()
    if isinstance(v, str) and len(v) > 10 and v[10] in "T ":
        return v[:10]
    return v


# =============================================================================
# Product
# =============================================================================

class ComponentIn(BaseModel):
    name: Optional[str] = None
    material: Optional[str] = None
    weight_percent: Optional[float] = None
    value_percent: Optional[float] = None
    function: Optional[str] = None


class ProductProfileIn(BaseModel):
    standardized_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("standardized_name", "product_name")
    )
    function: Optional[str] = Field(
        None, validation_alias=AliasChoices("function", "primary_function")
    )
    material_composition: Optional[str] = None
    materials: list[Any] = Field(default_factory=list)
    components_breakdown: list[Any] = Field(default_factory=list)
    essential_character: Optional[str] = None
    industry_specific_data: Optional[dict[str, Any]] = None
    state: Optional[str] = None
    is_composite: bool = False
    potential_gir_path: list[str] = Field(default_factory=list)
    readiness_score: Optional[int] = None

    @field_validator("material_composition", mode="before")
    @classmethod
    def join_composition_list(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return ", ".join(str(part) for part in v)
        return v

    @field_validator("materials", "components_breakdown", mode="before")
    @classmethod
    def none_components(cls, v: Any) -> Any:
        return _none_to_empty_list(v)

    @field_validator("potential_gir_path", mode="before")
    @classmethod
    def single_path(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return _none_to_empty_list(v)

    @field_validator("is_composite", mode="before")
    @classmethod
    def none_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("industry_specific_data", mode="before")
    @classmethod
    def mapping_or_none(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else None

    @field_validator("readiness_score", mode="before")
    @classmethod
    def whole_score(cls, v: Any) -> Any:
        """Fractional scores round half up; anything not a number is absent."""
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            return None
        return int(math.floor(v + 0.5))


class EssentialCharacterComponentIn(BaseModel):
    name: Optional[str] = None
    bulk_percent: Optional[float] = Field(
        None, validation_alias=AliasChoices("bulk_percent", "weight_percent")
    )
    value_percent: Optional[float] = None
    functional_role: Optional[str] = Field(
        None, validation_alias=AliasChoices("functional_role", "function")
    )


class EssentialCharacterAnalysisIn(BaseModel):
    components: list[Any] = Field(default_factory=list)
    essential_component: Optional[str] = None
    justification: Optional[str] = None

    @field_validator("components", mode="before")
    @classmethod
    def none_components(cls, v: Any) -> Any:
        return _none_to_empty_list(v)


# =============================================================================
# Legal Research
# =============================================================================

class LegalDocumentIn(BaseModel):
    heading: Optional[str] = Field(
        None, validation_alias=AliasChoices("heading", "hs_code")
    )
    text: str = Field("", validation_alias=AliasChoices("text", "content"))
    source: Optional[str] = None

    @field_validator("text", mode="before")
    @classmethod
    def none_text(cls, v: Any) -> Any:
        return "" if v is None else v


class LegalNoteIn(BaseModel):
    number: Optional[str] = None
    text: str = ""
    type: Optional[str] = None
    source: Optional[str] = None

    @field_validator("number", mode="before")
    @classmethod
    def number_as_string(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return None
        return str(v) if isinstance(v, (int, float)) else v

    @field_validator("text", mode="before")
    @classmethod
    def none_text(cls, v: Any) -> Any:
        return "" if v is None else v


class VerifiedSourceIn(BaseModel):
    url: Optional[str] = None
    authority_tier: Optional[int] = None


class LegalResearchIn(BaseModel):
    """Item lists stay raw; the adapter validates and skips items one by one."""
    en_documents: list[Any] = Field(default_factory=list)
    notes: list[Any] = Field(default_factory=list)
    verified_sources: list[Any] = Field(default_factory=list)

    @field_validator("en_documents", "notes", "verified_sources", mode="before")
    @classmethod
    def none_lists(cls, v: Any) -> Any:
        return _none_to_empty_list(v)


# =============================================================================
# Precedents
# =============================================================================

DESCRIPTION_FIELDS = (
    "description",
    "product_description",
    "goods_description",
    "classification_justification",
)


class PrecedentCaseIn(BaseModel):
    reference: str = Field("", validation_alias=AliasChoices("reference", "bti_number"))
    classification_code: str = Field(
        "", validation_alias=AliasChoices("classification_code", "hs_code", "classification")
    )
    source: Optional[str] = Field(None, validation_alias=AliasChoices("source", "authority"))
    country_code: Optional[str] = Field(
        None, validation_alias=AliasChoices("country_code", "country")
    )
    date: Optional[dt.date] = Field(None, validation_alias=AliasChoices("date", "issue_date"))
    description: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def merge_descriptions(cls, data: Any) -> Any:
        """All description-like texts, joined, become `description`."""
        if not isinstance(data, dict):
            return data
        texts = [data.get(name) for name in DESCRIPTION_FIELDS]
        merged = " ".join(t for t in texts if isinstance(t, str) and t)
        data = {k: v for k, v in data.items() if k not in DESCRIPTION_FIELDS}
        data["description"] = merged or None
        return data

    @field_validator("reference", "classification_code", mode="before")
    @classmethod
    def none_string(cls, v: Any) -> Any:
        return "" if v is None else str(v)

    @field_validator("date", mode="before")
    @classmethod
    def date_only(cls, v: Any) -> Any:
        return _to_date_string(v)


class CaseSummaryIn(BaseModel):
    reference: str = Field("", validation_alias=AliasChoices("reference", "bti_number"))
    classification_code: str = Field(
        "", validation_alias=AliasChoices("classification_code", "hs_code", "classification")
    )
    country_code: Optional[str] = Field(
        None, validation_alias=AliasChoices("country_code", "country")
    )
    date: Optional[dt.date] = Field(None, validation_alias=AliasChoices("date", "issue_date"))
    conflict_reason: Optional[str] = None

    @field_validator("reference", "classification_code", mode="before")
    @classmethod
    def none_string(cls, v: Any) -> Any:
        return "" if v is None else str(v)

    @field_validator("date", mode="before")
    @classmethod
    def date_only(cls, v: Any) -> Any:
        return _to_date_string(v)


class ConsensusIn(BaseModel):
    has_consensus: bool = False
    consensus_code: Optional[str] = None
    agreement_rate: float = 0.0
    total_cases: int = 0
    target_matches_consensus: bool = False
    supporting_cases: list[CaseSummaryIn] = Field(default_factory=list)
    conflicting_cases: list[CaseSummaryIn] = Field(default_factory=list)
    analysis: str = ""

    @field_validator("supporting_cases", "conflicting_cases", mode="before")
    @classmethod
    def none_lists(cls, v: Any) -> Any:
        return _none_to_empty_list(v)


class PrecedentsIn(BaseModel):
    bti_cases: list[Any] = Field(default_factory=list)
    wco_opinions: list[Any] = Field(default_factory=list)
    consensus: Optional[dict[str, Any]] = None

    @field_validator("bti_cases", "wco_opinions", mode="before")
    @classmethod
    def none_lists(cls, v: Any) -> Any:
        return _none_to_empty_list(v)


# =============================================================================
# Classification, Validation, Regulatory
# =============================================================================

class ClassificationDecisionIn(BaseModel):
    hs_code: Optional[str] = Field(
        None, validation_alias=AliasChoices("hs_code", "classification")
    )
    gir_applied: str = Field("", validation_alias=AliasChoices("gir_applied", "gri_applied"))
    confidence: Optional[float] = None
    audit_trail: list[Any] = Field(default_factory=list)
    reasoning: Optional[str] = None

    @field_validator("gir_applied", mode="before")
    @classmethod
    def none_label(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("audit_trail", mode="before")
    @classmethod
    def none_trail(cls, v: Any) -> Any:
        return _none_to_empty_list(v)


class IssueIn(BaseModel):
    """A reported issue; fields beyond the common ones are kept as extras."""
    model_config = ConfigDict(extra="allow")

    type: str = "unknown"
    severity: str = "medium"
    description: str = Field("", validation_alias=AliasChoices("description", "message"))

    @field_validator("type", "severity", "description", mode="before")
    @classmethod
    def none_string(cls, v: Any) -> Any:
        return "" if v is None else str(v)


class ValidationResultIn(BaseModel):
    passed: bool = False
    score: Optional[float] = None
    issues: list[Any] = Field(default_factory=list)

    @field_validator("passed", mode="before")
    @classmethod
    def none_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("issues", mode="before")
    @classmethod
    def none_issues(cls, v: Any) -> Any:
        return _none_to_empty_list(v)


class RegulatoryStatusIn(BaseModel):
    import_allowed: Optional[bool] = None
    requirements: list[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator("requirements", mode="before")
    @classmethod
    def stringify_requirements(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [item if isinstance(item, str) else str(item) for item in v]
        return v


# =============================================================================
# Conversation
# =============================================================================

class RoundRecordIn(BaseModel):
    round: int
    agent: Optional[str] = None
    action: Optional[str] = None
    input: dict[str, Any] = Field(default_factory=dict)
    output: dict[str, Any] = Field(default_factory=dict)
    confidence_after: float = 0
    duration_ms: int = 0
    timestamp: Optional[dt.datetime] = None


class ConversationStateIn(BaseModel):
    """
    Top-level snapshot. Sub-documents stay raw here; the adapter validates
    each one separately so one malformed sub-document cannot reject the
    whole snapshot.
    """
    report_id: Optional[str] = None
    current_round: int = 0
    max_rounds: int = 10
    self_healing_attempts: int = 0
    overall_confidence: float = 0
    status: str = "initializing"
    current_state: dict[str, Any] = Field(default_factory=dict)
    rounds: list[Any] = Field(default_factory=list)
    confidence_trajectory: list[float] = Field(default_factory=list)
    termination_reason: Optional[str] = None
    pending_action: Optional[dict[str, Any]] = None
    escalation_summary: Optional[dict[str, Any]] = None

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        """Null scalars fall back to their defaults."""
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("report_id", mode="before")
    @classmethod
    def report_id_string(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v
