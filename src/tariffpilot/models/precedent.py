"""
TariffPilot Precedent Models

Models for prior classification rulings (BTI-like cases and WCO opinions).

Key components:
- PrecedentCase: An ingested ruling, immutable
- CaseSummary: Compact view of a case inside a consensus analysis
- ConsensusResult: Majority agreement among cases
- RelevanceScore: How useful a case is for a target classification

Precedent analysis is DETERMINISTIC: grouping by reported code, majority
with first-encountered tie-breaking, fixed relevance points.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Optional

from .enums import ConsensusTier


# =============================================================================
# Precedent Case
# =============================================================================

@dataclass(frozen=True)
class PrecedentCase:
    """
    A previously issued, citable classification ruling.

    Attributes:
        reference: Ruling reference (e.g. "DE-BTI-123456")
        classification_code: Code the ruling assigned (e.g. "8471.30")
        source: Issuing body (e.g. "WCO", "EU BTI")
        country_code: Two-letter issuing country
        date: Issue date
        description: Goods description / justification text
    """
    reference: str
    classification_code: str
    source: Optional[str] = None
    country_code: Optional[str] = None
    date: Optional[date] = None
    description: Optional[str] = None

    @property
    def heading(self) -> str:
        """First four digits of the classification code."""
        return heading_of(self.classification_code)

    @property
    def chapter(self) -> str:
        """First two digits of the classification code."""
        return chapter_of(self.classification_code)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "reference": self.reference,
            "classification_code": self.classification_code,
            "source": self.source,
            "country_code": self.country_code,
            "date": self.date.isoformat() if self.date else None,
            "description": self.description,
        }


def _digits(code: str) -> str:
    return "".join(ch for ch in code if ch.isdigit())


def heading_of(code: str) -> str:
    """4-digit heading of a code, ignoring separators ("8471.30" -> "8471")."""
    return _digits(code)[:4]


def chapter_of(code: str) -> str:
    """2-digit chapter of a code."""
    return _digits(code)[:2]


# =============================================================================
# Consensus
# =============================================================================

@dataclass(frozen=True)
class CaseSummary:
    """A case as listed in a consensus analysis."""
    reference: str
    classification_code: str
    country_code: Optional[str] = None
    date: Optional[date] = None
    conflict_reason: Optional[str] = None

    @classmethod
    def from_case(
        cls,
        case: PrecedentCase,
        conflict_reason: Optional[str] = None,
    ) -> CaseSummary:
        return cls(
            reference=case.reference,
            classification_code=case.classification_code,
            country_code=case.country_code,
            date=case.date,
            conflict_reason=conflict_reason,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "reference": self.reference,
            "classification_code": self.classification_code,
            "country_code": self.country_code,
            "date": self.date.isoformat() if self.date else None,
        }
        if self.conflict_reason:
            result["conflict_reason"] = self.conflict_reason
        return result


@dataclass(frozen=True)
class ConsensusResult:
    """
    Majority agreement among precedent cases.

    Attributes:
        has_consensus: agreement_rate >= consensus threshold
        consensus_code: Majority code (None when there are no cases)
        agreement_rate: majority_count / total_cases
        total_cases: Number of cases analysed
        target_matches_consensus: Target equals consensus code or shares its heading
        supporting_cases: Cases in the majority group
        conflicting_cases: Cases classified elsewhere
        tier: Agreement tier (strong / moderate / weak / none)
        analysis: Human-readable summary for the tier
    """
    has_consensus: bool
    consensus_code: Optional[str]
    agreement_rate: float
    total_cases: int
    target_matches_consensus: bool
    supporting_cases: tuple[CaseSummary, ...] = ()
    conflicting_cases: tuple[CaseSummary, ...] = ()
    tier: ConsensusTier = ConsensusTier.NONE
    analysis: str = ""

    @property
    def has_conflicts(self) -> bool:
        return len(self.conflicting_cases) > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "has_consensus": self.has_consensus,
            "consensus_code": self.consensus_code,
            "agreement_rate": self.agreement_rate,
            "total_cases": self.total_cases,
            "target_matches_consensus": self.target_matches_consensus,
            "supporting_cases": [c.to_dict() for c in self.supporting_cases],
            "conflicting_cases": [c.to_dict() for c in self.conflicting_cases],
            "tier": self.tier.value,
            "analysis": self.analysis,
        }


# =============================================================================
# Relevance
# =============================================================================

@dataclass(frozen=True)
class RelevanceScore:
    """
    Relevance of a single case to a target classification.

    `normalized` is score / 75 * 100 and is not capped at 100.
    """
    score: int
    max_score: int
    normalized: int
    details: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "max_score": self.max_score,
            "normalized": self.normalized,
            "details": list(self.details),
        }


@dataclass(frozen=True)
class ReferenceInfo:
    """Metadata parsed from a ruling reference string."""
    country_code: str
    number: str
    full_reference: str
    parsed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "country_code": self.country_code,
            "number": self.number,
            "full_reference": self.full_reference,
            "parsed": self.parsed,
        }


@dataclass(frozen=True)
class PrecedentValidation:
    """Outcome of checking a proposed code against precedent consensus."""
    valid: bool
    consensus: ConsensusResult
    issues: tuple[Any, ...] = ()
    confirmations: tuple[str, ...] = ()
    confidence_impact: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "consensus": self.consensus.to_dict(),
            "issues": [i.to_dict() for i in self.issues],
            "confirmations": list(self.confirmations),
            "confidence_impact": self.confidence_impact,
        }
