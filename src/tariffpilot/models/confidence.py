"""
TariffPilot Confidence Models

Result types of the confidence calculator. Every value in a breakdown can be
recomputed from the state it was scored on: score * weight = contribution,
sum(contributions) = raw_weighted, overall = round(clamp(raw_weighted -
penalties, 0, 100)).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .enums import ConfidenceArea


@dataclass(frozen=True)
class ComponentScore:
    """One sub-score with its weight and weighted contribution."""
    score: float
    weight: float

    @property
    def contribution(self) -> float:
        return self.score * self.weight

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "weight": self.weight,
            "contribution": self.contribution,
        }


@dataclass(frozen=True)
class ConfidenceBreakdown:
    product: ComponentScore
    legal: ComponentScore
    gir: ComponentScore
    precedent: ComponentScore
    validation: ComponentScore

    def components(self) -> dict[ConfidenceArea, ComponentScore]:
        return {
            ConfidenceArea.PRODUCT: self.product,
            ConfidenceArea.LEGAL: self.legal,
            ConfidenceArea.GIR: self.gir,
            ConfidenceArea.PRECEDENT: self.precedent,
            ConfidenceArea.VALIDATION: self.validation,
        }

    @property
    def weighted_sum(self) -> float:
        return sum(c.contribution for c in self.components().values())

    def to_dict(self) -> dict[str, Any]:
        return {area.value: c.to_dict() for area, c in self.components().items()}


@dataclass(frozen=True)
class ConfidenceResult:
    """
    Output of the confidence calculator.

    Attributes:
        overall: Integer in [0, 100]
        breakdown: Sub-scores, weights and contributions
        penalties: Total deduction (unbounded)
        raw_weighted: Weighted sum before penalties
    """
    overall: int
    breakdown: ConfidenceBreakdown
    penalties: float
    raw_weighted: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall,
            "breakdown": self.breakdown.to_dict(),
            "penalties": self.penalties,
            "raw_weighted": self.raw_weighted,
        }


@dataclass(frozen=True)
class Recommendation:
    area: ConfidenceArea
    issue: str
    suggestion: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "area": self.area.value,
            "issue": self.issue,
            "suggestion": self.suggestion,
        }


@dataclass(frozen=True)
class FactorAnalysis:
    """Confidence result plus improvement recommendations."""
    overall_score: int
    breakdown: ConfidenceBreakdown
    penalties: float
    recommendations: tuple[Recommendation, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "breakdown": self.breakdown.to_dict(),
            "penalties": self.penalties,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }
