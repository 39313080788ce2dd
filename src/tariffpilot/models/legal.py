"""
TariffPilot Legal-Text Models

Structured views of explanatory-note text and the outcome of matching a
product against them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .issues import ValidationIssue


@dataclass(frozen=True)
class RuleRelevance:
    """Keyword hits of a text for one interpretive rule."""
    rule: str
    score: int
    weight: str

    def to_dict(self) -> dict[str, Any]:
        return {"rule": self.rule, "score": self.score, "weight": self.weight}


@dataclass(frozen=True)
class ParsedLegalText:
    """
    Explanatory-note text split into categorised statements.

    Categories are not mutually exclusive: one sentence may be an inclusion
    and carry essential-character guidance at the same time.
    `rule_relevance` is sorted by descending hit count.
    """
    heading: Optional[str] = None
    includes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()
    conditions: tuple[str, ...] = ()
    essential_character_guidance: tuple[str, ...] = ()
    composite: tuple[str, ...] = ()
    rule_relevance: tuple[RuleRelevance, ...] = ()
    raw_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "heading": self.heading,
            "includes": list(self.includes),
            "excludes": list(self.excludes),
            "conditions": list(self.conditions),
            "essential_character_guidance": list(self.essential_character_guidance),
            "composite": list(self.composite),
            "rule_relevance": [r.to_dict() for r in self.rule_relevance],
        }


@dataclass(frozen=True)
class LegalMatch:
    """Result of cross-checking a product profile against one parsed text."""
    matched_includes: tuple[str, ...] = ()
    matched_excludes: tuple[str, ...] = ()
    condition_issues: tuple[str, ...] = ()
    confidence_adjustment: int = 0
    notes: tuple[str, ...] = ()

    @property
    def matches_includes(self) -> bool:
        return bool(self.matched_includes)

    @property
    def matches_excludes(self) -> bool:
        return bool(self.matched_excludes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "matches_includes": self.matches_includes,
            "matches_excludes": self.matches_excludes,
            "matched_includes": list(self.matched_includes),
            "matched_excludes": list(self.matched_excludes),
            "condition_issues": [
                {"condition": c, "needs_verification": True} for c in self.condition_issues
            ],
            "confidence_adjustment": self.confidence_adjustment,
            "notes": list(self.notes),
        }


@dataclass(frozen=True)
class LegalValidation:
    """Outcome of checking a proposed code against the parsed legal texts."""
    valid: bool
    issues: tuple[ValidationIssue, ...] = ()
    confirmations: tuple[str, ...] = ()
    confidence_impact: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "issues": [i.to_dict() for i in self.issues],
            "confirmations": list(self.confirmations),
            "confidence_impact": self.confidence_impact,
        }
