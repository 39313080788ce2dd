"""
Pytest configuration and fixtures for TariffPilot tests.

Provides factory helpers that build immutable states stage by stage, and
the bundled tables pack as a fixture.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional, Sequence

import pytest

from tariffpilot.engine import analyze_consensus
from tariffpilot.models import (
    ClassificationDecision,
    Component,
    ConversationState,
    ConversationStatus,
    CurrentState,
    LegalDocument,
    LegalNote,
    LegalResearch,
    PrecedentCase,
    Precedents,
    ProductProfile,
    RegulatoryStatus,
    ValidationResult,
    VerifiedSource,
)
from tariffpilot.tables import ClassificationTables, get_default_tables


# =============================================================================
# Factory Helpers
# =============================================================================

def make_profile(**overrides: Any) -> ProductProfile:
    """A complete, quantified product profile."""
    values: dict[str, Any] = {
        "standardized_name": "Laptop computer",
        "function": "Portable automatic data processing machine",
        "material_composition": "60% aluminium housing, 40% plastics",
        "essential_character": "Central processing unit and display",
        "industry_specific_data": {
            "power": "65W",
            "weight": "1.4kg",
            "screen": "14 inch",
            "cpu": "8 cores",
        },
        "state": "assembled",
    }
    values.update(overrides)
    return ProductProfile(**values)


def make_component(
    name: str = "Housing",
    material: str = "Aluminium",
    weight_percent: Optional[float] = None,
    value_percent: Optional[float] = None,
) -> Component:
    return Component(
        name=name,
        material=material,
        weight_percent=weight_percent,
        value_percent=value_percent,
    )


def make_legal_research(
    notes: bool = True,
    text: str = "This heading covers portable machines. " * 20,
    verified_tiers: Sequence[int] = (1, 1),
) -> LegalResearch:
    """Legal research with one substantial EN document and a Section Note."""
    return LegalResearch(
        en_documents=(LegalDocument(heading="8471", text=text, source="WCO EN"),),
        notes=(
            (LegalNote(number="1", text="Section XVI note", type="Section Note", source="Section XVI"),)
            if notes else ()
        ),
        verified_sources=tuple(
            VerifiedSource(url=f"https://example.org/{i}", authority_tier=tier)
            for i, tier in enumerate(verified_tiers)
        ),
    )


def make_case(
    reference: str = "DE-BTI-100001",
    classification_code: str = "8471.30",
    source: Optional[str] = "EU BTI",
    country_code: Optional[str] = "DE",
    issued: Optional[date] = None,
    description: Optional[str] = None,
) -> PrecedentCase:
    return PrecedentCase(
        reference=reference,
        classification_code=classification_code,
        source=source,
        country_code=country_code,
        date=issued,
        description=description,
    )


def make_cases(*codes: str) -> tuple[PrecedentCase, ...]:
    """One case per code, with distinct references."""
    return tuple(
        make_case(reference=f"DE-BTI-{100001 + i}", classification_code=code)
        for i, code in enumerate(codes)
    )


def make_precedents(
    *codes: str,
    target_code: str = "8471.30",
    wco_codes: Sequence[str] = (),
    tables: Optional[ClassificationTables] = None,
) -> Precedents:
    """Precedents with consensus computed against `target_code`."""
    cases = make_cases(*codes)
    return Precedents(
        bti_cases=cases,
        wco_opinions=tuple(
            make_case(reference=f"WCO-{i}", classification_code=c, source="WCO", country_code=None)
            for i, c in enumerate(wco_codes)
        ),
        consensus=analyze_consensus(cases, target_code, tables or get_default_tables()),
    )


def make_gir_decision(
    gir_applied: str = "GIR1",
    hs_code: str = "8471.30",
    confidence: Optional[float] = None,
    audit_trail: Sequence[Any] = ("GIR1: terms of heading 8471", "Note 5 Chapter 84"),
) -> ClassificationDecision:
    return ClassificationDecision(
        hs_code=hs_code,
        gir_applied=gir_applied,
        confidence=confidence,
        audit_trail=tuple(audit_trail),
    )


def make_validation(passed: bool = True, issues: Sequence[Any] = (), score: Optional[float] = None) -> ValidationResult:
    return ValidationResult(passed=passed, score=score, issues=tuple(issues))


def make_regulatory() -> RegulatoryStatus:
    return RegulatoryStatus(import_allowed=True, requirements=("CE marking",))


def make_current_state(**overrides: Any) -> CurrentState:
    """Every stage satisfied; override or blank out fields as needed."""
    values: dict[str, Any] = {
        "product_profile": make_profile(),
        "product_readiness": 90,
        "candidate_headings": ("8471",),
        "legal_research": make_legal_research(),
        "precedents": make_precedents("8471.30", "8471.30"),
        "gir_decision": make_gir_decision(),
        "validation_result": make_validation(),
        "regulatory_status": make_regulatory(),
    }
    values.update(overrides)
    return CurrentState(**values)


def make_state(
    current_state: Optional[CurrentState] = None,
    overall_confidence: float = 85,
    current_round: int = 6,
    max_rounds: int = 10,
    self_healing_attempts: int = 0,
    status: ConversationStatus = ConversationStatus.ACTIVE,
    report_id: str = "RPT-001",
) -> ConversationState:
    return ConversationState(
        report_id=report_id,
        current_round=current_round,
        max_rounds=max_rounds,
        self_healing_attempts=self_healing_attempts,
        overall_confidence=overall_confidence,
        status=status,
        current_state=current_state if current_state is not None else make_current_state(),
    )


def make_raw_state(**overrides: Any) -> dict[str, Any]:
    """A raw JSON-style snapshot as a runner would send it."""
    raw: dict[str, Any] = {
        "report_id": "RPT-RAW-001",
        "current_round": 4,
        "max_rounds": 10,
        "self_healing_attempts": 0,
        "overall_confidence": 72,
        "status": "active",
        "current_state": {
            "product_profile": {
                "product_name": "Laptop computer",
                "primary_function": "Portable automatic data processing machine",
                "material_composition": "60% aluminium, 40% plastics",
            },
            "product_readiness": 85,
            "candidate_headings": ["8471", {"heading": "8473"}],
        },
    }
    raw.update(overrides)
    return raw


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def tables() -> ClassificationTables:
    """Bundled default tables pack."""
    return get_default_tables()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers that configure_logging() attached during a test."""
    yield
    logger = logging.getLogger("tariffpilot")
    for handler in list(logger.handlers):
        if getattr(handler, "_tariffpilot_handler", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
