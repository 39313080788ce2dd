"""
TariffPilot - Deterministic Decision Core for Tariff Classification

TariffPilot drives a multi-round conversation between specialist
collaborators (product analyst, legal expert, precedent researcher,
rule-state machine, validator, regulatory expert) that assigns an HS code
to a product. It never classifies anything itself: each round it reads the
conversation snapshot and names the single next action.

Core Principle: "Earliest unsatisfied stage first. Same state, same decision."

Key Features:
- Strict stage precedence from product understanding to finalization
- Self-healing of failed validations, capped by attempt count
- Weighted 0-100 confidence with penalty deductions
- Precedent consensus and relevance scoring
- Explanatory-note parsing and product cross-checks
- Every constant in a versioned, hashable lookup-table pack

Quick Start:
    from tariffpilot import DecisionEngine, get_default_tables, state_from_dict

    tables = get_default_tables()
    state = state_from_dict(snapshot, tables)

    engine = DecisionEngine(tables)
    decision = engine.decide(state)
    verdict = engine.should_terminate(state)

Version: 0.1.0
"""
from __future__ import annotations

__version__ = "0.1.0"
__author__ = "TariffPilot Team"

# =============================================================================
# Core Models (Re-exported for convenience)
# =============================================================================
from .models import (
    Action,
    Agent,
    ConversationState,
    ConversationStatus,
    CurrentState,
    Decision,
    InterpretiveRule,
    Stage,
    TerminationResult,
)

# =============================================================================
# Engine
# =============================================================================
from .engine import (
    ConfidenceCalculator,
    DecisionEngine,
    analyze_consensus,
    calculate_confidence,
    decide_next_action,
    should_terminate,
)

# =============================================================================
# Tables, Boundary, Errors
# =============================================================================
from .boundary import state_from_dict
from .exceptions import TariffPilotError
from .tables import ClassificationTables, get_default_tables, load_tables

__all__ = [
    "__version__",
    # Models
    "Action",
    "Agent",
    "ConversationState",
    "ConversationStatus",
    "CurrentState",
    "Decision",
    "InterpretiveRule",
    "Stage",
    "TerminationResult",
    # Engine
    "ConfidenceCalculator",
    "DecisionEngine",
    "analyze_consensus",
    "calculate_confidence",
    "decide_next_action",
    "should_terminate",
    # Tables, boundary, errors
    "ClassificationTables",
    "TariffPilotError",
    "get_default_tables",
    "load_tables",
    "state_from_dict",
]
