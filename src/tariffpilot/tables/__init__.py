"""
TariffPilot Lookup Tables

Schema validation and loading for lookup-table packs.

A tables pack is a YAML or JSON file holding every constant the decision
core is parameterised with: scoring weights, interpretive-rule strengths,
thresholds, keyword sets, question templates and precedent relevance
factors.

Usage:
    from tariffpilot.tables import get_default_tables, load_tables

    # Bundled pack, loaded once per process
    tables = get_default_tables()

    # Alternate pack
    tables = load_tables("path/to/tables.yaml")
"""
from __future__ import annotations

from .loader import (
    DEFAULT_TABLES_PATH,
    TablesLoader,
    get_default_tables,
    load_tables,
    load_tables_from_string,
)
from .schema import (
    SCHEMA_VERSION,
    TablesPackSchema,
    check_schema_version,
    validate_tables_pack,
)
from .types import ClassificationTables, RuleEntry

__all__ = [
    # Version
    "SCHEMA_VERSION",
    # Loader
    "DEFAULT_TABLES_PATH",
    "TablesLoader",
    "get_default_tables",
    "load_tables",
    "load_tables_from_string",
    # Validation
    "TablesPackSchema",
    "check_schema_version",
    "validate_tables_pack",
    # Tables
    "ClassificationTables",
    "RuleEntry",
]
