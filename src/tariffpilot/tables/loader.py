"""
TariffPilot Lookup Table Loader

Loads and validates lookup-table packs from YAML or JSON files.

Converts Pydantic schema models to frozen ClassificationTables.
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Union

import yaml
from pydantic import ValidationError

from ..canon import content_hash
from ..exceptions import TablesLoadError, TablesValidationError, TablesVersionMismatch
from ..models.enums import InterpretiveRule, RuleTier
from .schema import (
    SCHEMA_VERSION,
    RuleSchema,
    TablesPackSchema,
    check_schema_version,
    validate_tables_pack,
)
from .types import (
    ClassificationTables,
    GirScoring,
    HsFormat,
    LegalKeywords,
    LegalMatchSettings,
    LegalScoring,
    Penalties,
    PrecedentImpact,
    PrecedentScoring,
    ProductScoring,
    ProfileFeedback,
    QuestionTemplates,
    RelevanceFactors,
    RuleEntry,
    RuleKeywords,
    Scoring,
    Thresholds,
    ValidationScoring,
    Weights,
)


logger = logging.getLogger(__name__)

TABLES_DIR = Path(__file__).parent
DEFAULT_TABLES_PATH = TABLES_DIR / "default_tables.yaml"


# =============================================================================
# Conversion Functions
# =============================================================================

def _convert_rule(schema: RuleSchema) -> RuleEntry:
    return RuleEntry(
        rule=InterpretiveRule(schema.rule),
        labels=tuple(schema.labels),
        strength=schema.strength,
        tier=RuleTier(schema.tier),
    )


def _convert_scoring(schema: TablesPackSchema) -> Scoring:
    scoring = schema.scoring
    return Scoring(
        product=ProductScoring(**scoring.product.model_dump()),
        legal=LegalScoring(**scoring.legal.model_dump()),
        gir=GirScoring(**scoring.gir.model_dump()),
        precedent=PrecedentScoring(**scoring.precedent.model_dump()),
        validation=ValidationScoring(**scoring.validation.model_dump()),
        penalties=Penalties(**scoring.penalties.model_dump()),
    )


def _convert_relevance(schema: TablesPackSchema) -> RelevanceFactors:
    data = schema.relevance.model_dump()
    for key in ("top_authority_sources", "regional_markers", "regional_countries"):
        data[key] = tuple(data[key])
    return RelevanceFactors(**data)


def _convert_tables_pack(schema: TablesPackSchema) -> ClassificationTables:
    keywords = schema.legal_keywords
    return ClassificationTables(
        id=schema.id,
        version=schema.version,
        schema_version=schema.schema_version,
        content_hash=content_hash(schema.model_dump(mode="json")),
        weights=Weights(**schema.weights.model_dump()),
        rules=tuple(_convert_rule(r) for r in schema.rules),
        scoring=_convert_scoring(schema),
        thresholds=Thresholds(**schema.thresholds.model_dump()),
        legal_keywords=LegalKeywords(
            includes=tuple(keywords.includes),
            excludes=tuple(keywords.excludes),
            conditions=tuple(keywords.conditions),
            essential_character=tuple(keywords.essential_character),
            composite=tuple(keywords.composite),
        ),
        rule_keywords=tuple(
            RuleKeywords(rule=rk.rule, keywords=tuple(rk.keywords), weight=rk.weight)
            for rk in schema.rule_keywords
        ),
        legal_match=LegalMatchSettings(**schema.legal_match.model_dump()),
        questions=QuestionTemplates(
            templates=MappingProxyType(dict(schema.questions.templates)),
            fallback=schema.questions.fallback,
            intent_clarification=tuple(schema.questions.intent_clarification),
        ),
        relevance=_convert_relevance(schema),
        precedent_impact=PrecedentImpact(**schema.precedent_impact.model_dump()),
        hs_formats=MappingProxyType({
            country: HsFormat(groups=tuple(fmt.groups), example=fmt.example)
            for country, fmt in schema.hs_formats.items()
        }),
        profile_feedback=ProfileFeedback(
            messages=MappingProxyType(dict(schema.profile_feedback.messages)),
            fallback=schema.profile_feedback.fallback,
        ),
    )


# =============================================================================
# Tables Loader
# =============================================================================

class TablesLoader:
    """
    Loads lookup-table packs from YAML or JSON files.

    Usage:
        loader = TablesLoader()
        tables = loader.load("path/to/tables.yaml")
    """

    def __init__(self, strict_version: bool = True):
        """
        Initialize the loader.

        Args:
            strict_version: If True, reject packs with incompatible schema versions
        """
        self.strict_version = strict_version

    def load(self, path: Union[str, Path]) -> ClassificationTables:
        """
        Load a tables pack from a file.

        Raises:
            TablesLoadError: If file cannot be read
            TablesValidationError: If validation fails
            TablesVersionMismatch: If schema version incompatible
        """
        path = Path(path)

        try:
            data = self._load_file(path)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise TablesLoadError(
                message=f"Failed to load tables pack: {e}",
                details={"path": str(path), "error": str(e)},
            ) from e

        tables = self.load_data(data, source=str(path))
        logger.info(
            "Loaded tables pack %s version %s from %s",
            tables.id, tables.version, path,
        )
        return tables

    def load_data(self, data: Any, source: str = "<data>") -> ClassificationTables:
        """Validate and convert an already-parsed pack."""
        if not isinstance(data, dict):
            raise TablesLoadError(
                message="Tables pack must be a mapping",
                details={"path": source, "type": type(data).__name__},
            )

        if self.strict_version and not check_schema_version(data):
            pack_version = data.get("schema_version", "unknown")
            raise TablesVersionMismatch(
                message=f"Schema version mismatch: pack has {pack_version}, expected {SCHEMA_VERSION}",
                details={
                    "pack_version": pack_version,
                    "expected_version": SCHEMA_VERSION,
                },
            )

        try:
            schema = validate_tables_pack(data)
        except ValidationError as e:
            raise TablesValidationError(
                message=f"Tables pack validation failed: {e.error_count()} errors",
                details={"errors": json.loads(e.json(include_url=False)), "path": source},
            ) from e

        return _convert_tables_pack(schema)

    def _load_file(self, path: Path) -> Any:
        """Load data from YAML or JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in {".yaml", ".yml"}:
                return yaml.safe_load(f)
            elif path.suffix.lower() == ".json":
                return json.load(f)
            else:
                content = f.read()
                try:
                    return yaml.safe_load(content)
                except yaml.YAMLError:
                    return json.loads(content)


# =============================================================================
# Convenience Functions
# =============================================================================

def load_tables(
    path: Union[str, Path],
    strict_version: bool = True,
) -> ClassificationTables:
    """Load a tables pack from a file with a temporary loader."""
    return TablesLoader(strict_version=strict_version).load(path)


def load_tables_from_string(content: str, format: str = "yaml") -> ClassificationTables:
    """Load a tables pack from a YAML or JSON string."""
    try:
        if format.lower() == "json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise TablesLoadError(
            message=f"Failed to parse tables pack: {e}",
            details={"format": format},
        ) from e
    return TablesLoader().load_data(data, source="<string>")


@lru_cache(maxsize=1)
def get_default_tables() -> ClassificationTables:
    """The bundled default tables pack, loaded once per process."""
    return load_tables(DEFAULT_TABLES_PATH)
