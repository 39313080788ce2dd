"""
TariffPilot runtime configuration.

Read from environment variables:

    TP_LOG_LEVEL               root level of the "tariffpilot" logger (INFO)
    TP_LOG_JSON                structured JSON log lines (true)
    TP_TABLES_PATH             alternate lookup-table pack (bundled pack if unset)
    TP_MAX_ROUNDS              max_rounds for new conversations (10)
    TP_STRICT_TABLES_VERSION   reject packs with another schema major version (true)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .tables import ClassificationTables, get_default_tables, load_tables


def _env_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    log_json: bool = True
    tables_path: Optional[Path] = None
    max_rounds: int = 10
    strict_tables_version: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Settings:
        env = os.environ if environ is None else environ
        tables_path = env.get("TP_TABLES_PATH")
        return cls(
            log_level=env.get("TP_LOG_LEVEL", "INFO").upper(),
            log_json=_env_bool(env.get("TP_LOG_JSON", "true")),
            tables_path=Path(tables_path) if tables_path else None,
            max_rounds=int(env.get("TP_MAX_ROUNDS", "10")),
            strict_tables_version=_env_bool(env.get("TP_STRICT_TABLES_VERSION", "true")),
        )

    def load_tables(self) -> ClassificationTables:
        """The configured tables pack, or the bundled default."""
        if self.tables_path is None:
            return get_default_tables()
        return load_tables(self.tables_path, strict_version=self.strict_tables_version)
