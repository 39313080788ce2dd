"""
Structured logging for TariffPilot.

Module loggers live under the "tariffpilot" namespace. configure_logging()
attaches a single stream handler to that namespace, emitting JSON lines by
default.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone


# Extra fields copied into the JSON line when a log call passes them
EXTRA_FIELDS = (
    "report_id",
    "action",
    "stage",
    "round",
    "confidence",
    "decision_hash_short",
    "tables_hash_short",
    "request_id",
    "duration_ms",
)


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(level: str = "INFO", json_lines: bool = True) -> logging.Logger:
    """
    Configure the "tariffpilot" logger. Safe to call more than once; the
    handler is replaced, not duplicated.
    """
    logger = logging.getLogger("tariffpilot")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for existing in list(logger.handlers):
        if getattr(existing, "_tariffpilot_handler", False):
            logger.removeHandler(existing)

    handler = logging.StreamHandler()
    if json_lines:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    handler._tariffpilot_handler = True
    logger.addHandler(handler)
    return logger
