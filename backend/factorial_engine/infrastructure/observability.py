"""Structured Logging — JSON formatter and setup for engine observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (number, lower, upper, cached, error_code, operation)
      surfaced when present
    - setup_logging is idempotent: a second call replaces the engine handler
      instead of stacking another one

Design Decisions:
    - JSONFormatter over third-party libs: zero dependencies, full control
    - setup_logging called once on startup via lifespan()
"""

import logging
import json
from datetime import datetime, timezone

_EXTRA_KEYS = (
    "number", "lower", "upper", "cached", "error_code", "operation",
    "computed", "failed",
)


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


class _EngineHandler(logging.StreamHandler):
    """Marker type so repeated setup_logging calls can find their own handler."""


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Configure logging for the engine."""
    for existing in list(logging.root.handlers):
        if isinstance(existing, _EngineHandler):
            logging.root.removeHandler(existing)
    handler = _EngineHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s — %(message)s",
        ))
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
