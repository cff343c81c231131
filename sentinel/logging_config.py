"""Logging configuration.

- Development: human-readable format on stderr
- Production: one JSON object per line
- Level: LOG_LEVEL env variable (default DEBUG in development, INFO otherwise)
"""

import json
import logging
import sys
from datetime import UTC, datetime

from sentinel.config import Settings

# Extra attributes copied into JSON records when present
_EXTRA_FIELDS = ("tenant_id", "item_id", "escalation_id", "kind", "task")


class JSONFormatter(logging.Formatter):
    """JSON log formatter for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        for key in _EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = str(value)
        return json.dumps(entry, ensure_ascii=False)


class ReadableFormatter(logging.Formatter):
    """Plain formatter for local development."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-8s %(name)s: %(message)s", "%H:%M:%S")


def configure_logging(settings: Settings) -> None:
    """Install a single stderr handler on the root logger."""
    level_name = settings.log_level or ("DEBUG" if settings.is_development else "INFO")
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if settings.is_production else ReadableFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
