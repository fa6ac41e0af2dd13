"""Observability: structured JSON logging for the engine."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

# Extra fields propagated from ``log.x(..., extra={...})`` calls
_EXTRA_KEYS = ("item_id", "bucket_id", "conflicts", "severity")


class JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_dict["exception"] = self.formatException(record.exc_info)
        for key in _EXTRA_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                log_dict[key] = val
        return json.dumps(log_dict, default=str)


def setup_logging(level: str | None = None) -> None:
    """Configure the ``forkmap`` logger with JSON output.

    Level defaults to ``FORKMAP_LOG_LEVEL`` (INFO when unset).
    """
    level = level or os.environ.get("FORKMAP_LOG_LEVEL", "INFO")
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger = logging.getLogger("forkmap")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
