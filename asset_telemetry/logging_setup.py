"""
Structured JSON logging for the asset telemetry service.

Every record is written to stderr as one JSON object. Context passed via
``extra=`` (tenant_id, asset_id, action, detailed_messages) is copied into
the object so log pipelines can filter per tenant or asset.

CHANGELOG:
- 2026-10-07: Carry tenant/asset context fields (STORY-105)
- 2026-10-05: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

CONTEXT_FIELDS = ("tenant_id", "asset_id", "action", "detailed_messages")


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger.

    Args:
        level: Root log level name (e.g. ``"INFO"``).
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
