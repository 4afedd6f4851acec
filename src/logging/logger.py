# src/logging/logger.py — v2
"""Logger factory and formatters carrying the import request context.

Every record emitted while an import is running is tagged with the
request id, cache namespace, input fingerprint and pipeline stage held
in ``acadimport.logging.context``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from acadimport.logging.context import LogContext, get_context

ROOT_LOGGER = "acadimport"

_SHORT_FINGERPRINT = 12


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line; context under ``context``, extras under ``data``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = get_context().as_dict()
        if context:
            entry["context"] = context

        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line format for terminals:

    ``2026-01-01 12:00:00 [INFO    ] acadimport.x [syllabus] (validating) - msg``
    """

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
            *_context_tags(get_context()),
            f"- {record.getMessage()}",
        ]
        line = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _context_tags(ctx: LogContext) -> list[str]:
    tags: list[str] = []
    if ctx.namespace:
        tags.append(f"[{ctx.namespace}]")
    if ctx.fingerprint:
        tags.append(f"<{ctx.fingerprint[:_SHORT_FINGERPRINT]}>")
    if ctx.stage:
        tags.append(f"({ctx.stage})")
    return tags


def get_logger(name: str) -> logging.Logger:
    """Child of the package logger. Configuration is applied by setup_logging()."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """(Re)configure the package logger. Safe to call repeatedly.

    Console output goes to stderr: stdout is reserved for CLI result
    payloads.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_format: "json" or "text".
        log_file: Optional rotating log file.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    formatter: logging.Formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        from acadimport.logging.handlers import create_rotating_handler

        handlers.append(create_rotating_handler(log_file, rotation=rotation, retention=retention))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
