# src/logging/context.py — v2
"""Contextual logging support: attach import_id, namespace, fingerprint, stage to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per import request.
_import_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "import_id", default=None
)
_namespace: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "namespace", default=None
)
_fingerprint: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "fingerprint", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    import_id: str | None = None
    namespace: str | None = None
    fingerprint: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        import_id=_import_id.get(),
        namespace=_namespace.get(),
        fingerprint=_fingerprint.get(),
        stage=_stage.get(),
    )


def set_import_context(import_id: str, namespace: str) -> None:
    """Set request-level context (called once per import request)."""
    _import_id.set(import_id)
    _namespace.set(namespace)
    _fingerprint.set(None)
    _stage.set(None)


def set_fingerprint(fingerprint: str) -> None:
    _fingerprint.set(fingerprint)


def set_stage(stage: str | None) -> None:
    """Set the current pipeline stage."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _import_id.set(None)
    _namespace.set(None)
    _fingerprint.set(None)
    _stage.set(None)
