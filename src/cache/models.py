# src/cache/models.py — v2
"""Cache domain models: CacheEntry and LatestPointer."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from acadimport.core.models import utc_now


class CacheEntry(BaseModel):
    """Hash-addressed extraction result. Immutable once written."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    fingerprint: str
    payload: str
    raw_text: str = ""
    created_at: datetime = Field(default_factory=utc_now)


class LatestPointer(BaseModel):
    """Mutable alias to the most recent payload for a logical key.

    Exists for inspection only; never consulted for cache-hit decisions.
    """

    namespace: str
    logical_key: str
    version: str
    payload: str
    fingerprint: str
    updated_at: datetime = Field(default_factory=utc_now)
