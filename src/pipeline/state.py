# src/pipeline/state.py — v3
"""Per-request import state.

Tracks the stage machine
``start → cache_check → {cache_hit | extracting} → validating →
reconciling → done`` and what each stage produced. A dry run ends at
``validating → done``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class ImportStage(str, Enum):
    START = "start"
    CACHE_CHECK = "cache_check"
    CACHE_HIT = "cache_hit"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    RECONCILING = "reconciling"
    DONE = "done"


class ImportState(BaseModel):
    """Mutable state of one import request."""

    import_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: str
    namespace: str
    fingerprint: str | None = None
    stage: ImportStage = ImportStage.START
    history: list[ImportStage] = Field(default_factory=lambda: [ImportStage.START])
    dry_run: bool = False
    cache_hit: bool = False
    payload: str | None = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def advance(self, stage: ImportStage) -> None:
        self.stage = stage
        self.history.append(stage)
