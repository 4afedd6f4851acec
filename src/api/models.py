# src/api/models.py — v2
"""API-level models returned by the facade besides ImportResult."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from acadimport.core.models import DependencyEdge


class UnitOutcome(BaseModel):
    """Per-subject outcome of a dependency analysis."""

    unit_id: str
    ok: bool = True
    created: int = 0
    skipped: int = 0
    error: str | None = None


class DependencyAnalysisResult(BaseModel):
    """Return value of ImportService.analyze_dependencies()."""

    success: bool
    message: str
    program_id: str | None = None
    created: int = 0
    skipped: int = 0
    edges: list[DependencyEdge] = Field(default_factory=list)
    units: list[UnitOutcome] = Field(default_factory=list)
    cycles: list[list[str]] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Caller-facing payload with camelCase keys."""
        return {
            "success": self.success,
            "message": self.message,
            "programId": self.program_id,
            "createdCount": self.created,
            "skippedCount": self.skipped,
            "edges": [
                {
                    "fromId": e.from_id,
                    "toId": e.to_id,
                    "kind": e.kind.value,
                    "source": e.source,
                    "reasoning": e.reasoning,
                }
                for e in self.edges
            ],
            "failedUnits": [u.unit_id for u in self.units if not u.ok],
            "cycles": self.cycles,
            "errors": list(self.errors),
        }
