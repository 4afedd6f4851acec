# src/core/models.py — v3
"""Shared Pydantic domain models used across modules.

Persisted shapes (flat records, tree nodes, dependency edges) and the
outcome payload returned to callers. No module redefines these types.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


def new_id() -> str:
    """Generate a fresh record identity."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# === RELATIONSHIPS ===


class RelationshipKind(str, Enum):
    """Closed set of dependency edge kinds."""

    PREREQUISITE = "prerequisite"
    COREQUISITE = "corequisite"
    RECOMMENDED = "recommended"


# === PERSISTED RECORDS ===


class FlatRecord(BaseModel):
    """Business entity matched by a natural key unique within its type."""

    id: str = Field(default_factory=new_id)
    record_type: str
    natural_key: str
    parent_id: str | None = None
    version: int | str | None = None
    fields: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class TreeNode(BaseModel):
    """Labeled node of a hierarchy owned by a scope entity.

    Matching identity is (scope, parent_id, label), never ``id``.
    """

    id: str = Field(default_factory=new_id)
    scope: str
    parent_id: str | None = None
    label: str
    node_type: str | None = None
    description: str | None = None
    sequence: int = 0
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class DependencyEdge(BaseModel):
    """Directed prerequisite edge: ``from_id`` depends on ``to_id``."""

    id: str = Field(default_factory=new_id)
    scope_id: str
    from_id: str
    to_id: str
    kind: RelationshipKind = RelationshipKind.PREREQUISITE
    source: Literal["structural", "semantic"] = "structural"
    reasoning: str | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def pair(self) -> tuple[str, str]:
        return (self.from_id, self.to_id)


# === OUTCOME ===


ImportOutcome = Literal["success", "skipped", "failed"]


class ImportResult(BaseModel):
    """Structured outcome of one import request."""

    outcome: ImportOutcome
    message: str
    created_count: int = 0
    updated_count: int = 0
    skipped_count: int = 0
    identifiers: dict[str, Any] = Field(default_factory=dict)
    field_errors: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    fingerprint: str | None = None
    cache_hit: bool = False
    extracted_data: dict[str, Any] | None = None

    @property
    def success(self) -> bool:
        """Skipped duplicates count as success."""
        return self.outcome != "failed"

    @classmethod
    def failed(
        cls,
        message: str,
        field_errors: list[str] | None = None,
        **kwargs: Any,
    ) -> ImportResult:
        return cls(
            outcome="failed",
            message=message,
            field_errors=field_errors or [],
            **kwargs,
        )

    def to_payload(self) -> dict[str, Any]:
        """Caller-facing payload with camelCase keys.

        ``extractedData`` is present only for validate-only requests.
        """
        payload: dict[str, Any] = {
            "success": self.success,
            "outcome": self.outcome,
            "message": self.message,
            "createdCount": self.created_count,
            "updatedCount": self.updated_count,
            "skippedCount": self.skipped_count,
            "identifiers": self.identifiers,
            "fieldErrors": list(self.field_errors),
            "errors": list(self.errors),
            "fingerprint": self.fingerprint,
            "cacheHit": self.cache_hit,
        }
        if self.extracted_data is not None:
            payload["extractedData"] = self.extracted_data
        return payload
