# src/graph/inference.py — v1
"""Semantic relationship inference collaborator.

Given the member names of one containing unit (the skills of a subject),
an inferrer proposes intra-unit relationships. The builder treats it as
opaque and best-effort.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from acadimport.core.errors import InferenceError
from acadimport.core.models import RelationshipKind
from acadimport.extraction.json_cleaner import clean_json_response

logger = logging.getLogger(__name__)


class InferredRelationship(BaseModel):
    """``from_name`` depends on ``to_name``."""

    model_config = ConfigDict(populate_by_name=True)

    from_name: str = Field(validation_alias=AliasChoices("from_name", "fromName", "skillName"))
    to_name: str = Field(
        validation_alias=AliasChoices("to_name", "toName", "prerequisiteSkillName")
    )
    kind: str = Field(
        default="prerequisite",
        validation_alias=AliasChoices("kind", "relationshipType", "relationship_type"),
    )
    reasoning: str | None = None


def map_relationship_kind(kind: str | None) -> RelationshipKind:
    """Case-insensitive mapping onto RelationshipKind; unknown → PREREQUISITE."""
    if not kind:
        return RelationshipKind.PREREQUISITE
    try:
        return RelationshipKind(kind.strip().lower())
    except ValueError:
        logger.debug("Unknown relationship kind %r, defaulting to prerequisite", kind)
        return RelationshipKind.PREREQUISITE


def parse_relationships(text: str | None) -> list[InferredRelationship]:
    """Decode a JSON array of relationships from raw model output.

    Raises:
        InferenceError: If the text is not a JSON array of relationships.
    """
    cleaned = clean_json_response(text, expect="array")
    if not cleaned:
        return []
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise InferenceError(f"Inference output is not JSON: {e}") from e
    if not isinstance(data, list):
        raise InferenceError("Inference output is not a JSON array")
    try:
        return [InferredRelationship.model_validate(item) for item in data]
    except ValidationError as e:
        raise InferenceError(f"Malformed relationship: {e.error_count()} error(s)") from e


class BaseRelationshipInferrer(ABC):
    """Interface for semantic relationship inference."""

    @abstractmethod
    async def infer_relationships(self, names: list[str]) -> list[InferredRelationship]:
        """Propose relationships between the given member names.

        Raises:
            InferenceError: On collaborator failure.
        """


class NullRelationshipInferrer(BaseRelationshipInferrer):
    """Inferrer that never proposes anything (structural edges only)."""

    async def infer_relationships(self, names: list[str]) -> list[InferredRelationship]:
        return []


class CallableRelationshipInferrer(BaseRelationshipInferrer):
    """Wrap ``async fn(names) -> str`` returning a JSON array.

    Accepts both snake_case and the camelCase
    ``skillName``/``prerequisiteSkillName``/``relationshipType`` shape.
    """

    def __init__(self, fn: Callable[[list[str]], Awaitable[str | None]]) -> None:
        self._fn = fn

    async def infer_relationships(self, names: list[str]) -> list[InferredRelationship]:
        try:
            raw = await self._fn(list(names))
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"Relationship inference failed: {e}") from e
        relationships = parse_relationships(raw)
        logger.debug("Inferred %d relationships over %d names", len(relationships), len(names))
        return relationships
