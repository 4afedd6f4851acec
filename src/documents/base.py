# src/documents/base.py — v1
"""Typed candidate documents and the single decode step at the pipeline boundary.

Extractors emit camelCase JSON; models accept either camelCase aliases
or snake_case field names. Reconcilers only ever see decoded models.
"""

from __future__ import annotations

import json
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from acadimport.core.errors import DocumentValidationError

DocT = TypeVar("DocT", bound="CandidateDocument")


class CandidateDocument(BaseModel):
    """Base class for structured documents produced by extraction."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> str:
        """Serialize back to the camelCase JSON form used in the cache."""
        return self.model_dump_json(by_alias=True)


def decode_document(model: type[DocT], payload: str) -> DocT:
    """Decode an extraction payload into a typed candidate document.

    Raises:
        DocumentValidationError: If the payload is not JSON or does not fit
            the model. Field errors are reported as ``"path: message"``.
    """
    try:
        data = json.loads(payload)
    except (TypeError, json.JSONDecodeError) as e:
        raise DocumentValidationError([f"payload: not valid JSON ({e})"]) from e

    if not isinstance(data, dict):
        raise DocumentValidationError(
            [f"payload: expected a JSON object, got {type(data).__name__}"]
        )

    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DocumentValidationError(format_validation_errors(e)) from e


def format_validation_errors(error: ValidationError) -> list[str]:
    """Flatten pydantic errors into readable field errors."""
    messages: list[str] = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "payload"
        messages.append(f"{loc}: {err['msg']}")
    return messages
