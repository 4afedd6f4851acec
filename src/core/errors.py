# src/core/errors.py — v2
"""Exception taxonomy for the import pipeline.

Each class maps to one terminal outcome of an import request:
input and extraction failures stop the request, validation failures
carry the full list of field errors, duplicates are reported as a
skipped success. Cache backend failures never leave the cache layer
and have no class here.
"""

from __future__ import annotations


class AcadImportError(Exception):
    """Base class for all import pipeline errors."""


class InputError(AcadImportError):
    """Raw input rejected before extraction or persistence."""


class InvalidInputError(InputError):
    """Raw input is missing, empty or not readable as bytes."""


class InvalidKeyError(InputError):
    """Natural key is present but empty or malformed."""

    def __init__(self, record_type: str, key: object) -> None:
        self.record_type = record_type
        self.key = key
        super().__init__(f"Invalid natural key for {record_type}: {key!r}")


class ExtractionError(AcadImportError):
    """Extraction invoker failed or produced no data."""


class DocumentValidationError(AcadImportError):
    """Candidate document rejected by structural validation."""

    def __init__(self, field_errors: list[str], message: str = "Validation failed") -> None:
        self.field_errors = list(field_errors)
        super().__init__(f"{message}: {'; '.join(self.field_errors)}")


class DuplicateRecordError(AcadImportError):
    """An immutable versioned record already exists for (parent, version)."""

    def __init__(self, record_type: str, natural_key: str, version: int | str) -> None:
        self.record_type = record_type
        self.natural_key = natural_key
        self.version = version
        super().__init__(
            f"{record_type} '{natural_key}' version '{version}' already exists"
        )


class PersistenceError(AcadImportError):
    """Record store unavailable or a write was rejected."""



class InferenceError(AcadImportError):
    """Relationship inference collaborator failed or returned unreadable data."""
