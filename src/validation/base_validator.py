# src/validation/base_validator.py — v1
"""Structural validator interface.

A validator accepts a decoded candidate document and reports every
field error it finds. It never raises for invalid input.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

DocT = TypeVar("DocT")


class ValidationReport(BaseModel):
    """Pass/fail plus the full list of field errors."""

    is_valid: bool = True
    field_errors: list[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> ValidationReport:
        return cls(is_valid=not errors, field_errors=list(errors))


class BaseDocumentValidator(ABC, Generic[DocT]):
    """Unified interface for structural validators."""

    @abstractmethod
    async def validate(self, document: DocT) -> ValidationReport:
        """Validate a candidate document."""


class RuleCollector:
    """Accumulates field errors with a path prefix."""

    def __init__(self, prefix: str = "") -> None:
        self._prefix = prefix
        self.errors: list[str] = []

    def check(self, condition: bool, field: str, message: str) -> None:
        if not condition:
            path = f"{self._prefix}{field}" if field else self._prefix.rstrip(".")
            self.errors.append(f"{path}: {message}")

    def required(self, value: str | None, field: str, label: str, max_length: int | None = None) -> None:
        if value is None or not value.strip():
            self.check(False, field, f"{label} is required.")
            return
        if max_length is not None:
            self.max_length(value, field, label, max_length)

    def max_length(self, value: str | None, field: str, label: str, limit: int) -> None:
        if value:
            self.check(len(value) <= limit, field, f"{label} cannot exceed {limit} characters.")

    def in_range(
        self,
        value: float | None,
        field: str,
        label: str,
        low: float,
        high: float,
    ) -> None:
        """Exclusive lower bound, inclusive upper bound. None passes."""
        if value is None:
            return
        self.check(value > low, field, f"{label} must be greater than {low:g}.")
        self.check(value <= high, field, f"{label} cannot exceed {high:g}.")

    def child(self, prefix: str) -> RuleCollector:
        sub = RuleCollector(f"{self._prefix}{prefix}.")
        sub.errors = self.errors
        return sub
