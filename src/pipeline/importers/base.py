# src/pipeline/importers/base.py — v1
"""Importer interface: one per document kind.

An importer binds a candidate document model, its validator, its cache
namespace and its reconciliation routine. The orchestrator drives the
shared stage machine and never inspects documents itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar

from acadimport.core.models import ImportResult
from acadimport.documents.base import CandidateDocument
from acadimport.reconcile.keyed_lock import KeyedLock
from acadimport.storage.base_record_store import BaseRecordStore
from acadimport.validation.base_validator import BaseDocumentValidator, ValidationReport

DocT = TypeVar("DocT", bound=CandidateDocument)


class BaseImporter(ABC, Generic[DocT]):
    """Shared wiring for importers.

    Args:
        store: Record store used by the reconcilers.
        namespace: Cache namespace for this kind.
        validator: Structural validator. Defaults to the kind's rule set.
        locks: Keyed lock shared across importers of one service.
    """

    kind: ClassVar[str]
    document_model: ClassVar[type[CandidateDocument]]

    def __init__(
        self,
        store: BaseRecordStore,
        namespace: str,
        validator: BaseDocumentValidator[DocT] | None = None,
        locks: KeyedLock | None = None,
    ) -> None:
        self._store = store
        self._namespace = namespace
        self._validator = validator or self.default_validator()
        self._locks = locks or KeyedLock()

    @property
    def namespace(self) -> str:
        return self._namespace

    @classmethod
    @abstractmethod
    def default_validator(cls) -> BaseDocumentValidator[DocT]:
        """Rule set used when no validator is injected."""

    @abstractmethod
    def cache_key(self, document: DocT) -> tuple[str, str | int]:
        """(logical_key, version) for the latest-pointer index."""

    @abstractmethod
    async def reconcile(self, document: DocT) -> ImportResult:
        """Merge a validated document into the store."""

    async def validate(self, document: DocT) -> ValidationReport:
        return await self._validator.validate(document)

    @staticmethod
    def _identifiers(**values: Any) -> dict[str, Any]:
        return {k: v for k, v in values.items() if v is not None}
