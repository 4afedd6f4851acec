# src/pipeline/orchestrator.py — v3
"""Import pipeline orchestrator.

Drives one import request through:
  fingerprint → cache check → (miss) extract → cache entry write →
  decode + validate → reconcile → latest-pointer refresh.

Extraction results are cached before validation so that a retry of the
same raw text never re-extracts, even when validation or reconciliation
failed. The latest pointer only ever holds the payload of a successful
import. Validation failures never reach the store. Cancellation
propagates out of the extraction await, before any reconciliation write.

A dry run stops after validation: the extracted document and its field
errors are returned, the cache entry is kept and nothing is persisted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from acadimport.cache.extraction_cache import ExtractionCache
from acadimport.cache.fingerprint import compute_fingerprint
from acadimport.core.errors import (
    DocumentValidationError,
    DuplicateRecordError,
    ExtractionError,
    InputError,
    InvalidInputError,
    PersistenceError,
)
from acadimport.core.models import ImportResult
from acadimport.documents.base import decode_document
from acadimport.logging.context import (
    clear_context,
    set_fingerprint,
    set_import_context,
    set_stage,
)
from acadimport.pipeline.importers.base import BaseImporter
from acadimport.pipeline.state import ImportStage, ImportState

if TYPE_CHECKING:
    from acadimport.extraction.base_extractor import BaseExtractionInvoker

logger = logging.getLogger(__name__)

NO_DATA_MESSAGE = "extraction produced no data"


class ImportPipeline:
    """Run imports for any importer against shared collaborators.

    Args:
        extractor: Extraction invoker used on cache miss.
        cache: Extraction cache. A disabled cache always misses.
        extraction_timeout_s: Optional bound on one extraction call.
    """

    def __init__(
        self,
        extractor: BaseExtractionInvoker,
        cache: ExtractionCache | None = None,
        extraction_timeout_s: float | None = None,
    ) -> None:
        self._extractor = extractor
        self._cache = cache or ExtractionCache(None)
        self._timeout = extraction_timeout_s

    async def run(
        self,
        importer: BaseImporter[Any],
        raw_text: str | bytes | None,
        dry_run: bool = False,
    ) -> ImportResult:
        """Import one raw document. Never raises for expected failures.

        With ``dry_run`` the request stops after validation and the store
        is never touched.
        """
        state = ImportState(kind=importer.kind, namespace=importer.namespace, dry_run=dry_run)
        set_import_context(state.import_id, state.namespace)
        start = time.monotonic()
        try:
            result = await self._run(importer, raw_text, state)
        finally:
            clear_context()
        result.fingerprint = state.fingerprint
        result.cache_hit = state.cache_hit
        logger.info(
            "%s %s (%s) finished: %s in %.2fs: %s",
            "Validation" if dry_run else "Import",
            state.import_id, state.kind, result.outcome,
            time.monotonic() - start, result.message,
        )
        return result

    async def _run(
        self, importer: BaseImporter[Any], raw_text: str | bytes | None, state: ImportState
    ) -> ImportResult:
        # CacheCheck
        self._advance(state, ImportStage.CACHE_CHECK)
        try:
            text = _require_text(raw_text)
            state.fingerprint = compute_fingerprint(text)
        except InputError as e:
            return self._done(state, ImportResult.failed(str(e)))
        set_fingerprint(state.fingerprint)

        payload = await self._cache.try_get(importer.namespace, state.fingerprint)
        if payload:
            state.cache_hit = True
            self._advance(state, ImportStage.CACHE_HIT)
        else:
            # Extracting
            self._advance(state, ImportStage.EXTRACTING)
            try:
                payload = await self._extract(text)
            except ExtractionError as e:
                logger.warning("Extraction failed: %s", e)
                return self._done(state, ImportResult.failed(NO_DATA_MESSAGE, errors=[str(e)]))
            if not payload or not payload.strip():
                return self._done(state, ImportResult.failed(NO_DATA_MESSAGE))
            await self._cache.put_entry(importer.namespace, payload, text, state.fingerprint)
        state.payload = payload

        # Validating
        self._advance(state, ImportStage.VALIDATING)
        try:
            document = decode_document(importer.document_model, payload)
        except DocumentValidationError as e:
            return self._done(
                state, ImportResult.failed("Validation failed", field_errors=e.field_errors)
            )
        report = await importer.validate(document)
        extracted = document.model_dump(mode="json", by_alias=True) if state.dry_run else None
        if not report.is_valid:
            logger.info("Validation rejected document: %d errors", len(report.field_errors))
            return self._done(
                state,
                ImportResult.failed(
                    "Validation failed",
                    field_errors=report.field_errors,
                    extracted_data=extracted,
                ),
            )
        if state.dry_run:
            return self._done(
                state,
                ImportResult(
                    outcome="success",
                    message=f"{importer.kind.capitalize()} data is valid and ready for import",
                    extracted_data=extracted,
                ),
            )

        # Reconciling
        self._advance(state, ImportStage.RECONCILING)
        try:
            result = await importer.reconcile(document)
        except DuplicateRecordError as e:
            result = ImportResult(outcome="skipped", message=str(e), skipped_count=1)
        except InputError as e:
            return self._done(state, ImportResult.failed(str(e)))
        except PersistenceError as e:
            logger.error("Persistence failed during %s import: %s", importer.kind, e)
            return self._done(
                state, ImportResult.failed(f"Persistence failed: {e}", errors=[str(e)])
            )

        logical_key, version = importer.cache_key(document)
        await self._cache.put(
            importer.namespace, str(logical_key), version, payload, text, state.fingerprint,
        )
        return self._done(state, result)

    async def _extract(self, text: str) -> str:
        try:
            if self._timeout is not None:
                return await asyncio.wait_for(self._extractor.extract(text), self._timeout)
            return await self._extractor.extract(text)
        except asyncio.TimeoutError as e:
            raise ExtractionError(
                f"Extraction timed out after {self._timeout:g}s"
            ) from e

    def _advance(self, state: ImportState, stage: ImportStage) -> None:
        state.advance(stage)
        set_stage(stage.value)
        logger.debug("Stage → %s", stage.value)

    def _done(self, state: ImportState, result: ImportResult) -> ImportResult:
        self._advance(state, ImportStage.DONE)
        return result


def _require_text(raw_text: str | bytes | None) -> str:
    if raw_text is None:
        raise InvalidInputError("Raw text is required.")
    if isinstance(raw_text, (bytes, bytearray)):
        try:
            raw_text = bytes(raw_text).decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidInputError(f"Raw text is not valid UTF-8: {e}") from e
    if not isinstance(raw_text, str):
        raise InvalidInputError(f"Raw text must be text, got {type(raw_text).__name__}.")
    if not raw_text.strip():
        raise InvalidInputError("Raw text is empty.")
    return raw_text
