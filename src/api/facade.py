# src/api/facade.py — v3
"""Public API facade: single entry point for imports and dependency analysis.

Usage:
    from acadimport.api.facade import create_import_service
    service = create_import_service()
    result = await service.import_syllabus(raw_text)
"""

from __future__ import annotations

import logging
import uuid

from acadimport.api.models import DependencyAnalysisResult, UnitOutcome
from acadimport.cache.cache_factory import create_cache_store
from acadimport.cache.extraction_cache import ExtractionCache
from acadimport.config.settings import Settings, load_settings
from acadimport.core.errors import InvalidKeyError, PersistenceError
from acadimport.core.models import ImportResult
from acadimport.extraction.base_extractor import BaseExtractionInvoker
from acadimport.extraction.passthrough_extractor import JsonPassthroughExtractor
from acadimport.graph.dependency_builder import DependencyGraphBuilder, units_from_store
from acadimport.graph.inference import BaseRelationshipInferrer
from acadimport.logging.context import clear_context, set_import_context
from acadimport.pipeline.importers.curriculum import CurriculumImporter
from acadimport.pipeline.importers.roadmap import RoadmapImporter
from acadimport.pipeline.importers.syllabus import SyllabusImporter
from acadimport.pipeline.orchestrator import ImportPipeline
from acadimport.reconcile.flat import normalize_key
from acadimport.reconcile.keyed_lock import KeyedLock
from acadimport.storage.base_record_store import BaseRecordStore
from acadimport.storage.store_factory import create_record_store

logger = logging.getLogger(__name__)


class ImportService:
    """Wires settings, cache, store, extractor and inferrer together.

    Args:
        settings: Application settings.
        extractor: Extraction invoker for all document kinds.
        cache: Extraction cache.
        store: Record store.
        inferrer: Semantic relationship inferrer. None means structural
            dependency analysis only.
    """

    def __init__(
        self,
        settings: Settings,
        extractor: BaseExtractionInvoker,
        cache: ExtractionCache,
        store: BaseRecordStore,
        inferrer: BaseRelationshipInferrer | None = None,
    ) -> None:
        self._settings = settings
        self._cache = cache
        self._store = store
        self._inferrer = inferrer
        self._locks = KeyedLock()
        self._pipeline = ImportPipeline(
            extractor, cache, extraction_timeout_s=settings.extraction_timeout_s,
        )
        self._curriculum = CurriculumImporter(
            store, settings.curriculum_namespace, locks=self._locks,
        )
        self._syllabus = SyllabusImporter(
            store, settings.syllabus_namespace, locks=self._locks,
        )

    @property
    def store(self) -> BaseRecordStore:
        return self._store

    @property
    def cache(self) -> ExtractionCache:
        return self._cache

    async def import_curriculum(self, raw_text: str | bytes | None) -> ImportResult:
        return await self._pipeline.run(self._curriculum, raw_text)

    async def import_syllabus(self, raw_text: str | bytes | None) -> ImportResult:
        return await self._pipeline.run(self._syllabus, raw_text)

    async def validate_curriculum(self, raw_text: str | bytes | None) -> ImportResult:
        """Extract and validate a curriculum without persisting it.

        The extraction is cached like an import, so a later import of the
        same text skips extraction. ``extracted_data`` carries the document.
        """
        return await self._pipeline.run(self._curriculum, raw_text, dry_run=True)

    async def validate_syllabus(self, raw_text: str | bytes | None) -> ImportResult:
        """Extract and validate a syllabus without persisting it."""
        return await self._pipeline.run(self._syllabus, raw_text, dry_run=True)

    async def import_roadmap(
        self,
        raw_text: str | bytes | None,
        overwrite_metadata: bool | None = None,
        prune_orphans: bool | None = None,
    ) -> ImportResult:
        """Import a roadmap. Per-call flags override the settings defaults."""
        importer = RoadmapImporter(
            self._store,
            self._settings.roadmap_namespace,
            locks=self._locks,
            overwrite_metadata=(
                self._settings.roadmap_overwrite_metadata
                if overwrite_metadata is None
                else overwrite_metadata
            ),
            prune_orphans=(
                self._settings.tree_prune_orphans if prune_orphans is None else prune_orphans
            ),
        )
        return await self._pipeline.run(importer, raw_text)

    async def analyze_dependencies(self, program_code: str) -> DependencyAnalysisResult:
        """Build skill dependency edges for every subject of a program.

        Store failures are reported as an unsuccessful result, never raised.
        """
        set_import_context(str(uuid.uuid4()), "dependencies")
        try:
            try:
                code = normalize_key("program", program_code)
            except InvalidKeyError as e:
                return DependencyAnalysisResult(success=False, message=str(e))
            try:
                return await self._analyze(code)
            except PersistenceError as e:
                logger.error("Dependency analysis for %s failed: %s", code, e)
                return DependencyAnalysisResult(
                    success=False, message=f"Persistence failed: {e}", errors=[str(e)],
                )
        finally:
            clear_context()

    async def _analyze(self, code: str) -> DependencyAnalysisResult:
        program = await self._store.find_by_key("program", code)
        if program is None:
            return DependencyAnalysisResult(
                success=False, message=f"Program '{code}' not found."
            )

        units = await units_from_store(self._store, program.id)
        if not any(unit.nodes for unit in units):
            return DependencyAnalysisResult(
                success=False,
                program_id=program.id,
                message="No skills are sourced from any subjects in this program.",
            )

        builder = DependencyGraphBuilder(
            self._store,
            inferrer=self._inferrer,
            concurrency=self._settings.inference_concurrency,
        )
        built = await builder.build(program.id, units)
        cycles = built.cycles()
        if cycles:
            logger.warning("Program %s has %d dependency cycles", code, len(cycles))

        return DependencyAnalysisResult(
            success=True,
            message=(
                f"Analysis complete: {built.created} dependencies created, "
                f"{built.skipped} skipped."
            ),
            program_id=program.id,
            created=built.created,
            skipped=built.skipped,
            edges=built.edges,
            units=[
                UnitOutcome(
                    unit_id=u.unit_id, ok=u.ok, created=u.created,
                    skipped=u.skipped, error=u.error,
                )
                for u in built.unit_results
            ],
            cycles=cycles,
            errors=built.errors,
        )


def create_import_service(
    settings: Settings | None = None,
    extractor: BaseExtractionInvoker | None = None,
    inferrer: BaseRelationshipInferrer | None = None,
    store: BaseRecordStore | None = None,
) -> ImportService:
    """Build an ImportService with default collaborators.

    Args:
        settings: Global settings. Loaded from .env if None.
        extractor: Defaults to JSON pass-through (manual extraction).
        inferrer: Defaults to none (structural dependencies only).
        store: Defaults to the configured record store backend.
    """
    settings = settings or load_settings()
    cache_store = create_cache_store(settings) if settings.cache_enabled else None
    return ImportService(
        settings=settings,
        extractor=extractor or JsonPassthroughExtractor(),
        cache=ExtractionCache(cache_store),
        store=store or create_record_store(settings),
        inferrer=inferrer,
    )
