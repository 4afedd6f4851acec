# tests/unit/pipeline/test_unit_orchestrator.py — v3
"""Tests for pipeline/orchestrator.py — the shared import stage machine."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from acadimport.cache.extraction_cache import ExtractionCache
from acadimport.cache.fingerprint import compute_fingerprint
from acadimport.cache.memory_store import MemoryCacheStore
from acadimport.core.errors import ExtractionError, PersistenceError
from acadimport.extraction.base_extractor import BaseExtractionInvoker
from acadimport.pipeline.importers.syllabus import SyllabusImporter
from acadimport.pipeline.orchestrator import NO_DATA_MESSAGE, ImportPipeline
from acadimport.storage.base_record_store import BaseRecordStore
from acadimport.storage.json_record_store import JsonRecordStore
from acadimport.storage.memory_record_store import InMemoryRecordStore


class BlockingExtractor(BaseExtractionInvoker):
    """Blocks until cancelled; signals once the call has started."""

    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def extract(self, raw_text: str) -> str:
        self.started.set()
        await asyncio.Event().wait()
        return raw_text


def _mock_store() -> AsyncMock:
    store = AsyncMock(spec=BaseRecordStore)
    store.find_by_key.return_value = None
    store.find_versioned.return_value = None
    return store


def _assert_no_writes(store: AsyncMock) -> None:
    for method in ("create_record", "update_record", "create_node", "update_node",
                   "delete_node", "create_edge"):
        getattr(store, method).assert_not_called()


@pytest.fixture
def importer(memory_store):
    return SyllabusImporter(memory_store, "syllabus")


class TestSuccessPath:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, importer, counting_extractor, extraction_cache, syllabus_json):
        pipeline = ImportPipeline(counting_extractor, extraction_cache)
        first = await pipeline.run(importer, syllabus_json)
        assert first.outcome == "success"
        assert first.cache_hit is False
        assert first.fingerprint == compute_fingerprint(syllabus_json)

        second = await pipeline.run(importer, syllabus_json)
        assert second.cache_hit is True
        assert second.outcome == "skipped"
        assert counting_extractor.call_count == 1

    @pytest.mark.asyncio
    async def test_latest_pointer_refreshed(self, importer, counting_extractor, extraction_cache, syllabus_json):
        await ImportPipeline(counting_extractor, extraction_cache).run(importer, syllabus_json)
        pointer = await extraction_cache.get_latest("syllabus", "PRO192", 1)
        assert pointer is not None
        assert json.loads(pointer.payload)["subjectCode"] == "PRO192"

    @pytest.mark.asyncio
    async def test_bytes_input(self, importer, counting_extractor, syllabus_json):
        result = await ImportPipeline(counting_extractor).run(importer, syllabus_json.encode())
        assert result.outcome == "success"

    @pytest.mark.asyncio
    async def test_disabled_cache_always_extracts(self, importer, counting_extractor, syllabus_json):
        pipeline = ImportPipeline(counting_extractor, ExtractionCache(None))
        await pipeline.run(importer, syllabus_json)
        await pipeline.run(importer, syllabus_json)
        assert counting_extractor.call_count == 2


class TestInputErrors:
    @pytest.mark.parametrize("raw", [None, "", "   \n", b"\xff\xfe", 42])
    @pytest.mark.asyncio
    async def test_rejected_before_extraction(self, raw, importer, counting_extractor):
        result = await ImportPipeline(counting_extractor).run(importer, raw)
        assert result.outcome == "failed"
        assert result.fingerprint is None
        assert counting_extractor.call_count == 0


class TestExtractionFailures:
    @pytest.mark.asyncio
    async def test_extractor_error(self, importer, failing_extractor, extraction_cache, syllabus_json):
        result = await ImportPipeline(failing_extractor, extraction_cache).run(importer, syllabus_json)
        assert result.outcome == "failed"
        assert result.message == NO_DATA_MESSAGE
        assert result.errors == ["model unavailable"]
        assert await extraction_cache.try_get("syllabus", result.fingerprint) is None

    @pytest.mark.parametrize("payload", ["", "   "])
    @pytest.mark.asyncio
    async def test_empty_extraction(self, payload, importer, make_extractor, extraction_cache):
        result = await ImportPipeline(make_extractor(payload=payload), extraction_cache).run(
            importer, "Some syllabus text",
        )
        assert result.message == NO_DATA_MESSAGE
        assert await extraction_cache.try_get("syllabus", result.fingerprint) is None

    @pytest.mark.asyncio
    async def test_timeout(self, importer, syllabus_json):
        pipeline = ImportPipeline(BlockingExtractor(), extraction_timeout_s=0.01)
        result = await pipeline.run(importer, syllabus_json)
        assert result.message == NO_DATA_MESSAGE
        assert "timed out" in result.errors[0]

    @pytest.mark.asyncio
    async def test_cancellation_before_reconcile(self, syllabus_json):
        store = _mock_store()
        extractor = BlockingExtractor()
        pipeline = ImportPipeline(extractor)
        task = asyncio.create_task(pipeline.run(SyllabusImporter(store, "syllabus"), syllabus_json))
        await extractor.started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        _assert_no_writes(store)


class TestValidationFailures:
    @pytest.mark.asyncio
    async def test_invalid_document_never_reaches_store(self, syllabus_data, extraction_cache, counting_extractor):
        syllabus_data["subjectCode"] = ""
        syllabus_data["versionNumber"] = 0
        store = _mock_store()
        raw = json.dumps(syllabus_data)

        result = await ImportPipeline(counting_extractor, extraction_cache).run(
            SyllabusImporter(store, "syllabus"), raw,
        )
        assert result.outcome == "failed"
        assert result.message == "Validation failed"
        assert len(result.field_errors) >= 2
        _assert_no_writes(store)
        # Extraction result is kept so a retry skips extraction
        assert await extraction_cache.try_get("syllabus", result.fingerprint) == raw
        # A rejected document never becomes the latest payload
        assert await extraction_cache.get_latest("syllabus", "", 0) is None

    @pytest.mark.asyncio
    async def test_undecodable_payload(self, importer, make_extractor, extraction_cache):
        result = await ImportPipeline(make_extractor(payload="[1, 2]"), extraction_cache).run(
            importer, "raw",
        )
        assert result.message == "Validation failed"
        assert result.field_errors[0].startswith("payload:")

    @pytest.mark.asyncio
    async def test_retry_after_validation_failure_hits_cache(
        self, importer, make_extractor, extraction_cache,
    ):
        extractor = make_extractor(payload='{"subjectCode": ""}')
        pipeline = ImportPipeline(extractor, extraction_cache)
        await pipeline.run(importer, "raw syllabus")
        retry = await pipeline.run(importer, "raw syllabus")
        assert retry.cache_hit is True
        assert retry.outcome == "failed"
        assert extractor.call_count == 1

    @pytest.mark.asyncio
    async def test_rejected_import_keeps_previous_latest(
        self, importer, counting_extractor, extraction_cache, syllabus_data, syllabus_json,
    ):
        pipeline = ImportPipeline(counting_extractor, extraction_cache)
        assert (await pipeline.run(importer, syllabus_json)).outcome == "success"

        syllabus_data["content"]["assessments"] = [{"type": "", "weightPercentage": 400}]
        rejected = await pipeline.run(importer, json.dumps(syllabus_data))
        assert rejected.outcome == "failed"

        pointer = await extraction_cache.get_latest("syllabus", "PRO192", 1)
        assert pointer.payload == syllabus_json
        assert pointer.fingerprint != rejected.fingerprint
        # The rejected extraction is still cached by fingerprint
        assert await extraction_cache.try_get("syllabus", rejected.fingerprint) is not None


class TestDryRun:
    @pytest.mark.asyncio
    async def test_valid_document_not_persisted(self, counting_extractor, extraction_cache, syllabus_json):
        store = _mock_store()
        result = await ImportPipeline(counting_extractor, extraction_cache).run(
            SyllabusImporter(store, "syllabus"), syllabus_json, dry_run=True,
        )
        assert result.outcome == "success"
        assert result.message == "Syllabus data is valid and ready for import"
        assert result.extracted_data["subjectCode"] == "PRO192"
        assert result.extracted_data["content"]["assessments"][0]["weightPercentage"] == 40
        _assert_no_writes(store)
        store.find_by_key.assert_not_called()
        assert await extraction_cache.try_get("syllabus", result.fingerprint) == syllabus_json
        assert await extraction_cache.get_latest("syllabus", "PRO192", 1) is None

    @pytest.mark.asyncio
    async def test_invalid_document_returns_errors_and_data(
        self, counting_extractor, extraction_cache, syllabus_data,
    ):
        syllabus_data["versionNumber"] = 500
        store = _mock_store()
        result = await ImportPipeline(counting_extractor, extraction_cache).run(
            SyllabusImporter(store, "syllabus"), json.dumps(syllabus_data), dry_run=True,
        )
        assert result.outcome == "failed"
        assert any(e.startswith("versionNumber") for e in result.field_errors)
        assert result.extracted_data["versionNumber"] == 500
        _assert_no_writes(store)

    @pytest.mark.asyncio
    async def test_import_after_validation_reuses_extraction(
        self, importer, counting_extractor, extraction_cache, memory_store, syllabus_json,
    ):
        pipeline = ImportPipeline(counting_extractor, extraction_cache)
        await pipeline.run(importer, syllabus_json, dry_run=True)
        assert memory_store.record_count == 0

        result = await pipeline.run(importer, syllabus_json)
        assert result.outcome == "success"
        assert result.cache_hit is True
        assert result.extracted_data is None
        assert counting_extractor.call_count == 1


class TestReconcileFailures:
    @pytest.mark.asyncio
    async def test_persistence_error(self, counting_extractor, syllabus_json):
        store = _mock_store()
        store.create_record.side_effect = PersistenceError("disk full")
        result = await ImportPipeline(counting_extractor).run(
            SyllabusImporter(store, "syllabus"), syllabus_json,
        )
        assert result.outcome == "failed"
        assert "disk full" in result.message

    @pytest.mark.asyncio
    async def test_retry_after_failed_write_is_not_skipped(self, tmp_path, counting_extractor, syllabus_json):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = JsonRecordStore(blocker / "records.json")
        pipeline = ImportPipeline(counting_extractor)

        first = await pipeline.run(SyllabusImporter(store, "syllabus"), syllabus_json)
        retry = await pipeline.run(SyllabusImporter(store, "syllabus"), syllabus_json)
        assert first.outcome == "failed"
        assert retry.outcome == "failed"
        assert "Cannot write" in retry.message
        assert store.record_count == 0

    @pytest.mark.asyncio
    async def test_extraction_error_is_not_persistence(self, make_extractor, syllabus_json):
        extractor = make_extractor(error=ExtractionError("bad"))
        store = InMemoryRecordStore()
        await ImportPipeline(extractor).run(SyllabusImporter(store, "syllabus"), syllabus_json)
        assert store.record_count == 0


class TestCacheIsolation:
    @pytest.mark.asyncio
    async def test_namespaces_do_not_share_entries(self, counting_extractor, syllabus_json, memory_store):
        cache = ExtractionCache(MemoryCacheStore())
        pipeline = ImportPipeline(counting_extractor, cache)
        await pipeline.run(SyllabusImporter(memory_store, "syllabus"), syllabus_json)
        other = await pipeline.run(SyllabusImporter(memory_store, "syllabus-v2"), syllabus_json)
        assert other.cache_hit is False
        assert counting_extractor.call_count == 2
