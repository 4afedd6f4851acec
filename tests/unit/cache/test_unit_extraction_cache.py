# tests/unit/cache/test_unit_extraction_cache.py — v2
"""Tests for cache/extraction_cache.py — best-effort semantics."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from acadimport.cache.base_cache_store import BaseCacheStore
from acadimport.cache.extraction_cache import ExtractionCache
from acadimport.cache.memory_store import MemoryCacheStore

FP = "f" * 64


def _broken_store() -> AsyncMock:
    store = AsyncMock(spec=BaseCacheStore)
    store.get_entry.side_effect = ConnectionError("backend down")
    store.put_entry_if_absent.side_effect = ConnectionError("backend down")
    store.set_latest.side_effect = OSError("disk full")
    store.get_latest.side_effect = ConnectionError("backend down")
    store.delete_entry.side_effect = ConnectionError("backend down")
    return store


class TestExtractionCache:
    @pytest.mark.asyncio
    async def test_miss_returns_none(self):
        cache = ExtractionCache(MemoryCacheStore())
        assert await cache.try_get("syllabus", FP) is None

    @pytest.mark.asyncio
    async def test_put_then_hit(self):
        cache = ExtractionCache(MemoryCacheStore())
        await cache.put("syllabus", "PRO192", 1, '{"x": 1}', "raw", FP)
        assert await cache.try_get("syllabus", FP) == '{"x": 1}'

    @pytest.mark.asyncio
    async def test_second_put_keeps_entry_but_refreshes_latest(self):
        store = MemoryCacheStore()
        cache = ExtractionCache(store)
        await cache.put("syllabus", "PRO192", 1, "payload", "raw", FP)
        first_latest = await cache.get_latest("syllabus", "PRO192", 1)

        await cache.put("syllabus", "PRO192", 1, "payload", "raw", FP)

        entries = await store.list_entries("syllabus")
        assert len(entries) == 1
        second_latest = await cache.get_latest("syllabus", "PRO192", 1)
        assert second_latest.updated_at >= first_latest.updated_at

    @pytest.mark.asyncio
    async def test_latest_follows_most_recent_fingerprint(self):
        cache = ExtractionCache(MemoryCacheStore())
        await cache.put("syllabus", "PRO192", 1, "old", "raw-a", "a" * 64)
        await cache.put("syllabus", "PRO192", 1, "new", "raw-b", "b" * 64)
        latest = await cache.get_latest("syllabus", "PRO192", 1)
        assert latest.payload == "new"
        assert latest.fingerprint == "b" * 64
        # Hash-addressed entries are untouched
        assert await cache.try_get("syllabus", "a" * 64) == "old"

    @pytest.mark.asyncio
    async def test_put_entry_leaves_latest_alone(self):
        cache = ExtractionCache(MemoryCacheStore())
        await cache.put("syllabus", "PRO192", 1, "good", "raw-a", "a" * 64)
        await cache.put_entry("syllabus", "rejected", "raw-b", "b" * 64)

        assert await cache.try_get("syllabus", "b" * 64) == "rejected"
        latest = await cache.get_latest("syllabus", "PRO192", 1)
        assert latest.payload == "good"
        assert latest.fingerprint == "a" * 64

    @pytest.mark.asyncio
    async def test_put_entry_failure_never_raises(self):
        store = _broken_store()
        await ExtractionCache(store).put_entry("syllabus", "payload", "raw", FP)
        store.set_latest.assert_not_called()

    @pytest.mark.asyncio
    async def test_read_failure_is_a_miss(self, caplog):
        cache = ExtractionCache(_broken_store())
        with caplog.at_level(logging.WARNING):
            assert await cache.try_get("syllabus", FP) is None
        assert "treating as miss" in caplog.text

    @pytest.mark.asyncio
    async def test_write_failures_never_raise(self):
        store = _broken_store()
        cache = ExtractionCache(store)
        await cache.put("syllabus", "PRO192", 1, "payload", "raw", FP)
        # Latest pointer is attempted even when the entry write failed
        store.set_latest.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_clear(self):
        cache = ExtractionCache(MemoryCacheStore())
        await cache.put("syllabus", "PRO192", 1, "payload", "raw", FP)
        assert await cache.clear("syllabus", FP) is True
        assert await cache.try_get("syllabus", FP) is None

    @pytest.mark.asyncio
    async def test_clear_failure_returns_false(self):
        cache = ExtractionCache(_broken_store())
        assert await cache.clear("syllabus", FP) is False
        assert await cache.get_latest("syllabus", "PRO192", 1) is None

    @pytest.mark.asyncio
    async def test_disabled_cache(self):
        cache = ExtractionCache(None)
        assert cache.enabled is False
        await cache.put("syllabus", "PRO192", 1, "payload", "raw", FP)
        assert await cache.try_get("syllabus", FP) is None
        assert await cache.clear("syllabus", FP) is False


class TestBaseCacheStore:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseCacheStore()  # type: ignore[abstract]
