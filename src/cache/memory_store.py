# src/cache/memory_store.py — v1
"""In-process cache store (CACHE_BACKEND=memory).

Lost on restart. Used by tests and single-shot CLI runs.
"""

from __future__ import annotations

from acadimport.cache.base_cache_store import BaseCacheStore
from acadimport.cache.models import CacheEntry, LatestPointer


class MemoryCacheStore(BaseCacheStore):
    """Dictionary-backed cache store."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], CacheEntry] = {}
        self._latest: dict[tuple[str, str, str], LatestPointer] = {}

    async def get_entry(self, namespace: str, fingerprint: str) -> CacheEntry | None:
        return self._entries.get((namespace, fingerprint))

    async def put_entry_if_absent(self, entry: CacheEntry) -> bool:
        key = (entry.namespace, entry.fingerprint)
        if key in self._entries:
            return False
        self._entries[key] = entry
        return True

    async def delete_entry(self, namespace: str, fingerprint: str) -> None:
        self._entries.pop((namespace, fingerprint), None)

    async def get_latest(
        self, namespace: str, logical_key: str, version: str
    ) -> LatestPointer | None:
        return self._latest.get((namespace, logical_key, version))

    async def set_latest(self, pointer: LatestPointer) -> None:
        self._latest[(pointer.namespace, pointer.logical_key, pointer.version)] = pointer

    async def list_entries(self, namespace: str) -> list[CacheEntry]:
        return [e for (ns, _), e in self._entries.items() if ns == namespace]
