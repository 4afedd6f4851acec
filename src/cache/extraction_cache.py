# src/cache/extraction_cache.py — v1
"""Namespaced, fingerprint-addressed cache of extraction results.

The cache is an optimization, never a correctness dependency: every
backend failure is logged and reported as a miss (reads) or dropped
(writes). Backend exceptions never reach callers.
"""

from __future__ import annotations

import logging

from acadimport.cache.base_cache_store import BaseCacheStore
from acadimport.cache.models import CacheEntry, LatestPointer

logger = logging.getLogger(__name__)


class ExtractionCache:
    """Best-effort wrapper over a BaseCacheStore.

    Args:
        store: Cache backend. None disables caching entirely.
    """

    def __init__(self, store: BaseCacheStore | None) -> None:
        self._store = store

    @property
    def enabled(self) -> bool:
        return self._store is not None

    async def try_get(self, namespace: str, fingerprint: str) -> str | None:
        """Return the cached payload, or None on miss or backend failure."""
        if self._store is None:
            return None
        try:
            entry = await self._store.get_entry(namespace, fingerprint)
        except Exception:
            logger.warning(
                "Cache read failed for %s/%s, treating as miss",
                namespace, fingerprint, exc_info=True,
            )
            return None
        if entry is None:
            logger.debug("Cache miss: %s/%s", namespace, fingerprint)
            return None
        logger.info("Cache hit: %s/%s", namespace, fingerprint)
        return entry.payload

    async def put(
        self,
        namespace: str,
        logical_key: str,
        version: str | int,
        payload: str,
        raw_text: str,
        fingerprint: str,
    ) -> None:
        """Record the payload of a successful import.

        The hash-addressed entry is written only if absent; the latest
        pointer for (namespace, logical_key, version) is always refreshed.
        """
        if self._store is None:
            return
        await self.put_entry(namespace, payload, raw_text, fingerprint)
        try:
            await self._store.set_latest(
                LatestPointer(
                    namespace=namespace,
                    logical_key=logical_key,
                    version=str(version),
                    payload=payload,
                    fingerprint=fingerprint,
                )
            )
        except Exception:
            logger.warning(
                "Latest pointer write failed for %s/%s/%s",
                namespace, logical_key, version, exc_info=True,
            )

    async def put_entry(
        self, namespace: str, payload: str, raw_text: str, fingerprint: str
    ) -> None:
        """Write only the hash-addressed entry, if absent. Pointers are untouched."""
        if self._store is None:
            return
        try:
            written = await self._store.put_entry_if_absent(
                CacheEntry(
                    namespace=namespace,
                    fingerprint=fingerprint,
                    payload=payload,
                    raw_text=raw_text,
                )
            )
            if not written:
                logger.debug("Cache entry %s/%s already present", namespace, fingerprint)
        except Exception:
            logger.warning(
                "Cache entry write failed for %s/%s", namespace, fingerprint, exc_info=True,
            )

    async def get_latest(
        self, namespace: str, logical_key: str, version: str | int
    ) -> LatestPointer | None:
        """Inspect the latest pointer for a logical key."""
        if self._store is None:
            return None
        try:
            return await self._store.get_latest(namespace, logical_key, str(version))
        except Exception:
            logger.warning("Latest pointer read failed for %s/%s", namespace, logical_key, exc_info=True)
            return None

    async def clear(self, namespace: str, fingerprint: str) -> bool:
        """Evict a hash-addressed entry. Returns False on backend failure."""
        if self._store is None:
            return False
        try:
            await self._store.delete_entry(namespace, fingerprint)
        except Exception:
            logger.warning("Cache eviction failed for %s/%s", namespace, fingerprint, exc_info=True)
            return False
        logger.info("Evicted cache entry %s/%s", namespace, fingerprint)
        return True
