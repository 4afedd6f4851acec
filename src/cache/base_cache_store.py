# src/cache/base_cache_store.py — v2
"""Abstract cache store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from acadimport.cache.models import CacheEntry, LatestPointer


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends.

    Entries are addressed by (namespace, fingerprint); latest pointers
    by (namespace, logical_key, version).
    """

    @abstractmethod
    async def get_entry(self, namespace: str, fingerprint: str) -> CacheEntry | None:
        """Retrieve the hash-addressed entry."""

    @abstractmethod
    async def put_entry_if_absent(self, entry: CacheEntry) -> bool:
        """Store an entry unless one exists. Returns True if written."""

    @abstractmethod
    async def delete_entry(self, namespace: str, fingerprint: str) -> None:
        """Remove a hash-addressed entry."""

    @abstractmethod
    async def get_latest(
        self, namespace: str, logical_key: str, version: str
    ) -> LatestPointer | None:
        """Retrieve the latest pointer for a logical key."""

    @abstractmethod
    async def set_latest(self, pointer: LatestPointer) -> None:
        """Overwrite the latest pointer for a logical key."""

    @abstractmethod
    async def list_entries(self, namespace: str) -> list[CacheEntry]:
        """List all entries of a namespace."""
