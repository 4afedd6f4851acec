# src/cache/redis_store.py — v2
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires 'redis' package: pip install redis.
Suitable for multi-instance deployments sharing one cache.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from acadimport.cache.base_cache_store import BaseCacheStore
from acadimport.cache.models import CacheEntry, LatestPointer

logger = logging.getLogger(__name__)

_KEY_PREFIX = "acadimport:cache:"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed cache store."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def get_entry(self, namespace: str, fingerprint: str) -> CacheEntry | None:
        data = self._client.get(_entry_key(namespace, fingerprint))
        if data is None:
            return None
        try:
            return CacheEntry(**json.loads(data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to deserialize cache entry %s/%s: %s", namespace, fingerprint, e)
            return None

    async def put_entry_if_absent(self, entry: CacheEntry) -> bool:
        # SET NX keeps the first writer's payload
        written = self._client.set(
            _entry_key(entry.namespace, entry.fingerprint),
            entry.model_dump_json(),
            nx=True,
        )
        if written:
            self._client.sadd(_index_key(entry.namespace), entry.fingerprint)
        return bool(written)

    async def delete_entry(self, namespace: str, fingerprint: str) -> None:
        self._client.delete(_entry_key(namespace, fingerprint))
        self._client.srem(_index_key(namespace), fingerprint)

    async def get_latest(
        self, namespace: str, logical_key: str, version: str
    ) -> LatestPointer | None:
        data = self._client.get(_latest_key(namespace, logical_key, version))
        if data is None:
            return None
        try:
            return LatestPointer(**json.loads(data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to deserialize latest pointer %s: %s", logical_key, e)
            return None

    async def set_latest(self, pointer: LatestPointer) -> None:
        self._client.set(
            _latest_key(pointer.namespace, pointer.logical_key, pointer.version),
            pointer.model_dump_json(),
        )

    async def list_entries(self, namespace: str) -> list[CacheEntry]:
        entries: list[CacheEntry] = []
        for fingerprint in sorted(self._client.smembers(_index_key(namespace))):
            entry = await self.get_entry(namespace, fingerprint)
            if entry is not None:
                entries.append(entry)
        return entries

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()


def _entry_key(namespace: str, fingerprint: str) -> str:
    return f"{_KEY_PREFIX}{namespace}:hash:{fingerprint}"


def _latest_key(namespace: str, logical_key: str, version: str) -> str:
    return f"{_KEY_PREFIX}{namespace}:latest:{logical_key}:{version}"


def _index_key(namespace: str) -> str:
    return f"{_KEY_PREFIX}{namespace}:__index__"
