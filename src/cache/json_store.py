# src/cache/json_store.py — v2
"""JSON file-based cache store (default CACHE_BACKEND=json).

Layout under CACHE_ROOT:
    <namespace>/_hashes/<fingerprint>.json
    <namespace>/<logical_key>/<version>/latest.json
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from pydantic import ValidationError

from acadimport.cache.base_cache_store import BaseCacheStore
from acadimport.cache.models import CacheEntry, LatestPointer

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get_entry(self, namespace: str, fingerprint: str) -> CacheEntry | None:
        path = self._entry_path(namespace, fingerprint)
        if not path.exists():
            return None
        try:
            return CacheEntry(**json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to read cache entry %s/%s: %s", namespace, fingerprint, e)
            return None

    async def put_entry_if_absent(self, entry: CacheEntry) -> bool:
        path = self._entry_path(entry.namespace, entry.fingerprint)
        if path.exists():
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(entry.model_dump_json(indent=2), encoding="utf-8")
        return True

    async def delete_entry(self, namespace: str, fingerprint: str) -> None:
        path = self._entry_path(namespace, fingerprint)
        if path.exists():
            path.unlink()

    async def get_latest(
        self, namespace: str, logical_key: str, version: str
    ) -> LatestPointer | None:
        path = self._latest_path(namespace, logical_key, version)
        if not path.exists():
            return None
        try:
            return LatestPointer(**json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to read latest pointer %s: %s", path, e)
            return None

    async def set_latest(self, pointer: LatestPointer) -> None:
        path = self._latest_path(pointer.namespace, pointer.logical_key, pointer.version)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(pointer.model_dump_json(indent=2), encoding="utf-8")

    async def list_entries(self, namespace: str) -> list[CacheEntry]:
        entries: list[CacheEntry] = []
        hashes_dir = self._root / _safe(namespace) / "_hashes"
        if not hashes_dir.is_dir():
            return entries

        for path in sorted(hashes_dir.glob("*.json")):
            try:
                entries.append(CacheEntry(**json.loads(path.read_text(encoding="utf-8"))))
            except (json.JSONDecodeError, ValidationError):
                logger.debug("Skipping unreadable cache file %s", path)
        return entries

    def _entry_path(self, namespace: str, fingerprint: str) -> Path:
        return self._root / _safe(namespace) / "_hashes" / f"{_safe(fingerprint)}.json"

    def _latest_path(self, namespace: str, logical_key: str, version: str) -> Path:
        return (
            self._root / _safe(namespace) / _safe(logical_key) / _safe(version) / "latest.json"
        )


def _safe(part: str) -> str:
    """Make a key usable as a single path segment."""
    cleaned = _UNSAFE.sub("_", str(part).strip())
    return cleaned.strip(".") or "_"
