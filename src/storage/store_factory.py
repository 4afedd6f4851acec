# src/storage/store_factory.py — v1
"""Factory: instantiate the record store from configuration."""

from __future__ import annotations

from acadimport.config.settings import Settings
from acadimport.storage.base_record_store import BaseRecordStore
from acadimport.storage.memory_record_store import InMemoryRecordStore


def create_record_store(settings: Settings | None = None) -> BaseRecordStore:
    """Create the configured record store.

    Args:
        settings: Application settings (RECORD_STORE_BACKEND env var).
            Defaults to the in-memory backend.

    Raises:
        ValueError: If the backend is not supported.
    """
    backend = "memory" if settings is None else settings.record_store_backend

    if backend == "memory":
        return InMemoryRecordStore()

    if backend == "json":
        from acadimport.storage.json_record_store import JsonRecordStore
        return JsonRecordStore(path=settings.record_store_path)

    raise ValueError(f"Unsupported record store backend: {backend!r}")
