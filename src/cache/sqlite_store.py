# src/cache/sqlite_store.py — v2
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3. Better than JSON files for large numbers of imports.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from acadimport.cache.base_cache_store import BaseCacheStore
from acadimport.cache.models import CacheEntry, LatestPointer

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    namespace TEXT NOT NULL,
    fingerprint TEXT NOT NULL,
    payload TEXT NOT NULL,
    raw_text TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL,
    PRIMARY KEY (namespace, fingerprint)
);
CREATE TABLE IF NOT EXISTS latest_pointers (
    namespace TEXT NOT NULL,
    logical_key TEXT NOT NULL,
    version TEXT NOT NULL,
    payload TEXT NOT NULL,
    fingerprint TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    PRIMARY KEY (namespace, logical_key, version)
);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get_entry(self, namespace: str, fingerprint: str) -> CacheEntry | None:
        row = self._conn.execute(
            "SELECT payload, raw_text, created_at FROM cache_entries "
            "WHERE namespace = ? AND fingerprint = ?",
            (namespace, fingerprint),
        ).fetchone()
        if row is None:
            return None
        return CacheEntry(
            namespace=namespace,
            fingerprint=fingerprint,
            payload=row[0],
            raw_text=row[1],
            created_at=datetime.fromisoformat(row[2]),
        )

    async def put_entry_if_absent(self, entry: CacheEntry) -> bool:
        cursor = self._conn.execute(
            """INSERT OR IGNORE INTO cache_entries
               (namespace, fingerprint, payload, raw_text, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (
                entry.namespace,
                entry.fingerprint,
                entry.payload,
                entry.raw_text,
                entry.created_at.isoformat(),
            ),
        )
        self._conn.commit()
        return cursor.rowcount == 1

    async def delete_entry(self, namespace: str, fingerprint: str) -> None:
        self._conn.execute(
            "DELETE FROM cache_entries WHERE namespace = ? AND fingerprint = ?",
            (namespace, fingerprint),
        )
        self._conn.commit()

    async def get_latest(
        self, namespace: str, logical_key: str, version: str
    ) -> LatestPointer | None:
        row = self._conn.execute(
            "SELECT payload, fingerprint, updated_at FROM latest_pointers "
            "WHERE namespace = ? AND logical_key = ? AND version = ?",
            (namespace, logical_key, version),
        ).fetchone()
        if row is None:
            return None
        return LatestPointer(
            namespace=namespace,
            logical_key=logical_key,
            version=version,
            payload=row[0],
            fingerprint=row[1],
            updated_at=datetime.fromisoformat(row[2]),
        )

    async def set_latest(self, pointer: LatestPointer) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO latest_pointers
               (namespace, logical_key, version, payload, fingerprint, updated_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                pointer.namespace,
                pointer.logical_key,
                pointer.version,
                pointer.payload,
                pointer.fingerprint,
                pointer.updated_at.isoformat(),
            ),
        )
        self._conn.commit()

    async def list_entries(self, namespace: str) -> list[CacheEntry]:
        cursor = self._conn.execute(
            "SELECT fingerprint, payload, raw_text, created_at FROM cache_entries "
            "WHERE namespace = ? ORDER BY created_at",
            (namespace,),
        )
        return [
            CacheEntry(
                namespace=namespace,
                fingerprint=row[0],
                payload=row[1],
                raw_text=row[2],
                created_at=datetime.fromisoformat(row[3]),
            )
            for row in cursor.fetchall()
        ]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
