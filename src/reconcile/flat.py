# src/reconcile/flat.py — v1
"""Flat reconciler: idempotent upsert of records matched by natural key.

Two write paths:
- ``upsert`` for mutable parents (program, subject, skill). Identity is
  preserved; only configured mutable fields present in the candidate are
  overwritten.
- ``insert_versioned`` for immutable versioned sub-resources (a syllabus
  version). An existing (parent, version) pair is a duplicate, never merged.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from acadimport.core.errors import DuplicateRecordError, InvalidKeyError
from acadimport.core.models import FlatRecord, utc_now
from acadimport.reconcile.keyed_lock import KeyedLock
from acadimport.storage.base_record_store import BaseRecordStore

logger = logging.getLogger(__name__)


def normalize_key(record_type: str, natural_key: Any) -> str:
    """Validate and trim a natural key.

    Raises:
        InvalidKeyError: If the key is not a string or is blank.
    """
    if not isinstance(natural_key, str) or not natural_key.strip():
        raise InvalidKeyError(record_type, natural_key)
    key = natural_key.strip()
    if any(ch in key for ch in "\r\n\t\x00"):
        raise InvalidKeyError(record_type, natural_key)
    return key


class FlatReconciler:
    """Upsert flat records against a record store.

    Args:
        store: Persistence backend.
        locks: Shared keyed lock. A private one is created if omitted.
    """

    def __init__(self, store: BaseRecordStore, locks: KeyedLock | None = None) -> None:
        self._store = store
        self._locks = locks or KeyedLock()

    async def upsert(
        self,
        record_type: str,
        natural_key: Any,
        fields: dict[str, Any],
        mutable_fields: Iterable[str] | None = None,
        parent_id: str | None = None,
    ) -> tuple[FlatRecord, bool]:
        """Create the record if absent, otherwise update it in place.

        Args:
            record_type: Logical collection, e.g. "subject".
            natural_key: Business identifier unique within the type.
            fields: Candidate field values. None values count as absent.
            mutable_fields: Fields an update may overwrite. None allows all.
            parent_id: Owning record id, set on create and when provided.

        Returns:
            (record, was_created).
        """
        key = normalize_key(record_type, natural_key)
        candidate = {k: v for k, v in fields.items() if v is not None}

        async with self._locks.hold((record_type, key)):
            existing = await self._store.find_by_key(record_type, key)
            if existing is None:
                record = FlatRecord(
                    record_type=record_type,
                    natural_key=key,
                    parent_id=parent_id,
                    fields=candidate,
                )
                await self._store.create_record(record)
                logger.debug("Created %s '%s' (%s)", record_type, key, record.id)
                return record, True

            allowed = set(mutable_fields) if mutable_fields is not None else set(candidate)
            changes = {
                k: v for k, v in candidate.items()
                if k in allowed and existing.fields.get(k) != v
            }
            reparent = parent_id is not None and existing.parent_id != parent_id
            if not changes and not reparent:
                logger.debug("%s '%s' unchanged", record_type, key)
                return existing, False

            existing.fields.update(changes)
            if reparent:
                existing.parent_id = parent_id
            existing.updated_at = utc_now()
            await self._store.update_record(existing)
            logger.debug(
                "Updated %s '%s': %s", record_type, key, ", ".join(sorted(changes)) or "parent",
            )
            return existing, False

    async def insert_versioned(
        self,
        record_type: str,
        natural_key: Any,
        parent_id: str,
        version: int | str,
        fields: dict[str, Any],
    ) -> FlatRecord:
        """Insert an immutable versioned record.

        Raises:
            DuplicateRecordError: If (record_type, parent_id, version) exists.
            InvalidKeyError: If the natural key is blank.
        """
        key = normalize_key(record_type, natural_key)
        async with self._locks.hold((record_type, parent_id, version)):
            if await self._store.find_versioned(record_type, parent_id, version) is not None:
                raise DuplicateRecordError(record_type, key, version)
            record = FlatRecord(
                record_type=record_type,
                natural_key=key,
                parent_id=parent_id,
                version=version,
                fields={k: v for k, v in fields.items() if v is not None},
            )
            await self._store.create_record(record)
            logger.debug("Inserted %s '%s' version %s", record_type, key, version)
            return record
