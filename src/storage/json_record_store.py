# src/storage/json_record_store.py — v1
"""Record store persisted as a single JSON snapshot file.

Loads the snapshot at construction and rewrites it after every write.
Suitable for single-process use (CLI, local batch runs).
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from acadimport.core.errors import PersistenceError
from acadimport.core.models import DependencyEdge, FlatRecord, TreeNode
from acadimport.storage.memory_record_store import InMemoryRecordStore

logger = logging.getLogger(__name__)

_SNAPSHOT_VERSION = 1


class JsonRecordStore(InMemoryRecordStore):
    """Snapshot-file store.

    Args:
        path: Snapshot file location. Created on first write.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path).expanduser()
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            for raw in data.get("records", []):
                record = FlatRecord.model_validate(raw)
                self._records[record.id] = record
            for raw in data.get("nodes", []):
                node = TreeNode.model_validate(raw)
                self._nodes[node.id] = node
            for raw in data.get("edges", []):
                edge = DependencyEdge.model_validate(raw)
                self._edges[edge.id] = edge
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise PersistenceError(f"Cannot load record snapshot {self._path}: {e}") from e
        logger.debug(
            "Loaded snapshot %s: %d records, %d nodes, %d edges",
            self._path, len(self._records), len(self._nodes), len(self._edges),
        )

    def _changed(self) -> None:
        snapshot = {
            "version": _SNAPSHOT_VERSION,
            "records": [r.model_dump(mode="json") for r in self._records.values()],
            "nodes": [n.model_dump(mode="json") for n in self._nodes.values()],
            "edges": [e.model_dump(mode="json") for e in self._edges.values()],
        }
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(snapshot, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise PersistenceError(f"Cannot write record snapshot {self._path}: {e}") from e
