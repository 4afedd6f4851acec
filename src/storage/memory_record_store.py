# src/storage/memory_record_store.py — v2
"""In-process record store backed by insertion-ordered dicts."""

from __future__ import annotations

from acadimport.core.errors import PersistenceError
from acadimport.core.models import DependencyEdge, FlatRecord, TreeNode
from acadimport.storage.base_record_store import BaseRecordStore


class InMemoryRecordStore(BaseRecordStore):
    """Dict-backed store. Iteration order is creation order."""

    def __init__(self) -> None:
        self._records: dict[str, FlatRecord] = {}
        self._nodes: dict[str, TreeNode] = {}
        self._edges: dict[str, DependencyEdge] = {}

    # --- Flat records ---

    async def find_by_key(self, record_type: str, natural_key: str) -> FlatRecord | None:
        for record in self._records.values():
            if record.record_type == record_type and record.natural_key == natural_key:
                return record.model_copy(deep=True)
        return None

    async def find_versioned(
        self, record_type: str, parent_id: str | None, version: int | str
    ) -> FlatRecord | None:
        for record in self._records.values():
            if (
                record.record_type == record_type
                and record.parent_id == parent_id
                and record.version == version
            ):
                return record.model_copy(deep=True)
        return None

    async def find_records(
        self, record_type: str, parent_id: str | None = None
    ) -> list[FlatRecord]:
        return [
            r.model_copy(deep=True)
            for r in self._records.values()
            if r.record_type == record_type
            and (parent_id is None or r.parent_id == parent_id)
        ]

    async def get_record(self, record_id: str) -> FlatRecord | None:
        record = self._records.get(record_id)
        return record.model_copy(deep=True) if record else None

    async def create_record(self, record: FlatRecord) -> FlatRecord:
        if record.id in self._records:
            raise PersistenceError(f"Record id already exists: {record.id}")
        for existing in self._records.values():
            if (
                existing.record_type == record.record_type
                and existing.natural_key == record.natural_key
            ):
                raise PersistenceError(
                    f"Duplicate natural key for {record.record_type}: {record.natural_key}"
                )
        self._write(self._records, record.id, record.model_copy(deep=True))
        return record

    async def update_record(self, record: FlatRecord) -> FlatRecord:
        if record.id not in self._records:
            raise PersistenceError(f"Record not found: {record.id}")
        self._write(self._records, record.id, record.model_copy(deep=True))
        return record

    # --- Tree nodes ---

    async def find_child(
        self, scope: str, parent_id: str | None, label: str
    ) -> TreeNode | None:
        for node in self._nodes.values():
            if node.scope == scope and node.parent_id == parent_id and node.label == label:
                return node.model_copy(deep=True)
        return None

    async def list_children(self, scope: str, parent_id: str | None) -> list[TreeNode]:
        return [
            n.model_copy(deep=True)
            for n in self._nodes.values()
            if n.scope == scope and n.parent_id == parent_id
        ]

    async def create_node(self, node: TreeNode) -> TreeNode:
        if node.id in self._nodes:
            raise PersistenceError(f"Node id already exists: {node.id}")
        self._write(self._nodes, node.id, node.model_copy(deep=True))
        return node

    async def update_node(self, node: TreeNode) -> TreeNode:
        if node.id not in self._nodes:
            raise PersistenceError(f"Node not found: {node.id}")
        self._write(self._nodes, node.id, node.model_copy(deep=True))
        return node

    async def delete_node(self, node_id: str) -> bool:
        if node_id not in self._nodes:
            return False
        before = dict(self._nodes)
        del self._nodes[node_id]
        try:
            self._changed()
        except PersistenceError:
            self._nodes.clear()
            self._nodes.update(before)
            raise
        return True

    # --- Dependency edges ---

    async def find_edges(self, scope_id: str) -> set[tuple[str, str]]:
        return {e.pair for e in self._edges.values() if e.scope_id == scope_id}

    async def list_edges(self, scope_id: str) -> list[DependencyEdge]:
        return [e.model_copy() for e in self._edges.values() if e.scope_id == scope_id]

    async def create_edge(self, edge: DependencyEdge) -> DependencyEdge:
        for existing in self._edges.values():
            if existing.scope_id == edge.scope_id and existing.pair == edge.pair:
                raise PersistenceError(
                    f"Edge already exists: {edge.from_id} -> {edge.to_id}"
                )
        self._write(self._edges, edge.id, edge.model_copy())
        return edge

    # --- Introspection ---

    @property
    def record_count(self) -> int:
        return len(self._records)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def _changed(self) -> None:
        """Persist hook called after every in-memory write.

        Raising PersistenceError rolls the write back.
        """

    def _write(self, table: dict, key: str, value) -> None:
        """Set one entry, then persist. The entry is restored if persisting fails."""
        previous = table.get(key)
        table[key] = value
        try:
            self._changed()
        except PersistenceError:
            if previous is None:
                del table[key]
            else:
                table[key] = previous
            raise
