# src/storage/base_record_store.py — v1
"""Abstract record store interface.

One logical collection per flat record type keyed by natural key, one for
tree nodes with (scope, parent_id, label) as a non-unique lookup index,
one for dependency edges with (from_id, to_id) as a unique index.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from acadimport.core.models import DependencyEdge, FlatRecord, TreeNode


class BaseRecordStore(ABC):
    """Unified interface for persistence backends.

    Implementations raise PersistenceError when the backend is unavailable
    or a write violates a uniqueness constraint.
    """

    # --- Flat records ---

    @abstractmethod
    async def find_by_key(self, record_type: str, natural_key: str) -> FlatRecord | None:
        """Return the record with this natural key, or None."""

    @abstractmethod
    async def find_versioned(
        self, record_type: str, parent_id: str | None, version: int | str
    ) -> FlatRecord | None:
        """Return the versioned record for (parent_id, version), or None."""

    @abstractmethod
    async def find_records(
        self, record_type: str, parent_id: str | None = None
    ) -> list[FlatRecord]:
        """List records of a type, optionally restricted to one parent."""

    @abstractmethod
    async def get_record(self, record_id: str) -> FlatRecord | None:
        """Return a record by generated id."""

    @abstractmethod
    async def create_record(self, record: FlatRecord) -> FlatRecord:
        """Insert a new record."""

    @abstractmethod
    async def update_record(self, record: FlatRecord) -> FlatRecord:
        """Replace a stored record with the same id."""

    # --- Tree nodes ---

    @abstractmethod
    async def find_child(
        self, scope: str, parent_id: str | None, label: str
    ) -> TreeNode | None:
        """First child of (scope, parent_id) with this label, by creation order."""

    @abstractmethod
    async def list_children(self, scope: str, parent_id: str | None) -> list[TreeNode]:
        """Children of (scope, parent_id) in creation order."""

    @abstractmethod
    async def create_node(self, node: TreeNode) -> TreeNode:
        """Insert a new tree node."""

    @abstractmethod
    async def update_node(self, node: TreeNode) -> TreeNode:
        """Replace a stored node with the same id."""

    @abstractmethod
    async def delete_node(self, node_id: str) -> bool:
        """Delete one node. Returns True if it existed."""

    # --- Dependency edges ---

    @abstractmethod
    async def find_edges(self, scope_id: str) -> set[tuple[str, str]]:
        """Ordered (from_id, to_id) pairs already persisted for a scope."""

    @abstractmethod
    async def list_edges(self, scope_id: str) -> list[DependencyEdge]:
        """Full edge records for a scope in creation order."""

    @abstractmethod
    async def create_edge(self, edge: DependencyEdge) -> DependencyEdge:
        """Insert a new edge."""
