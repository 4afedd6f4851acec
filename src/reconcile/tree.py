# src/reconcile/tree.py — v1
"""Tree reconciler: structural diff of a labeled hierarchy.

Each candidate is matched against existing children of (scope, parent_id)
by label, first match by creation order. Matched nodes are updated and
renumbered to the candidate's 1-based position; unmatched candidates are
created. Children are processed only after their parent is resolved.

Default mode retains orphans (stored nodes absent from the candidate).
``prune_orphans=True`` deletes them with their descendants.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import BaseModel, Field

from acadimport.core.errors import InvalidKeyError
from acadimport.core.models import TreeNode, utc_now
from acadimport.reconcile.keyed_lock import KeyedLock
from acadimport.storage.base_record_store import BaseRecordStore

logger = logging.getLogger(__name__)


class NodeCandidate(BaseModel):
    """One node of a candidate tree, in source order."""

    label: str
    node_type: str | None = None
    description: str | None = None
    children: list[NodeCandidate] = Field(default_factory=list)

    def count(self) -> int:
        """Number of nodes in this subtree, self included."""
        return 1 + sum(c.count() for c in self.children)


@dataclass
class TreeReconcileStats:
    """Counters for one reconciliation run."""

    created: int = 0
    updated: int = 0
    pruned: int = 0

    @property
    def total(self) -> int:
        return self.created + self.updated


class TreeReconciler:
    """Reconcile candidate trees into a record store.

    Args:
        store: Persistence backend.
        prune_orphans: Delete stored children missing from the candidate.
        locks: Shared keyed lock. A private one is created if omitted.
    """

    def __init__(
        self,
        store: BaseRecordStore,
        prune_orphans: bool = False,
        locks: KeyedLock | None = None,
    ) -> None:
        self._store = store
        self._prune = prune_orphans
        self._locks = locks or KeyedLock()

    async def reconcile(
        self,
        scope: str,
        parent_id: str | None,
        children: list[NodeCandidate],
    ) -> TreeReconcileStats:
        """Reconcile ``children`` under (scope, parent_id), recursively.

        Raises:
            InvalidKeyError: If any candidate label is blank. Checked
                before the first write.
        """
        _check_labels(children)
        stats = TreeReconcileStats()
        async with self._locks.hold(("tree", scope)):
            await self._reconcile_level(scope, parent_id, children, stats)
        logger.info(
            "Tree %s reconciled: %d created, %d updated, %d pruned",
            scope, stats.created, stats.updated, stats.pruned,
        )
        return stats

    async def _reconcile_level(
        self,
        scope: str,
        parent_id: str | None,
        children: list[NodeCandidate],
        stats: TreeReconcileStats,
    ) -> None:
        matched: set[str] = set()

        for position, candidate in enumerate(children, start=1):
            label = candidate.label.strip()
            existing = await self._store.find_child(scope, parent_id, label)

            if existing is not None:
                existing.node_type = candidate.node_type
                existing.description = candidate.description
                existing.sequence = position
                existing.updated_at = utc_now()
                await self._store.update_node(existing)
                node_id = existing.id
                stats.updated += 1
            else:
                node = TreeNode(
                    scope=scope,
                    parent_id=parent_id,
                    label=label,
                    node_type=candidate.node_type,
                    description=candidate.description,
                    sequence=position,
                )
                await self._store.create_node(node)
                node_id = node.id
                stats.created += 1

            matched.add(node_id)
            await self._reconcile_level(scope, node_id, candidate.children, stats)

        if self._prune:
            for stored in await self._store.list_children(scope, parent_id):
                if stored.id not in matched:
                    stats.pruned += await self._delete_subtree(scope, stored.id)

    async def _delete_subtree(self, scope: str, node_id: str) -> int:
        removed = 0
        for child in await self._store.list_children(scope, node_id):
            removed += await self._delete_subtree(scope, child.id)
        if await self._store.delete_node(node_id):
            removed += 1
            logger.debug("Pruned node %s from %s", node_id, scope)
        return removed


def _check_labels(children: list[NodeCandidate]) -> None:
    for candidate in children:
        if not candidate.label or not candidate.label.strip():
            raise InvalidKeyError("tree_node", candidate.label)
        _check_labels(candidate.children)
