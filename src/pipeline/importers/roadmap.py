# src/pipeline/importers/roadmap.py — v1
"""Roadmap import: a class record plus its tree of topic nodes.

The class is matched by roadmap URL first, then by name. Existing class
metadata is only overwritten when ``overwrite_metadata`` is set. Node
counts cover the tree only; the class record is not counted.
"""

from __future__ import annotations

import logging

from acadimport.core.models import FlatRecord, ImportResult, utc_now
from acadimport.documents.roadmap import RoadmapClassData, RoadmapDocument, RoadmapNodeData
from acadimport.pipeline.importers.base import BaseImporter
from acadimport.reconcile.flat import normalize_key
from acadimport.reconcile.keyed_lock import KeyedLock
from acadimport.reconcile.tree import NodeCandidate, TreeReconciler
from acadimport.storage.base_record_store import BaseRecordStore
from acadimport.validation.base_validator import BaseDocumentValidator
from acadimport.validation.rules import RoadmapValidator

logger = logging.getLogger(__name__)

CLASS_RECORD = "roadmap_class"


def to_node_candidates(nodes: list[RoadmapNodeData]) -> list[NodeCandidate]:
    return [
        NodeCandidate(
            label=node.title,
            node_type=node.node_type,
            description=node.description,
            children=to_node_candidates(node.children),
        )
        for node in nodes
    ]


class RoadmapImporter(BaseImporter[RoadmapDocument]):
    """Tree-shaped importer for class roadmaps.

    Args:
        overwrite_metadata: Replace metadata of an existing class.
        prune_orphans: Delete stored nodes missing from the new tree.
    """

    kind = "roadmap"
    document_model = RoadmapDocument

    def __init__(
        self,
        store: BaseRecordStore,
        namespace: str,
        validator: BaseDocumentValidator[RoadmapDocument] | None = None,
        locks: KeyedLock | None = None,
        overwrite_metadata: bool = False,
        prune_orphans: bool = False,
    ) -> None:
        super().__init__(store, namespace, validator, locks)
        self._overwrite_metadata = overwrite_metadata
        self._prune_orphans = prune_orphans

    @classmethod
    def default_validator(cls) -> RoadmapValidator:
        return RoadmapValidator()

    def cache_key(self, document: RoadmapDocument) -> tuple[str, str]:
        return document.roadmap_class.name, "latest"

    async def reconcile(self, document: RoadmapDocument) -> ImportResult:
        class_record = await self._upsert_class(document.roadmap_class)

        tree = TreeReconciler(self._store, prune_orphans=self._prune_orphans, locks=self._locks)
        stats = await tree.reconcile(class_record.id, None, to_node_candidates(document.nodes))

        message = (
            f"Roadmap imported successfully: {stats.created} nodes created, "
            f"{stats.updated} updated"
        )
        if stats.pruned:
            message += f", {stats.pruned} pruned"
        return ImportResult(
            outcome="success",
            message=message + ".",
            created_count=stats.created,
            updated_count=stats.updated,
            identifiers=self._identifiers(
                classId=class_record.id,
                className=class_record.fields.get("name"),
                roadmapUrl=class_record.fields.get("roadmap_url"),
                prunedNodes=stats.pruned or None,
            ),
        )

    async def _upsert_class(self, data: RoadmapClassData) -> FlatRecord:
        name = normalize_key(CLASS_RECORD, data.name)
        url = (data.roadmap_url or "").strip() or None
        fields = data.model_dump(exclude={"name"})
        fields["name"] = name
        fields["roadmap_url"] = url

        async with self._locks.hold((CLASS_RECORD, name)):
            existing = await self._find_class(name, url)
            if existing is None:
                record = FlatRecord(record_type=CLASS_RECORD, natural_key=name, fields=fields)
                await self._store.create_record(record)
                logger.info("Created roadmap class '%s'", name)
                return record

            if self._overwrite_metadata:
                fields["roadmap_url"] = url or existing.fields.get("roadmap_url")
                fields["name"] = existing.fields.get("name", name)
                existing.fields.update(fields)
                existing.updated_at = utc_now()
                await self._store.update_record(existing)
                logger.info("Overwrote metadata of roadmap class '%s'", existing.natural_key)
            return existing

    async def _find_class(self, name: str, url: str | None) -> FlatRecord | None:
        if url:
            for record in await self._store.find_records(CLASS_RECORD):
                if record.fields.get("roadmap_url") == url:
                    return record
        return await self._store.find_by_key(CLASS_RECORD, name)
