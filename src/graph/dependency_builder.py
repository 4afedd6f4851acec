# src/graph/dependency_builder.py — v1
"""Dependency graph builder: prerequisite edges between skills.

Two signal sources over nodes grouped by containing unit (subject):
  Stage A (structural): every node of a unit depends on every node of
    each declared prerequisite unit. Persistence failures propagate.
  Stage B (semantic): units with more than one node are sent to the
    relationship inferrer. Calls run concurrently; edge writes stay
    sequential. Failures are recorded per unit and the run continues.

Edges are deduplicated on the ordered pair (from_id, to_id) against a
seen-set seeded from the store, so re-running converges. Self-edges are
discarded without being counted. Cycles are allowed and reported.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

import networkx as nx

from acadimport.core.errors import PersistenceError
from acadimport.core.models import DependencyEdge, RelationshipKind
from acadimport.graph.inference import (
    BaseRelationshipInferrer,
    InferredRelationship,
    map_relationship_kind,
)
from acadimport.storage.base_record_store import BaseRecordStore

logger = logging.getLogger(__name__)


@dataclass
class UnitSpec:
    """A containing unit and its member nodes."""

    unit_id: str
    name: str
    nodes: dict[str, str] = field(default_factory=dict)  # node_id -> node name
    prerequisite_unit_ids: list[str] = field(default_factory=list)


@dataclass
class UnitResult:
    """Per-unit outcome; ``ok=False`` when semantic inference failed."""

    unit_id: str
    ok: bool = True
    created: int = 0
    skipped: int = 0
    error: str | None = None


@dataclass
class GraphBuildResult:
    """Outcome of one build run."""

    scope_id: str
    created: int = 0
    skipped: int = 0
    edges: list[DependencyEdge] = field(default_factory=list)
    unit_results: list[UnitResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    known_pairs: set[tuple[str, str]] = field(default_factory=set)

    def to_networkx(self) -> nx.DiGraph:
        """Directed graph over every known edge of the scope."""
        graph = nx.DiGraph()
        graph.add_edges_from(self.known_pairs)
        for edge in self.edges:
            graph.add_edge(
                edge.from_id, edge.to_id,
                kind=edge.kind.value, source=edge.source, edge_id=edge.id,
            )
        return graph

    def cycles(self) -> list[list[str]]:
        """Dependency cycles present in the scope. Never prevented."""
        return [list(c) for c in nx.simple_cycles(self.to_networkx())]

    @property
    def failed_units(self) -> list[UnitResult]:
        return [u for u in self.unit_results if not u.ok]


class DependencyGraphBuilder:
    """Build and persist dependency edges for one scope.

    Args:
        store: Persistence backend.
        inferrer: Semantic collaborator. None runs Stage A only.
        concurrency: Max concurrent inference calls.
    """

    def __init__(
        self,
        store: BaseRecordStore,
        inferrer: BaseRelationshipInferrer | None = None,
        concurrency: int = 4,
    ) -> None:
        self._store = store
        self._inferrer = inferrer
        self._concurrency = max(1, concurrency)

    async def build(self, scope_id: str, units: list[UnitSpec]) -> GraphBuildResult:
        result = GraphBuildResult(scope_id=scope_id)
        seen = set(await self._store.find_edges(scope_id))
        result.known_pairs = seen
        per_unit = {u.unit_id: UnitResult(unit_id=u.unit_id) for u in units}
        result.unit_results = list(per_unit.values())

        # Stage A: structural
        by_id = {u.unit_id: u for u in units}
        for unit in units:
            prereq_nodes: list[tuple[str, str]] = []
            for prereq_id in unit.prerequisite_unit_ids:
                prereq = by_id.get(prereq_id)
                if prereq is not None:
                    prereq_nodes.extend(prereq.nodes.items())
            if not prereq_nodes:
                continue
            for node_id, node_name in unit.nodes.items():
                for prereq_node_id, prereq_name in prereq_nodes:
                    edge = DependencyEdge(
                        scope_id=scope_id,
                        from_id=node_id,
                        to_id=prereq_node_id,
                        kind=RelationshipKind.PREREQUISITE,
                        source="structural",
                        reasoning=(
                            f"Derived from curriculum structure: {prereq_name}'s subject "
                            f"is a prerequisite for {node_name}'s subject."
                        ),
                    )
                    await self._add_edge(edge, seen, result, per_unit[unit.unit_id])
        logger.info(
            "Structural stage for %s: %d created, %d skipped",
            scope_id, result.created, result.skipped,
        )

        # Stage B: semantic
        if self._inferrer is not None:
            candidates = [u for u in units if len(u.nodes) > 1]
            semaphore = asyncio.Semaphore(self._concurrency)

            async def infer_with_semaphore(unit: UnitSpec):
                async with semaphore:
                    return await self._infer(unit)

            inferred = await asyncio.gather(*(infer_with_semaphore(u) for u in candidates))

            for unit, (relationships, error) in zip(candidates, inferred):
                unit_result = per_unit[unit.unit_id]
                if error is not None:
                    unit_result.ok = False
                    unit_result.error = error
                    result.errors.append(f"{unit.name}: {error}")
                    continue
                await self._apply_inferred(scope_id, unit, relationships, seen, result, unit_result)

        logger.info(
            "Dependency graph %s built: %d created, %d skipped, %d failed units",
            scope_id, result.created, result.skipped, len(result.failed_units),
        )
        return result

    async def _infer(
        self, unit: UnitSpec
    ) -> tuple[list[InferredRelationship], str | None]:
        try:
            relationships = await self._inferrer.infer_relationships(list(unit.nodes.values()))
        except Exception as e:
            logger.warning("Inference failed for unit %s: %s", unit.name, e)
            return [], str(e)
        return relationships, None

    async def _apply_inferred(
        self,
        scope_id: str,
        unit: UnitSpec,
        relationships: list[InferredRelationship],
        seen: set[tuple[str, str]],
        result: GraphBuildResult,
        unit_result: UnitResult,
    ) -> None:
        ids_by_name: dict[str, str] = {}
        for node_id, name in unit.nodes.items():
            ids_by_name.setdefault(name.strip().casefold(), node_id)

        for rel in relationships:
            from_id = ids_by_name.get(rel.from_name.strip().casefold())
            to_id = ids_by_name.get(rel.to_name.strip().casefold())
            if from_id is None or to_id is None:
                logger.debug(
                    "Ignoring relationship outside unit %s: %s -> %s",
                    unit.name, rel.from_name, rel.to_name,
                )
                continue
            edge = DependencyEdge(
                scope_id=scope_id,
                from_id=from_id,
                to_id=to_id,
                kind=map_relationship_kind(rel.kind),
                source="semantic",
                reasoning=rel.reasoning,
            )
            try:
                await self._add_edge(edge, seen, result, unit_result)
            except PersistenceError as e:
                logger.warning("Skipping semantic edge %s -> %s: %s", from_id, to_id, e)
                result.errors.append(f"{unit.name}: {e}")

    async def _add_edge(
        self,
        edge: DependencyEdge,
        seen: set[tuple[str, str]],
        result: GraphBuildResult,
        unit_result: UnitResult,
    ) -> None:
        if edge.from_id == edge.to_id:
            return
        if edge.pair in seen:
            result.skipped += 1
            unit_result.skipped += 1
            return
        await self._store.create_edge(edge)
        seen.add(edge.pair)
        result.edges.append(edge)
        result.created += 1
        unit_result.created += 1


async def units_from_store(store: BaseRecordStore, program_id: str) -> list[UnitSpec]:
    """Assemble the units of a program: its subjects with their skills.

    Prerequisite subject ids come from the program-subject link records
    written by the curriculum import.
    """
    units: list[UnitSpec] = []
    for link in await store.find_records("program_subject", parent_id=program_id):
        subject_id = link.fields.get("subject_id")
        if not subject_id:
            continue
        skills = await store.find_records("skill", parent_id=subject_id)
        units.append(
            UnitSpec(
                unit_id=subject_id,
                name=link.fields.get("subject_code", subject_id),
                nodes={s.id: s.fields.get("name", s.natural_key) for s in skills},
                prerequisite_unit_ids=list(link.fields.get("prerequisite_subject_ids", [])),
            )
        )
    return units
