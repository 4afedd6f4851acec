# src/documents/roadmap.py — v1
"""Roadmap candidate document: a class and its nested topic nodes."""

from __future__ import annotations

from pydantic import Field

from acadimport.documents.base import CandidateDocument


class RoadmapClassData(CandidateDocument):
    name: str = ""
    description: str | None = None
    roadmap_url: str | None = None
    difficulty_level: int | None = None
    estimated_duration_months: int | None = None
    skill_focus_areas: list[str] = Field(default_factory=list)
    is_active: bool = True


class RoadmapNodeData(CandidateDocument):
    title: str = ""
    node_type: str | None = None
    description: str | None = None
    children: list[RoadmapNodeData] = Field(default_factory=list)

    def count(self) -> int:
        """Number of nodes in this subtree, self included."""
        return 1 + sum(child.count() for child in self.children)


class RoadmapDocument(CandidateDocument):
    """Extracted roadmap. ``class`` is the JSON key of the owning class."""

    roadmap_class: RoadmapClassData = Field(default_factory=RoadmapClassData, alias="class")
    nodes: list[RoadmapNodeData] = Field(default_factory=list)

    def node_count(self) -> int:
        return sum(node.count() for node in self.nodes)
