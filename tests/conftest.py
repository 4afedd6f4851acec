# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides sample candidate documents, an in-memory record store, a memory
cache, a call-counting extractor and a wired ImportService.
No external dependencies: all I/O stays in memory or under tmp_path.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from acadimport.api.facade import ImportService
from acadimport.cache.extraction_cache import ExtractionCache
from acadimport.cache.memory_store import MemoryCacheStore
from acadimport.config.settings import Settings
from acadimport.core.errors import ExtractionError
from acadimport.extraction.base_extractor import BaseExtractionInvoker
from acadimport.storage.memory_record_store import InMemoryRecordStore


# === HELPERS ===


class CountingExtractor(BaseExtractionInvoker):
    """Returns a fixed payload (or the raw text itself) and counts calls."""

    def __init__(self, payload: str | None = None, error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.calls: list[str] = []

    async def extract(self, raw_text: str) -> str:
        self.calls.append(raw_text)
        if self.error is not None:
            raise self.error
        return raw_text if self.payload is None else self.payload

    @property
    def call_count(self) -> int:
        return len(self.calls)


# === FIXTURES: Sample documents ===


@pytest.fixture
def curriculum_data() -> dict[str, Any]:
    """Three-subject program with a prerequisite chain PRF192 <- PRO192 <- CSD201."""
    return {
        "program": {
            "programCode": "SE",
            "programName": "Software Engineering",
            "degreeLevel": "Bachelor",
            "totalCredits": 145,
            "durationYears": 4,
        },
        "version": {"versionCode": "K18", "effectiveYear": 2022},
        "subjects": [
            {"subjectCode": "PRF192", "subjectName": "Programming Fundamentals", "credits": 3},
            {"subjectCode": "PRO192", "subjectName": "Object-Oriented Programming", "credits": 3},
            {"subjectCode": "CSD201", "subjectName": "Data Structures and Algorithms", "credits": 3},
        ],
        "structure": [
            {"subjectCode": "PRF192", "termNumber": 1},
            {"subjectCode": "PRO192", "termNumber": 2, "prerequisiteSubjectCodes": ["PRF192"]},
            {"subjectCode": "CSD201", "termNumber": 3, "prerequisiteSubjectCodes": ["PRO192"]},
        ],
    }


@pytest.fixture
def curriculum_json(curriculum_data: dict[str, Any]) -> str:
    return json.dumps(curriculum_data)


@pytest.fixture
def syllabus_data() -> dict[str, Any]:
    return {
        "subjectCode": "PRO192",
        "subjectName": "Object-Oriented Programming",
        "credits": 3,
        "versionNumber": 1,
        "content": {
            "courseDescription": "Classes, objects and the Java collections framework.",
            "learningOutcomes": ["Design classes", "Apply inheritance"],
            "sessionSchedule": [{"sessionNumber": 1, "topic": "Introduction"}],
            "assessments": [{"type": "Final exam", "weightPercentage": 40}],
        },
        "skills": ["Classes and objects", "Inheritance", "Polymorphism"],
    }


@pytest.fixture
def syllabus_json(syllabus_data: dict[str, Any]) -> str:
    return json.dumps(syllabus_data)


@pytest.fixture
def roadmap_data() -> dict[str, Any]:
    """Four-node roadmap: Internet{HTTP, DNS}, Databases."""
    return {
        "class": {
            "name": "Backend Developer",
            "roadmapUrl": "https://roadmap.sh/backend",
            "difficultyLevel": 2,
        },
        "nodes": [
            {
                "title": "Internet",
                "nodeType": "Topic",
                "children": [
                    {"title": "HTTP", "nodeType": "Subtopic"},
                    {"title": "DNS", "nodeType": "Subtopic"},
                ],
            },
            {"title": "Databases", "nodeType": "Topic"},
        ],
    }


@pytest.fixture
def roadmap_json(roadmap_data: dict[str, Any]) -> str:
    return json.dumps(roadmap_data)


# === FIXTURES: Collaborators ===


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """In-memory backends, no .env file."""
    return Settings(
        _env_file=None,
        cache_backend="memory",
        cache_root=tmp_path / "cache",
        record_store_backend="memory",
        record_store_path=tmp_path / "records.json",
    )


@pytest.fixture
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def extraction_cache() -> ExtractionCache:
    return ExtractionCache(MemoryCacheStore())


@pytest.fixture
def counting_extractor() -> CountingExtractor:
    """Pass-through extractor that records every call."""
    return CountingExtractor()


@pytest.fixture
def failing_extractor() -> CountingExtractor:
    return CountingExtractor(error=ExtractionError("model unavailable"))


@pytest.fixture
def service(
    test_settings: Settings,
    counting_extractor: CountingExtractor,
    extraction_cache: ExtractionCache,
    memory_store: InMemoryRecordStore,
) -> ImportService:
    return ImportService(
        settings=test_settings,
        extractor=counting_extractor,
        cache=extraction_cache,
        store=memory_store,
    )


# === FIXTURES: Temp dirs ===


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Temporary cache directory."""
    cache = tmp_path / "cache"
    cache.mkdir()
    return cache


@pytest.fixture
def make_extractor() -> type[CountingExtractor]:
    """CountingExtractor class, for tests needing a custom payload."""
    return CountingExtractor
