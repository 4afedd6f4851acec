# tests/unit/pipeline/test_unit_state.py — v2
"""Tests for pipeline/state.py."""

from __future__ import annotations

from acadimport.pipeline.state import ImportStage, ImportState


class TestImportState:
    def test_defaults(self):
        state = ImportState(kind="syllabus", namespace="syllabus")
        assert state.stage is ImportStage.START
        assert state.history == [ImportStage.START]
        assert state.cache_hit is False
        assert state.import_id

    def test_unique_ids(self):
        a = ImportState(kind="roadmap", namespace="roadmap")
        b = ImportState(kind="roadmap", namespace="roadmap")
        assert a.import_id != b.import_id

    def test_advance_records_history(self):
        state = ImportState(kind="curriculum", namespace="curriculum")
        for stage in (ImportStage.CACHE_CHECK, ImportStage.CACHE_HIT, ImportStage.VALIDATING):
            state.advance(stage)
        assert state.stage is ImportStage.VALIDATING
        assert [s.value for s in state.history] == [
            "start", "cache_check", "cache_hit", "validating",
        ]

    def test_stage_is_str(self):
        assert ImportStage.RECONCILING == "reconciling"
