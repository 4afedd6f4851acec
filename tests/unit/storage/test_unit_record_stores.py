# tests/unit/storage/test_unit_record_stores.py — v2
"""Tests for storage/ — in-memory and JSON snapshot record stores."""

from __future__ import annotations

import json

import pytest

from acadimport.config.settings import Settings
from acadimport.core.errors import PersistenceError
from acadimport.core.models import DependencyEdge, FlatRecord, TreeNode
from acadimport.storage.json_record_store import JsonRecordStore
from acadimport.storage.memory_record_store import InMemoryRecordStore
from acadimport.storage.store_factory import create_record_store


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryRecordStore()
    return JsonRecordStore(tmp_path / "records.json")


class TestFlatRecords:
    @pytest.mark.asyncio
    async def test_create_and_find(self, store):
        record = FlatRecord(record_type="subject", natural_key="PRF192", fields={"credits": 3})
        await store.create_record(record)
        found = await store.find_by_key("subject", "PRF192")
        assert found.id == record.id
        assert found.fields == {"credits": 3}
        assert await store.find_by_key("program", "PRF192") is None

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, store):
        await store.create_record(FlatRecord(record_type="subject", natural_key="A"))
        found = await store.find_by_key("subject", "A")
        found.fields["mutated"] = True
        again = await store.find_by_key("subject", "A")
        assert "mutated" not in again.fields

    @pytest.mark.asyncio
    async def test_duplicate_natural_key_rejected(self, store):
        await store.create_record(FlatRecord(record_type="subject", natural_key="A"))
        with pytest.raises(PersistenceError, match="Duplicate natural key"):
            await store.create_record(FlatRecord(record_type="subject", natural_key="A"))

    @pytest.mark.asyncio
    async def test_update(self, store):
        record = FlatRecord(record_type="subject", natural_key="A")
        await store.create_record(record)
        record.fields["credits"] = 4
        await store.update_record(record)
        assert (await store.get_record(record.id)).fields["credits"] == 4

    @pytest.mark.asyncio
    async def test_update_missing(self, store):
        with pytest.raises(PersistenceError):
            await store.update_record(FlatRecord(record_type="subject", natural_key="A"))

    @pytest.mark.asyncio
    async def test_find_versioned_and_children(self, store):
        await store.create_record(
            FlatRecord(record_type="syllabus_version", natural_key="A:v1", parent_id="s1", version=1)
        )
        await store.create_record(
            FlatRecord(record_type="syllabus_version", natural_key="A:v2", parent_id="s1", version=2)
        )
        found = await store.find_versioned("syllabus_version", "s1", 2)
        assert found.natural_key == "A:v2"
        assert await store.find_versioned("syllabus_version", "s2", 1) is None
        assert len(await store.find_records("syllabus_version", parent_id="s1")) == 2
        assert len(await store.find_records("syllabus_version")) == 2


class TestTreeNodes:
    @pytest.mark.asyncio
    async def test_find_child_first_by_creation_order(self, store):
        first = TreeNode(scope="c1", label="HTTP", description="first")
        second = TreeNode(scope="c1", label="HTTP", description="second")
        await store.create_node(first)
        await store.create_node(second)
        found = await store.find_child("c1", None, "HTTP")
        assert found.id == first.id

    @pytest.mark.asyncio
    async def test_find_child_respects_parent_and_scope(self, store):
        root = TreeNode(scope="c1", label="Internet")
        await store.create_node(root)
        await store.create_node(TreeNode(scope="c1", parent_id=root.id, label="HTTP"))
        assert await store.find_child("c1", None, "HTTP") is None
        assert await store.find_child("c2", root.id, "HTTP") is None
        assert (await store.find_child("c1", root.id, "HTTP")) is not None

    @pytest.mark.asyncio
    async def test_update_and_delete(self, store):
        node = TreeNode(scope="c1", label="DNS")
        await store.create_node(node)
        node.sequence = 7
        await store.update_node(node)
        assert (await store.list_children("c1", None))[0].sequence == 7
        assert await store.delete_node(node.id) is True
        assert await store.delete_node(node.id) is False
        assert await store.list_children("c1", None) == []


class TestEdges:
    @pytest.mark.asyncio
    async def test_pairs_per_scope(self, store):
        await store.create_edge(DependencyEdge(scope_id="p1", from_id="a", to_id="b"))
        await store.create_edge(DependencyEdge(scope_id="p2", from_id="c", to_id="d"))
        assert await store.find_edges("p1") == {("a", "b")}
        assert [e.pair for e in await store.list_edges("p2")] == [("c", "d")]

    @pytest.mark.asyncio
    async def test_pair_unique(self, store):
        await store.create_edge(DependencyEdge(scope_id="p1", from_id="a", to_id="b"))
        with pytest.raises(PersistenceError, match="Edge already exists"):
            await store.create_edge(DependencyEdge(scope_id="p1", from_id="a", to_id="b"))
        # Reverse direction is a different edge
        await store.create_edge(DependencyEdge(scope_id="p1", from_id="b", to_id="a"))


class TestJsonRecordStore:
    @pytest.mark.asyncio
    async def test_snapshot_survives_reload(self, tmp_path):
        path = tmp_path / "data" / "records.json"
        store = JsonRecordStore(path)
        await store.create_record(FlatRecord(record_type="program", natural_key="SE"))
        await store.create_node(TreeNode(scope="c1", label="Internet"))
        await store.create_edge(DependencyEdge(scope_id="p", from_id="a", to_id="b"))

        reloaded = JsonRecordStore(path)
        assert (await reloaded.find_by_key("program", "SE")) is not None
        assert len(await reloaded.list_children("c1", None)) == 1
        assert await reloaded.find_edges("p") == {("a", "b")}
        assert reloaded.record_count == 1

    def test_corrupt_snapshot(self, tmp_path):
        path = tmp_path / "records.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(PersistenceError, match="Cannot load"):
            JsonRecordStore(path)

    @pytest.mark.asyncio
    async def test_snapshot_format(self, tmp_path):
        path = tmp_path / "records.json"
        store = JsonRecordStore(path)
        await store.create_record(FlatRecord(record_type="program", natural_key="SE"))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["version"] == 1
        assert data["records"][0]["natural_key"] == "SE"
        assert not (tmp_path / "records.json.tmp").exists()


class FlakyJsonRecordStore(JsonRecordStore):
    """Snapshot writes fail while ``fail`` is set."""

    fail = False

    def _changed(self) -> None:
        if self.fail:
            raise PersistenceError("disk full")
        super()._changed()


class TestFailedSnapshotWrite:
    @pytest.mark.asyncio
    async def test_create_rolled_back_when_path_unwritable(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        store = JsonRecordStore(blocker / "records.json")

        with pytest.raises(PersistenceError, match="Cannot write"):
            await store.create_record(FlatRecord(record_type="subject", natural_key="PRO192"))
        assert await store.find_by_key("subject", "PRO192") is None
        assert store.record_count == 0

    @pytest.mark.asyncio
    async def test_update_rolled_back(self, tmp_path):
        path = tmp_path / "records.json"
        store = FlakyJsonRecordStore(path)
        record = await store.create_record(
            FlatRecord(record_type="subject", natural_key="PRO192", fields={"credits": 3})
        )
        store.fail = True
        changed = record.model_copy(update={"fields": {"credits": 4}})
        with pytest.raises(PersistenceError):
            await store.update_record(changed)

        assert (await store.get_record(record.id)).fields == {"credits": 3}
        assert (await JsonRecordStore(path).get_record(record.id)).fields == {"credits": 3}

    @pytest.mark.asyncio
    async def test_delete_rolled_back_in_order(self, tmp_path):
        store = FlakyJsonRecordStore(tmp_path / "records.json")
        first = await store.create_node(TreeNode(scope="c1", label="Internet"))
        await store.create_node(TreeNode(scope="c1", label="Databases"))
        store.fail = True
        with pytest.raises(PersistenceError):
            await store.delete_node(first.id)

        labels = [n.label for n in await store.list_children("c1", None)]
        assert labels == ["Internet", "Databases"]

    @pytest.mark.asyncio
    async def test_edge_and_node_creation_rolled_back(self, tmp_path):
        store = FlakyJsonRecordStore(tmp_path / "records.json")
        store.fail = True
        with pytest.raises(PersistenceError):
            await store.create_edge(DependencyEdge(scope_id="p1", from_id="a", to_id="b"))
        with pytest.raises(PersistenceError):
            await store.create_node(TreeNode(scope="c1", label="Internet"))
        assert await store.find_edges("p1") == set()
        assert store.node_count == 0

        store.fail = False
        await store.create_edge(DependencyEdge(scope_id="p1", from_id="a", to_id="b"))
        assert await store.find_edges("p1") == {("a", "b")}


class TestStoreFactory:
    def test_default_memory(self):
        assert isinstance(create_record_store(), InMemoryRecordStore)

    def test_json(self, tmp_path):
        settings = Settings(
            _env_file=None, record_store_backend="json", record_store_path=tmp_path / "r.json",
        )
        store = create_record_store(settings)
        assert isinstance(store, JsonRecordStore)
        assert store.path == tmp_path / "r.json"
