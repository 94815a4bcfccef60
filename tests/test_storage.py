"""
Tests for document and JSON file stores.
"""

import asyncio
import json

import pytest

from taskids.migrate import PassFailure, run_pass
from taskids.storage import (
    DocumentStore,
    JsonFileStore,
    children_of,
    join_path,
    load_store,
    save_store,
    split_path,
)


class TestPaths:
    """Test path helpers."""

    def test_split_path_ignores_slashes(self):
        assert split_path("/users/u1/tasks/") == ["users", "u1", "tasks"]

    def test_join_path(self):
        assert join_path("users", "u1", "tasks") == "users/u1/tasks"

    def test_children_of_array_uses_indexes(self):
        assert children_of([{"id": "a"}, None, {"id": "c"}]) == {"0": {"id": "a"}, "2": {"id": "c"}}

    def test_children_of_scalar_is_empty(self):
        assert children_of("text") == {}
        assert children_of(None) == {}


class TestDocumentStore:
    """Test the in-memory store."""

    def test_read_children_keeps_insertion_order(self, sample_document):
        store = DocumentStore(sample_document)
        children = asyncio.run(store.read_children("users/u1/tasks"))
        assert list(children) == ["k1", "k2", "abc123xyz", "k4"]

    def test_missing_node_reads_empty(self):
        store = DocumentStore({"users": {}})
        assert asyncio.run(store.read_children("users/nobody/tasks")) == {}

    def test_scalar_node_reads_empty(self):
        store = DocumentStore({"users": "oops"})
        assert asyncio.run(store.read_children("users")) == {}

    def test_update_merges_fields(self, sample_document):
        store = DocumentStore(sample_document)
        asyncio.run(store.update("users/u2/tasks", "m1", {"idOS": "NEW"}))
        assert store.document["users"]["u2"]["tasks"]["m1"] == {"idOS": "NEW", "status": "done"}

    def test_array_node_reads_by_index(self):
        store = DocumentStore({"users": {"u1": {"tasks": [{"id": "a"}, {"id": "b"}]}}})
        children = asyncio.run(store.read_children("users/u1/tasks"))
        assert children == {"0": {"id": "a"}, "1": {"id": "b"}}

    def test_update_inside_array_node(self):
        store = DocumentStore({"users": {"u1": {"tasks": [{"id": "a"}, {"id": "b"}]}}})
        asyncio.run(store.update("users/u1/tasks", "1", {"idOS": "B"}))
        assert store.document["users"]["u1"]["tasks"][1] == {"id": "b", "idOS": "B"}

    def test_update_outside_array_raises(self):
        store = DocumentStore({"users": {"u1": {"tasks": [{"id": "a"}]}}})
        with pytest.raises(KeyError):
            asyncio.run(store.update("users/u1/tasks", "5", {"idOS": "A"}))

    def test_update_missing_record_raises(self):
        store = DocumentStore({"users": {"u": {"tasks": {}}}})
        with pytest.raises(KeyError):
            asyncio.run(store.update("users/u/tasks", "nope", {"idOS": "A"}))


class TestJsonFileStore:
    """Test the JSON file store."""

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_store(tmp_path / "nope.json")

    def test_corrupt_file_raises(self, tmp_path):
        f = tmp_path / "bad.json"
        f.write_text('{"users": {"u1": {"tasks": {"k1": {"idOS": "x y"}')
        with pytest.raises(json.JSONDecodeError):
            load_store(f)

    def test_non_object_document_raises(self, tmp_path):
        f = tmp_path / "list.json"
        f.write_text("[1, 2]")
        with pytest.raises(ValueError):
            load_store(f)

    def test_empty_file_is_empty_document(self, tmp_path):
        f = tmp_path / "empty.json"
        f.write_text("")
        assert load_store(f) == {}

    def test_corrupt_file_fails_on_first_read(self, tmp_path):
        f = tmp_path / "bad.json"
        f.write_text("{not json")
        store = JsonFileStore(f)
        with pytest.raises(json.JSONDecodeError):
            asyncio.run(store.read_children("users"))

    def test_corrupt_file_is_fatal_for_the_pass(self, tmp_path, quiet_logger):
        f = tmp_path / "bad.json"
        f.write_text('{"users": {"u1": {"tasks": {"k1": {"idOS": "x y"}')
        outcome = asyncio.run(run_pass(JsonFileStore(f), logger=quiet_logger))
        assert isinstance(outcome, PassFailure)
        assert outcome.exit_code == 2
        assert f.read_text() == '{"users": {"u1": {"tasks": {"k1": {"idOS": "x y"}'

    def test_save_creates_parent_directories(self, tmp_path):
        f = tmp_path / "nested" / "dir" / "store.json"
        save_store(f, {"users": {}})
        assert json.loads(f.read_text(encoding="utf-8")) == {"users": {}}

    def test_update_is_persisted(self, json_store_file):
        store = JsonFileStore(json_store_file)
        asyncio.run(store.update("users/u1/tasks", "k4", {"idOS": "PEA-12"}))

        data = json.loads(json_store_file.read_text(encoding="utf-8"))
        assert data["users"]["u1"]["tasks"]["k4"] == {
            "id": "peça 12",
            "status": "todo",
            "idOS": "PEA-12",
        }
        assert "peça" in json_store_file.read_text(encoding="utf-8")
