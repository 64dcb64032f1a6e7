"""Key-value stores and their best-effort helpers."""
import pytest

from jobapply.errors import PersistenceFailure
from jobapply.storage import JsonFileStore, KeyValueStore, MemoryStore


class BrokenStore(KeyValueStore):
    def get(self, key):
        raise PersistenceFailure(key, "quota")

    def set(self, key, value):
        raise PersistenceFailure(key, "quota")

    def remove(self, key):
        raise PersistenceFailure(key, "quota")


def test_memory_store_copies_values():
    store = MemoryStore({"a": [1]})
    value = store.get("a")
    value.append(2)
    assert store.get("a") == [1]
    assert store.get("missing") is None


def test_json_file_store_round_trip(tmp_path):
    path = tmp_path / "state" / "store.json"
    store = JsonFileStore(path)
    store.set("question_cache", [{"question": "Q", "answer": "A"}])
    store.set("current_conversation", None)

    reopened = JsonFileStore(path)
    assert reopened.get("question_cache") == [{"question": "Q", "answer": "A"}]
    reopened.remove("question_cache")
    assert reopened.get("question_cache") is None
    assert path.with_name("store.json.lock").exists()


def test_json_file_store_corrupt_file_raises(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileStore(path)
    with pytest.raises(PersistenceFailure):
        store.get("anything")
    assert store.get_or("anything", []) == []


def test_unserializable_value_raises(tmp_path):
    store = JsonFileStore(tmp_path / "store.json")
    with pytest.raises(PersistenceFailure):
        store.set("bad", object())
    assert store.get("bad") is None


def test_best_effort_helpers_swallow_failures():
    store = BrokenStore()
    assert store.get_or("k", "fallback") == "fallback"
    assert store.try_set("k", 1) is False
