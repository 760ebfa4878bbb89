"""Tests for key-value stores."""

import json
from pathlib import Path

from worklog.store import JsonFileStore, MemoryStore


class TestMemoryStore:
    """In-process store."""

    def test_missing_key_reads_default(self) -> None:
        store = MemoryStore()
        assert store.get("2024-01-15") is None
        assert store.get_json("2024-01-15", {}) == {}

    def test_corrupt_json_reads_default(self) -> None:
        store = MemoryStore({"2024-01-15": "{oops"})
        assert store.get_json("2024-01-15", {}) == {}

    def test_set_json_round_trip_and_remove(self) -> None:
        store = MemoryStore()
        store.set_json("k", {"1": {"completed": True}})
        assert store.get_json("k") == {"1": {"completed": True}}
        assert store.keys() == ["k"]
        store.remove("k")
        store.remove("k")
        assert store.keys() == []

    def test_snapshot_decodes_where_possible(self) -> None:
        store = MemoryStore({"a": '{"x": 1}', "b": "plain"})
        assert store.snapshot() == {"a": {"x": 1}, "b": "plain"}


class TestJsonFileStore:
    """Single-file persistent store."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path / "store.json")
        assert store.keys() == []
        assert not (tmp_path / "store.json").exists()

    def test_writes_indented_file_on_set(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "store.json"
        JsonFileStore(path).set_json("2024-01-15", {})

        text = path.read_text()
        assert text.startswith("{\n  ")
        assert json.loads(text) == {"2024-01-15": "{}"}

    def test_reload_sees_previous_writes(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        JsonFileStore(path).set("k", "v")
        again = JsonFileStore(path)
        assert again.get("k") == "v"
        again.remove("k")
        assert JsonFileStore(path).keys() == []

    def test_corrupt_file_reads_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("not json")
        assert JsonFileStore(path).keys() == []

    def test_non_string_values_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"a": "1", "b": 2}))
        assert JsonFileStore(path).keys() == ["a"]
