"""Tests for the active timer registry."""

import json

import pytest

from worklog.registry import MemoryTimerRegistry, StoreTimerRegistry
from worklog.store import MemoryStore


@pytest.fixture(params=["store", "memory"])
def registry(request, store):
    """Both registry implementations."""
    if request.param == "store":
        return StoreTimerRegistry(store)
    return MemoryTimerRegistry()


class TestRegistry:
    """Register / unregister bookkeeping."""

    def test_empty_by_default(self, registry) -> None:
        assert registry.load() == {}
        assert registry.get("2024-01-15", "blocked") is None
        assert registry.buckets() == []

    def test_register_and_get(self, registry) -> None:
        registry.register("2024-01-15", "blocked", 1000)
        registry.register("2024-01-16", "sheetwork", 2000)
        assert registry.get("2024-01-15", "blocked") == 1000
        assert registry.entries_for("2024-01-16") == {"sheetwork": 2000}
        assert sorted(registry.buckets()) == ["2024-01-15", "2024-01-16"]

    def test_unregister_cleans_up_empty_bucket(self, registry) -> None:
        registry.register("2024-01-15", "blocked", 1000)
        assert registry.unregister("2024-01-15", "blocked") is True
        assert registry.load() == {}
        assert registry.unregister("2024-01-15", "blocked") is False

    def test_clear(self, registry) -> None:
        registry.register("2024-01-15", "blocked", 1000)
        registry.clear()
        assert registry.load() == {}


class TestStoreTimerRegistry:
    """Persistence under offPlatform_activeTimers."""

    def test_persists_under_fixed_key(self, store: MemoryStore) -> None:
        StoreTimerRegistry(store).register("2024-01-15", "blocked", 1000)
        assert json.loads(store.get("offPlatform_activeTimers")) == {"2024-01-15": {"blocked": 1000}}
        assert StoreTimerRegistry(store).get("2024-01-15", "blocked") == 1000

    def test_malformed_entries_ignored(self, store: MemoryStore) -> None:
        store.set(
            "offPlatform_activeTimers",
            json.dumps({"2024-01-15": {"blocked": None, "sheetwork": 5}, "bad": [], "2024-01-16": {"x": True}}),
        )
        assert StoreTimerRegistry(store).load() == {"2024-01-15": {"sheetwork": 5}}

    def test_corrupt_value_reads_empty(self, store: MemoryStore) -> None:
        store.set("offPlatform_activeTimers", "[1, 2")
        assert StoreTimerRegistry(store).load() == {}
