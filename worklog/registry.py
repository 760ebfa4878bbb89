"""Active timer registry: which (bucket, category) pairs are accruing time.

The registry is not scoped to the selected bucket. A category started in
one bucket stays registered, and keeps accruing wall-clock time, while
another bucket is selected.
"""

from abc import ABC, abstractmethod

from .buckets import ACTIVE_TIMERS_KEY
from .store import Store

# {bucket: {category: start_time_ms}}
ActiveTimers = dict[str, dict[str, int]]


class TimerRegistry(ABC):
    """Interface for the active timer registry."""

    @abstractmethod
    def load(self) -> ActiveTimers:
        """Return every registered start time."""

    @abstractmethod
    def save(self, data: ActiveTimers) -> None:
        """Replace the registry contents."""

    def get(self, bucket: str, category: str) -> int | None:
        """Start time for a pair, or None when not running."""
        return self.load().get(bucket, {}).get(category)

    def register(self, bucket: str, category: str, start_time: int) -> None:
        """Record a running pair, replacing any previous start time."""
        data = self.load()
        data.setdefault(bucket, {})[category] = start_time
        self.save(data)

    def unregister(self, bucket: str, category: str) -> bool:
        """Drop a pair. Returns False when it was not registered."""
        data = self.load()
        if category not in data.get(bucket, {}):
            return False
        del data[bucket][category]
        # Clean up empty bucket entries
        if not data[bucket]:
            del data[bucket]
        self.save(data)
        return True

    def entries_for(self, bucket: str) -> dict[str, int]:
        """Running categories of one bucket."""
        return dict(self.load().get(bucket, {}))

    def buckets(self) -> list[str]:
        """Buckets with at least one running category."""
        return [bucket for bucket, entries in self.load().items() if entries]

    def clear(self) -> None:
        self.save({})


class StoreTimerRegistry(TimerRegistry):
    """Registry persisted under ``offPlatform_activeTimers`` so it survives reloads."""

    def __init__(self, store: Store) -> None:
        """Initialize registry with the store that holds it."""
        self.store = store

    def load(self) -> ActiveTimers:
        """Load registry data. Returns empty registry if missing or malformed."""
        raw = self.store.get_json(ACTIVE_TIMERS_KEY, {})
        if not isinstance(raw, dict):
            return {}
        data: ActiveTimers = {}
        for bucket, entries in raw.items():
            if not isinstance(entries, dict):
                continue
            valid = {
                category: int(start)
                for category, start in entries.items()
                if isinstance(start, (int, float)) and not isinstance(start, bool) and start
            }
            if valid:
                data[bucket] = valid
        return data

    def save(self, data: ActiveTimers) -> None:
        self.store.set_json(ACTIVE_TIMERS_KEY, data)


class MemoryTimerRegistry(TimerRegistry):
    """Registry held in memory only; used where persistence is not wanted."""

    def __init__(self) -> None:
        self._data: ActiveTimers = {}

    def load(self) -> ActiveTimers:
        return {bucket: dict(entries) for bucket, entries in self._data.items()}

    def save(self, data: ActiveTimers) -> None:
        self._data = {bucket: dict(entries) for bucket, entries in data.items()}
