"""Cancellable one-second display ticks.

Each running clock or category timer owns at most one tick, keyed by a
string such as ``note:2024-01-15:3`` or ``timer:2024-01-15:blocked``. The
host calls :meth:`Ticker.tick` once per second; callbacks recompute and
set their display value, so a missed or doubled tick never accumulates.
"""

from typing import Callable

TickCallback = Callable[[], None]


class Ticker:
    """Registry of repeating tasks driven by the host's one-second loop."""

    def __init__(self) -> None:
        self._tasks: dict[str, TickCallback] = {}

    def schedule(self, key: str, callback: TickCallback) -> None:
        """Start (or replace) the tick for an owner."""
        self._tasks[key] = callback

    def cancel(self, key: str) -> bool:
        """Stop an owner's tick. Returns True if one was active."""
        return self._tasks.pop(key, None) is not None

    def cancel_prefix(self, prefix: str) -> int:
        """Stop every tick whose key starts with prefix."""
        doomed = [key for key in self._tasks if key.startswith(prefix)]
        for key in doomed:
            del self._tasks[key]
        return len(doomed)

    def is_active(self, key: str) -> bool:
        return key in self._tasks

    @property
    def active_keys(self) -> list[str]:
        return sorted(self._tasks)

    def tick(self) -> int:
        """Run every active callback once. Returns how many ran."""
        # Callbacks may cancel ticks, so iterate over a copy.
        callbacks = list(self._tasks.values())
        for callback in callbacks:
            callback()
        return len(callbacks)


def note_tick_key(bucket: str, note_id: int) -> str:
    return f"note:{bucket}:{note_id}"


def timer_tick_key(bucket: str, category: str) -> str:
    return f"timer:{bucket}:{category}"
