"""Elapsed-time clock owned by a single note."""

from .ticker import Ticker, TickCallback
from .timeutil import TimeSource, elapsed_seconds, system_time_ms


class Clock:
    """One countable interval with carry-over from earlier sessions.

    Elapsed seconds are ``additional_time + (end or now) - start`` once
    started, else 0. Every operation is a no-op when its precondition does
    not hold, so repeated UI actions are harmless.
    """

    def __init__(
        self,
        start_timestamp: int | None = None,
        end_timestamp: int | None = None,
        additional_time: int = 0,
        *,
        now: TimeSource = system_time_ms,
        ticker: Ticker | None = None,
        tick_key: str | None = None,
        on_tick: TickCallback | None = None,
    ) -> None:
        self.start_timestamp = start_timestamp
        self.end_timestamp = end_timestamp
        self.additional_time = int(additional_time or 0)
        self._now = now
        self._ticker = ticker
        self.tick_key = tick_key
        self._on_tick = on_tick

    @property
    def started(self) -> bool:
        return self.start_timestamp is not None

    @property
    def is_running(self) -> bool:
        return self.start_timestamp is not None and self.end_timestamp is None

    def start(self) -> None:
        if self.start_timestamp is not None:
            return
        self.start_timestamp = self._now()
        self.end_timestamp = None
        self._start_display()

    def stop(self) -> None:
        if not self.is_running:
            return
        self.end_timestamp = self._now()
        self.stop_display()

    def restart(self) -> None:
        """Fold the finished session into additional_time and open a new one."""
        if self.start_timestamp is None:
            self.start()
            return
        end = self.end_timestamp if self.end_timestamp is not None else self._now()
        self.additional_time += elapsed_seconds(self.start_timestamp, end)
        self.start_timestamp = self._now()
        self.end_timestamp = None
        self._start_display()

    def get_elapsed_seconds(self) -> int:
        if self.start_timestamp is None:
            return 0
        end = self.end_timestamp if self.end_timestamp is not None else self._now()
        return self.additional_time + elapsed_seconds(self.start_timestamp, end)

    def resume_display(self) -> None:
        """Re-attach the display tick of a clock hydrated while running."""
        if self.is_running:
            self._start_display()

    def _start_display(self) -> None:
        if self._ticker is not None and self.tick_key and self._on_tick is not None:
            self._ticker.schedule(self.tick_key, self._on_tick)

    def stop_display(self) -> None:
        if self._ticker is not None and self.tick_key:
            self._ticker.cancel(self.tick_key)

    def to_fields(self) -> dict[str, int | None]:
        return {
            "startTimestamp": self.start_timestamp,
            "endTimestamp": self.end_timestamp,
            "additionalTime": self.additional_time,
        }
