"""Category timers for off-platform time.

At most one category runs per bucket. Categories running in other buckets
are left alone: a timer started in one bucket keeps accruing real time
after another bucket is selected, until it is stopped explicitly or
:meth:`CategoryTimerSet.stop_all_timers` reconciles every bucket.

Running state is read through the :class:`TimerRegistry` on every call;
nothing here caches elapsed time.
"""

from collections import defaultdict
from typing import Callable

from pydantic import ValidationError

from .audit import AuditLogger, audit
from .buckets import off_platform_key
from .models.timers import CATEGORIES, OffPlatformData, TimerEntry
from .registry import StoreTimerRegistry, TimerRegistry
from .store import Store
from .ticker import Ticker, timer_tick_key
from .timeutil import TimeSource, elapsed_seconds, format_time, parse_time_input, system_time_ms

TimerListener = Callable[[str], None]


class CategoryTimerSet:
    """Start/stop/edit category timers per day-bucket."""

    def __init__(
        self,
        store: Store,
        registry: TimerRegistry | None = None,
        *,
        now: TimeSource = system_time_ms,
        ticker: Ticker | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.store = store
        self.registry = registry if registry is not None else StoreTimerRegistry(store)
        self._now = now
        self.ticker = ticker
        self.audit_logger = audit_logger
        # Last value written by a display tick, keyed by (bucket, category).
        self.display: dict[tuple[str, str], str] = {}
        self._listeners: dict[str, dict[str, list[TimerListener]]] = {
            "start": defaultdict(list),
            "stop": defaultdict(list),
            "edit": defaultdict(list),
        }

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def load(self, bucket: str) -> OffPlatformData:
        """Fresh timer data for a bucket; malformed data reads as empty."""
        raw = self.store.get_json(off_platform_key(bucket), {})
        if not isinstance(raw, dict):
            return OffPlatformData()
        try:
            return OffPlatformData.model_validate(raw)
        except ValidationError:
            return OffPlatformData()

    def save(self, bucket: str, data: OffPlatformData) -> None:
        self.store.set_json(off_platform_key(bucket), data.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on_start(self, category: str, callback: TimerListener) -> None:
        self._listeners["start"][category].append(callback)

    def on_stop(self, category: str, callback: TimerListener) -> None:
        self._listeners["stop"][category].append(callback)

    def on_edit(self, category: str, callback: TimerListener) -> None:
        self._listeners["edit"][category].append(callback)

    def _notify(self, event: str, category: str, bucket: str) -> None:
        for callback in self._listeners[event].get(category, []):
            callback(bucket)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _live_start(self, bucket: str, category: str, entry: TimerEntry) -> int | None:
        registered = self.registry.get(bucket, category)
        return registered if registered is not None else entry.startTime

    def _fold(self, bucket: str, category: str, entry: TimerEntry, now: int) -> None:
        """Add elapsed running time to the stored total and mark stopped."""
        start = self._live_start(bucket, category, entry)
        if start is not None:
            entry.totalSeconds += elapsed_seconds(start, now)
        entry.startTime = None
        entry.shouldBeRunning = False
        self.registry.unregister(bucket, category)
        self._stop_display(bucket, category)

    def _start_display(self, bucket: str, category: str) -> None:
        if self.ticker is None:
            return

        def refresh() -> None:
            self.display[(bucket, category)] = format_time(self.get_seconds(bucket, category))

        self.ticker.schedule(timer_tick_key(bucket, category), refresh)
        refresh()

    def _stop_display(self, bucket: str, category: str) -> None:
        if self.ticker is not None:
            self.ticker.cancel(timer_tick_key(bucket, category))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def start_timer(self, bucket: str, category: str) -> bool:
        """Start a category, stopping whichever other one runs in the bucket.

        Returns:
            False if the category is unknown or already running.
        """
        if category not in CATEGORIES:
            return False
        data = self.load(bucket)
        entry = data.timers[category]
        if self._live_start(bucket, category, entry) is not None:
            return False

        now = self._now()
        stopped: list[str] = []
        for other, other_entry in data.timers.items():
            if other != category and self._live_start(bucket, other, other_entry) is not None:
                self._fold(bucket, other, other_entry, now)
                stopped.append(other)

        entry.startTime = now
        entry.shouldBeRunning = False
        self.registry.register(bucket, category, now)
        self.save(bucket, data)

        for other in stopped:
            audit(self.audit_logger, "TIMER_STOP", bucket=bucket, category=other,
                  total=data.timers[other].totalSeconds)
            self._notify("stop", other, bucket)
        self._start_display(bucket, category)
        audit(self.audit_logger, "TIMER_START", bucket=bucket, category=category)
        self._notify("start", category, bucket)
        return True

    def stop_timer(self, bucket: str, category: str) -> bool:
        """Stop a running category. Returns False if it was not running."""
        if category not in CATEGORIES:
            return False
        data = self.load(bucket)
        entry = data.timers[category]
        if self._live_start(bucket, category, entry) is None:
            return False
        self._fold(bucket, category, entry, self._now())
        self.save(bucket, data)
        self.display[(bucket, category)] = format_time(entry.totalSeconds)
        audit(self.audit_logger, "TIMER_STOP", bucket=bucket, category=category,
              total=entry.totalSeconds)
        self._notify("stop", category, bucket)
        return True

    def edit_timer(self, bucket: str, category: str, hours: int, minutes: int, seconds: int) -> bool:
        """Overwrite a category's total, keeping it running if it was."""
        if category not in CATEGORIES:
            return False
        total = parse_time_input(hours, minutes, seconds)
        data = self.load(bucket)
        entry = data.timers[category]
        was_running = self._live_start(bucket, category, entry) is not None
        now = self._now()

        if was_running:
            self._fold(bucket, category, entry, now)

        entry.totalSeconds = total

        if was_running:
            entry.startTime = now
            self.registry.register(bucket, category, now)
        self.save(bucket, data)

        if was_running:
            self._start_display(bucket, category)
        else:
            self.display[(bucket, category)] = format_time(total)
        audit(self.audit_logger, "TIMER_EDIT", bucket=bucket, category=category, total=total)
        self._notify("edit", category, bucket)
        return True

    def get_seconds(self, bucket: str, category: str) -> int:
        """Stored total plus live elapsed time when running."""
        if category not in CATEGORIES:
            return 0
        entry = self.load(bucket).timers[category]
        seconds = entry.totalSeconds
        start = self._live_start(bucket, category, entry)
        if start is not None:
            seconds += elapsed_seconds(start, self._now())
        return seconds

    def get_total_seconds(self, bucket: str) -> int:
        """Sum over every category of one bucket."""
        return sum(self.get_seconds(bucket, category) for category in CATEGORIES)

    def get_total_seconds_for_category(self, bucket: str, category: str) -> int:
        """A category's seconds in bucket plus live time it accrues in other buckets."""
        seconds = self.get_seconds(bucket, category)
        now = self._now()
        for other_bucket in self.registry.buckets():
            if other_bucket == bucket:
                continue
            start = self.registry.get(other_bucket, category)
            if start is not None:
                seconds += elapsed_seconds(start, now)
        return seconds

    def get_grand_total_seconds(self, bucket: str) -> int:
        return sum(self.get_total_seconds_for_category(bucket, category) for category in CATEGORIES)

    def running_category(self, bucket: str) -> str | None:
        """The category running in bucket, if any."""
        data = self.load(bucket)
        for category, entry in data.timers.items():
            if self._live_start(bucket, category, entry) is not None:
                return category
        return None

    def save_timer_state(self, bucket: str) -> None:
        """Hand running timers of a bucket over to the registry before leaving it.

        Totals are left untouched; the timer keeps counting through its
        registry entry while another bucket is selected.
        """
        data = self.load(bucket)
        changed = False
        for category, entry in data.timers.items():
            start = self._live_start(bucket, category, entry)
            if start is None:
                continue
            if self.registry.get(bucket, category) is None:
                self.registry.register(bucket, category, start)
            entry.shouldBeRunning = True
            changed = True
        if changed:
            self.save(bucket, data)
        if self.ticker is not None:
            self.ticker.cancel_prefix(f"timer:{bucket}:")

    def load_timer_state(self, bucket: str) -> list[str]:
        """Select a bucket: fold registry time in and resume flagged timers.

        Returns:
            The categories resumed with a fresh start time.
        """
        if self.ticker is not None:
            self.ticker.cancel_prefix("timer:")

        data = self.load(bucket)
        now = self._now()
        for category, start in self.registry.entries_for(bucket).items():
            entry = data.timers.get(category)
            if entry is None:
                self.registry.unregister(bucket, category)
                continue
            entry.totalSeconds += elapsed_seconds(start, now)
            entry.shouldBeRunning = True

        resumed: list[str] = []
        for category, entry in data.timers.items():
            if not entry.shouldBeRunning:
                continue
            entry.startTime = now
            entry.shouldBeRunning = False
            self.registry.register(bucket, category, now)
            resumed.append(category)
        self.save(bucket, data)

        for category in data.timers:
            if category in resumed:
                self._start_display(bucket, category)
                audit(self.audit_logger, "TIMER_RESUME", bucket=bucket, category=category)
                self._notify("start", category, bucket)
            else:
                self.display[(bucket, category)] = format_time(data.timers[category].totalSeconds)
                self._notify("stop", category, bucket)
        return resumed

    def switch_bucket(self, previous: str | None, new: str) -> list[str]:
        """Leave previous (if any) and select new."""
        if previous is not None and previous != new:
            self.save_timer_state(previous)
        return self.load_timer_state(new)

    def stop_all_timers(self, bucket: str | None = None) -> int:
        """Fold every running timer, in every bucket, into its stored total.

        Args:
            bucket: Also stop timers stored as running in this bucket even
                if the registry has lost track of them.

        Returns:
            Number of timers stopped.
        """
        now = self._now()
        buckets = set(self.registry.buckets())
        if bucket is not None:
            buckets.add(bucket)

        stopped = 0
        for each in sorted(buckets):
            data = self.load(each)
            changed = False
            for category, entry in data.timers.items():
                if self._live_start(each, category, entry) is None and not entry.shouldBeRunning:
                    continue
                self._fold(each, category, entry, now)
                changed = True
                stopped += 1
            if changed:
                self.save(each, data)

        self.registry.clear()
        if self.ticker is not None:
            self.ticker.cancel_prefix("timer:")
        audit(self.audit_logger, "TIMER_STOP_ALL", stopped=stopped)
        return stopped
