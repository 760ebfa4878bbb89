"""Wall-clock source and HH:MM:SS helpers shared by clocks and timers."""

import time
from typing import Callable

# Returns the current wall time in epoch milliseconds.
TimeSource = Callable[[], int]


def system_time_ms() -> int:
    """Current wall time in epoch milliseconds."""
    return int(time.time() * 1000)


def elapsed_seconds(start_ms: int, end_ms: int) -> int:
    """Whole seconds between two epoch-ms timestamps (floored)."""
    return (end_ms - start_ms) // 1000


def format_time(seconds: int) -> str:
    """Format seconds as zero-padded HH:MM:SS."""
    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def seconds_to_hms(seconds: int) -> tuple[int, int, int]:
    """Split seconds into (hours, minutes, seconds)."""
    seconds = int(seconds)
    return seconds // 3600, (seconds % 3600) // 60, seconds % 60


def parse_time_input(hours: str | int | None, minutes: str | int | None, seconds: str | int | None) -> int:
    """Combine loose hour/minute/second inputs into total seconds.

    Blank or non-numeric parts count as zero.
    """

    def _as_int(value: str | int | None) -> int:
        try:
            return int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0

    return _as_int(hours) * 3600 + _as_int(minutes) * 60 + _as_int(seconds)


def parse_time_string(value: str) -> int:
    """Parse "HH:MM:SS" into seconds. Anything else is zero."""
    parts = value.strip().split(":")
    if len(parts) != 3:
        return 0
    try:
        hours, minutes, secs = (int(p) for p in parts)
    except ValueError:
        return 0
    return hours * 3600 + minutes * 60 + secs


def calculate_duration(
    start_ms: int | None, end_ms: int | None, additional_time: int | None = 0
) -> str:
    """Duration string for a persisted note session.

    Args:
        start_ms: Session start (epoch-ms) or None.
        end_ms: Session end (epoch-ms) or None.
        additional_time: Seconds carried over from earlier sessions.

    Returns:
        "HH:MM:SS", or "" when there is nothing to report.
    """
    additional = int(additional_time or 0)
    if start_ms and end_ms:
        return format_time(elapsed_seconds(start_ms, end_ms) + additional)
    if additional:
        return format_time(additional)
    return ""
