"""Day-bucket keys: calendar dates that partition notes and category timers."""

import re
from collections.abc import Iterable
from datetime import date, datetime, timedelta

BUCKET_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

OFF_PLATFORM_PREFIX = "offPlatform_"
ACTIVE_TIMERS_KEY = "offPlatform_activeTimers"


def is_bucket_key(key: str | None) -> bool:
    """True when a store key names a day-bucket of notes."""
    return bool(key) and BUCKET_PATTERN.match(key) is not None


def today() -> str:
    """Today's bucket key in local time."""
    return date.today().isoformat()


def parse_bucket(bucket: str) -> date:
    """Parse a bucket key into a date. Raises ValueError on bad input."""
    return datetime.strptime(bucket, "%Y-%m-%d").date()


def add_days(bucket: str, days: int) -> str:
    """Shift a bucket key by a number of days."""
    return (parse_bucket(bucket) + timedelta(days=days)).isoformat()


def week_start(bucket: str) -> str:
    """Monday of the week containing the bucket."""
    day = parse_bucket(bucket)
    return (day - timedelta(days=day.weekday())).isoformat()


def format_bucket_label(bucket: str) -> str:
    """Short human label, e.g. "Mon, Jan 15"."""
    day = parse_bucket(bucket)
    return f"{day.strftime('%a')}, {day.strftime('%b')} {day.day}"


def off_platform_key(bucket: str) -> str:
    """Store key holding the category timers of a bucket."""
    return f"{OFF_PLATFORM_PREFIX}{bucket}"


def all_bucket_keys(keys: Iterable[str]) -> list[str]:
    """Filter store keys down to day-buckets, newest first."""
    return sorted((k for k in keys if is_bucket_key(k)), reverse=True)


def in_range(bucket: str, start: str | None = None, end: str | None = None) -> bool:
    """Inclusive range check on bucket keys (ISO dates sort lexically)."""
    if start is not None and bucket < start:
        return False
    if end is not None and bucket > end:
        return False
    return True
