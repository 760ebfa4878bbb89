"""Pytest fixtures for worklog tests."""

import json
from pathlib import Path

import pytest

from worklog.audit import AuditLogger
from worklog.category_timers import CategoryTimerSet
from worklog.collection import NoteCollection
from worklog.store import MemoryStore
from worklog.ticker import Ticker

BUCKET = "2024-01-15"
# 2024-01-15T10:00:00Z in epoch milliseconds
T0 = 1705312800000


class FakeTime:
    """Controllable epoch-ms clock."""

    def __init__(self, start: int = T0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> int:
        self.now += int(seconds * 1000)
        return self.now


@pytest.fixture
def fake_time() -> FakeTime:
    """A clock frozen at 2024-01-15T10:00:00Z until advanced."""
    return FakeTime()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def ticker() -> Ticker:
    return Ticker()


@pytest.fixture
def audit_path(tmp_path: Path) -> Path:
    """Path of a fresh audit log."""
    return tmp_path / "audit.log"


@pytest.fixture
def timers(store: MemoryStore, fake_time: FakeTime, ticker: Ticker, audit_path: Path) -> CategoryTimerSet:
    return CategoryTimerSet(
        store, now=fake_time, ticker=ticker, audit_logger=AuditLogger(audit_path, now=fake_time)
    )


@pytest.fixture
def collection(
    store: MemoryStore, timers: CategoryTimerSet, fake_time: FakeTime, ticker: Ticker, audit_path: Path
) -> NoteCollection:
    """Collection over an empty store, active bucket 2024-01-15."""
    return NoteCollection(
        store, BUCKET, timers, now=fake_time, ticker=ticker, audit_logger=AuditLogger(audit_path, now=fake_time)
    )


def write_bucket(store: MemoryStore, bucket: str, records: dict) -> None:
    """Seed a bucket with raw records keyed by id."""
    store.set(bucket, json.dumps({str(k): v for k, v in records.items()}))


def completed_record(
    start: int = T0,
    seconds: int = 60,
    *,
    canceled: bool = False,
    failing: str = "",
    non_failing: str = "",
    project: str = "",
    attempt: str = "",
    operation: str = "",
) -> dict:
    """A stored completed note that ran for the given seconds."""
    return {
        "failingIssues": failing,
        "nonFailingIssues": non_failing,
        "discussion": "",
        "projectID": project,
        "attemptID": attempt,
        "operationID": operation,
        "startTimestamp": start,
        "endTimestamp": start + seconds * 1000,
        "additionalTime": 0,
        "completed": True,
        "canceled": canceled,
        "hasStarted": True,
    }
