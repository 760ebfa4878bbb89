"""Derived views: statistics, project rates, search results, export rows."""

from pydantic import BaseModel

from .note import NoteRecord


class StatsSnapshot(BaseModel):
    """Outcome counts over completed, non-canceled notes."""

    failedCount: int = 0
    nonFailedCount: int = 0
    noIssueCount: int = 0
    totalCompleted: int = 0
    totalResults: int | None = None


class ProjectRate(BaseModel):
    """Per-project aggregate; rates are fractions of the project total."""

    projectID: str
    displayID: str
    total: int = 0
    failed: int = 0
    nonFailed: int = 0
    totalTime: int = 0
    failRate: float = 0.0
    nonFailRate: float = 0.0
    avgTimeSeconds: int = 0
    avgTime: str = "00:00:00"


class SearchResult(BaseModel):
    """A note matched by cross-day search."""

    bucket: str
    noteId: int
    note: NoteRecord
    formattedDate: str
    displayIndex: int | None = None
    matchesProjectID: bool = False


class ExportRow(BaseModel):
    """One completed note flattened for CSV / pay consumers."""

    date: str
    noteId: int
    projectID: str = ""
    attemptID: str = ""
    operationID: str = ""
    startTimestamp: int | None = None
    endTimestamp: int | None = None
    duration: str = ""
    canceled: bool = False
    failingIssues: str = ""
    nonFailingIssues: str = ""
    discussion: str = ""


class DaySummary(BaseModel):
    """Time and throughput for one bucket."""

    bucket: str
    onPlatformSeconds: int = 0
    offPlatformSeconds: int = 0
    completedCount: int = 0
