"""Pydantic models for persisted records and derived views."""

from .note import EDITABLE_FIELDS, IDENTIFIER_FIELDS, TEXT_FIELDS, NoteRecord
from .stats import DaySummary, ExportRow, ProjectRate, SearchResult, StatsSnapshot
from .timers import CATEGORIES, Category, OffPlatformData, TimerEntry

__all__ = [
    "CATEGORIES",
    "Category",
    "DaySummary",
    "EDITABLE_FIELDS",
    "ExportRow",
    "IDENTIFIER_FIELDS",
    "NoteRecord",
    "OffPlatformData",
    "ProjectRate",
    "SearchResult",
    "StatsSnapshot",
    "TEXT_FIELDS",
    "TimerEntry",
]
