"""Per-day work notes with elapsed-time clocks and off-platform category timers."""

from .category_timers import CategoryTimerSet
from .collection import NoteCollection
from .note import Note, NoteState
from .store import JsonFileStore, MemoryStore, Store

__all__ = [
    "CategoryTimerSet",
    "JsonFileStore",
    "MemoryStore",
    "Note",
    "NoteCollection",
    "NoteState",
    "Store",
]
