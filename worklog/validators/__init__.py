"""Validation of persisted records against JSON Schema."""

from .records import validate_backup, validate_note_record

__all__ = ["validate_backup", "validate_note_record"]
