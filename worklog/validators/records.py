"""Shape checks for persisted note records and store backups."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema

SCHEMA_DIR = Path(__file__).parent / "schemas"
NOTE_SCHEMA_PATH = SCHEMA_DIR / "note_record.json"
BACKUP_SCHEMA_PATH = SCHEMA_DIR / "backup.json"


@lru_cache(maxsize=None)
def _load_schema(path: Path) -> dict:
    """Load a JSON schema from disk."""
    with open(path) as f:
        return json.load(f)


def validate_note_record(record: Any) -> tuple[bool, list[str]]:
    """
    Validate one stored note record.

    Args:
        record: The decoded value found under a note id.

    Returns:
        A tuple of (is_valid, list_of_errors).
        Null and non-object values are never valid.
    """
    if not isinstance(record, dict):
        return (False, [f"Record is not an object: {type(record).__name__}"])

    errors: list[str] = []
    try:
        jsonschema.validate(instance=record, schema=_load_schema(NOTE_SCHEMA_PATH))
    except jsonschema.ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
    return (len(errors) == 0, errors)


def validate_backup(payload: Any) -> tuple[bool, list[str]]:
    """Validate a backup file payload ``{timestamp, data}``."""
    errors: list[str] = []
    try:
        jsonschema.validate(instance=payload, schema=_load_schema(BACKUP_SCHEMA_PATH))
    except jsonschema.ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
    return (len(errors) == 0, errors)
