"""Tests for record and backup schema validation."""

import pytest

from worklog.validators import validate_backup, validate_note_record


class TestNoteRecordValidator:
    """Shape checks on stored note records."""

    def test_full_record_valid(self) -> None:
        record = {
            "failingIssues": "x",
            "nonFailingIssues": "",
            "discussion": None,
            "projectID": "p",
            "attemptID": "",
            "operationID": "",
            "startTimestamp": 1705312800000,
            "endTimestamp": None,
            "additionalTime": 0,
            "completed": False,
            "canceled": False,
            "hasStarted": True,
        }
        assert validate_note_record(record) == (True, [])

    def test_legacy_and_partial_records_valid(self) -> None:
        assert validate_note_record({"text": "old"})[0] is True
        assert validate_note_record({})[0] is True

    @pytest.mark.parametrize("record", [None, "text", 3, [1, 2]])
    def test_non_objects_invalid(self, record) -> None:
        is_valid, errors = validate_note_record(record)
        assert is_valid is False
        assert "not an object" in errors[0]

    def test_wrong_types_invalid(self) -> None:
        is_valid, errors = validate_note_record({"completed": "yes"})
        assert is_valid is False
        assert errors[0].startswith("Schema validation error")


class TestBackupValidator:
    """Backup file payloads."""

    def test_valid_backup(self) -> None:
        assert validate_backup({"timestamp": "2024-01-15T00:00:00.000Z", "data": {}}) == (True, [])

    def test_missing_data_invalid(self) -> None:
        is_valid, errors = validate_backup({"timestamp": "t"})
        assert is_valid is False
        assert "'data' is a required property" in errors[0]
