"""Tests for CSV export and clipboard copy."""

import csv
import io
from pathlib import Path

import pyperclip
import pytest

from worklog.export import CSV_HEADERS, copy_text, rows_to_csv, write_csv
from worklog.models.stats import ExportRow


def make_row(**kwargs) -> ExportRow:
    defaults = {"date": "2024-01-15", "noteId": 1, "startTimestamp": 1000, "endTimestamp": 6000, "duration": "00:00:05"}
    defaults.update(kwargs)
    return ExportRow(**defaults)


class TestCsv:
    """CSV rendering."""

    def test_header_only_for_no_rows(self) -> None:
        assert rows_to_csv([]) == ",".join(CSV_HEADERS) + "\n"

    def test_row_values(self) -> None:
        text = rows_to_csv([make_row(projectID="p1", canceled=True)])
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[1] == [
            "2024-01-15", "1", "p1", "", "", "1000", "6000", "00:00:05", "Yes", "", "", "",
        ]

    def test_quotes_commas_quotes_and_newlines(self) -> None:
        text = rows_to_csv([make_row(failingIssues='a, "b"\nc')])
        assert '"a, ""b""\nc"' in text
        parsed = list(csv.reader(io.StringIO(text)))
        assert parsed[1][9] == 'a, "b"\nc'

    def test_missing_timestamps_are_blank(self) -> None:
        text = rows_to_csv([make_row(startTimestamp=None, endTimestamp=None, duration="")])
        assert list(csv.reader(io.StringIO(text)))[1][5:9] == ["", "", "", "No"]

    def test_write_csv_creates_directories(self, tmp_path: Path) -> None:
        path = write_csv([make_row()], tmp_path / "out" / "notes.csv")
        assert path.read_text().splitlines()[0].startswith("Date,Note ID")


class TestCopyText:
    """Clipboard with file fallback."""

    def test_copies_to_clipboard(self, monkeypatch: pytest.MonkeyPatch) -> None:
        copied = []
        monkeypatch.setattr(pyperclip, "copy", copied.append)
        assert copy_text("hello") == (True, "Copied to clipboard")
        assert copied == ["hello"]

    def test_falls_back_to_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        def fail(text: str) -> None:
            raise pyperclip.PyperclipException("no clipboard")

        monkeypatch.setattr(pyperclip, "copy", fail)
        fallback = tmp_path / "clip" / "clipboard.txt"
        ok, message = copy_text("hello", fallback)

        assert ok is False
        assert str(fallback) in message
        assert fallback.read_text() == "hello"

    def test_failure_without_fallback_reports(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(text: str) -> None:
            raise pyperclip.PyperclipException("no clipboard")

        monkeypatch.setattr(pyperclip, "copy", fail)
        ok, message = copy_text("hello")
        assert ok is False
        assert "no clipboard" in message
