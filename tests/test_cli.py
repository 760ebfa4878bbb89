"""Tests for the command line entry point."""

import csv
import io
import json
from pathlib import Path

import pyperclip
import pytest

from worklog.cli import main


@pytest.fixture
def run(tmp_path: Path, capsys: pytest.CaptureFixture):
    """Invoke the CLI against a temp store; returns captured stdout."""

    def _run(*argv: str) -> str:
        main(
            [
                "--store", str(tmp_path / "store.json"),
                "--audit-log", str(tmp_path / "audit.log"),
                "--config", str(tmp_path / "missing.json"),
                "--date", "2024-01-15",
                *argv,
            ]
        )
        return capsys.readouterr().out

    return _run


class TestNoteCommands:
    """Note lifecycle through the CLI."""

    def test_edit_complete_list(self, run, tmp_path: Path) -> None:
        assert "Updated failingIssues of note 1" in run("edit", "1", "failingIssues", "x")
        assert "Completed note 1" in run("complete", "1")

        listing = run("list")
        assert "Mon, Jan 15 (2024-01-15)" in listing
        assert "completed" in listing
        assert "draft" in listing

        store = json.loads((tmp_path / "store.json").read_text())
        assert json.loads(store["2024-01-15"])["1"]["completed"] is True

    def test_new_note_can_be_edited(self, run) -> None:
        run("edit", "1", "projectID", "p1")
        assert "Created note 2" in run("new")
        assert "Updated projectID of note 2" in run("edit", "2", "projectID", "p2")

        listing = run("list")
        assert "#1" in listing
        assert "p2" in listing
        assert "#3" not in listing

    def test_complete_draft_fails(self, run, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as exc:
            run("complete", "1")
        assert exc.value.code == 1
        assert "Error: Note 1 has not started" in capsys.readouterr().out

    def test_unknown_note_fails(self, run, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit):
            run("reopen", "7")
        assert "Error: Note not found: 7" in capsys.readouterr().out

    def test_cancel_then_reopen(self, run) -> None:
        run("edit", "1", "projectID", "proj-1")
        assert "Canceled note 1" in run("cancel", "1")
        assert "Reopened note 1" in run("reopen", "1")

    def test_delete(self, run) -> None:
        run("edit", "1", "projectID", "a")
        run("complete", "1")
        run("edit", "2", "projectID", "b")
        run("complete", "2")
        assert "Deleted note 1" in run("delete", "1")
        assert "1 result(s)" in run("search", "B")

    def test_invalid_date_fails(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit):
            main(["--store", str(tmp_path / "s.json"), "--date", "someday", "list"])
        assert "Error:" in capsys.readouterr().out


class TestReports:
    """Stats, rates, summary and export."""

    def test_stats_and_rates(self, run) -> None:
        run("edit", "1", "projectID", "proj-12345")
        run("edit", "1", "failingIssues", "bad")
        run("complete", "1")

        stats = json.loads(run("stats"))
        assert stats["failedCount"] == 1
        rates = json.loads(run("rates"))
        assert rates[0]["displayID"] == "12345"
        assert rates[0]["failRate"] == 1.0

    def test_export_stdout(self, run) -> None:
        run("edit", "1", "attemptID", "att, 1")
        run("complete", "1")
        rows = list(csv.reader(io.StringIO(run("export"))))
        assert rows[0][0] == "Date"
        assert rows[1][0] == "2024-01-15"
        assert rows[1][3] == "att, 1"

    def test_export_file(self, run, tmp_path: Path) -> None:
        out = tmp_path / "export.csv"
        assert "Exported 0 note(s)" in run("export", "--out", str(out))
        assert out.exists()

    def test_summary_week(self, run) -> None:
        lines = run("summary", "--week").strip().splitlines()
        assert len(lines) == 7
        assert lines[0].startswith("2024-01-15")


class TestTimerCommands:
    """Category timers through the CLI."""

    def test_start_show_stop(self, run, capsys: pytest.CaptureFixture) -> None:
        assert "* blocked" in run("timer", "start", "blocked")
        with pytest.raises(SystemExit):
            run("timer", "start", "blocked")
        capsys.readouterr()
        assert "* blocked" not in run("timer", "stop", "blocked")

    def test_edit(self, run) -> None:
        output = run("timer", "edit", "sheetwork", "1", "2", "3")
        assert "sheetwork" in output
        assert "01:02:03" in output

    def test_stop_all(self, run) -> None:
        run("timer", "start", "sheetwork")
        assert "Stopped all timers" in run("stop-all")
        assert "*" not in run("timer", "show")


class TestHistory:
    """Reading the audit trail through the CLI."""

    def test_history_lists_day_entries(self, run) -> None:
        run("edit", "1", "projectID", "p1")
        run("complete", "1")

        output = run("history")
        assert "EDIT_START" in output
        assert "COMPLETE" in output

        completes = run("history", "--operation", "COMPLETE").splitlines()
        assert completes[-1] == "1 entry"
        assert "note=1" in completes[0]


class TestCopyAndBackup:
    """Clipboard and backup commands."""

    def test_copy_identifiers(self, run, monkeypatch: pytest.MonkeyPatch) -> None:
        copied = []
        monkeypatch.setattr(pyperclip, "copy", copied.append)
        run("edit", "1", "projectID", "proj-1")
        assert "Copied to clipboard" in run("copy", "1", "--identifiers")
        assert copied[0].startswith("• Project Name/ID: proj-1")

    def test_backup_then_status(self, tmp_path: Path) -> None:
        config = tmp_path / "settings.json"
        config.write_text(json.dumps({"data_dir": str(tmp_path / "data")}))
        store = str(tmp_path / "store.json")

        main(["--config", str(config), "--store", store, "backup"])
        main(["--config", str(config), "--store", store, "backup"])
        main(["--config", str(config), "--store", store, "backup", "--status"])

        backups = list((tmp_path / "data" / "backups").glob("backup-2*.json"))
        assert len(backups) == 1
