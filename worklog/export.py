"""Export completed notes as CSV and copy note text to the clipboard."""

import csv
import io
from pathlib import Path

import pyperclip

from .models.stats import ExportRow

CSV_HEADERS = (
    "Date",
    "Note ID",
    "Project ID",
    "Attempt ID",
    "Operation ID",
    "Start Timestamp",
    "End Timestamp",
    "Duration",
    "Canceled",
    "Failing Issues",
    "Non-Failing Issues",
    "Discussion",
)


def _row_values(row: ExportRow) -> list[str | int]:
    return [
        row.date,
        row.noteId,
        row.projectID,
        row.attemptID,
        row.operationID,
        "" if row.startTimestamp is None else row.startTimestamp,
        "" if row.endTimestamp is None else row.endTimestamp,
        row.duration,
        "Yes" if row.canceled else "No",
        row.failingIssues,
        row.nonFailingIssues,
        row.discussion,
    ]


def rows_to_csv(rows: list[ExportRow]) -> str:
    """Render rows as CSV text with a header line.

    Fields containing commas, quotes or newlines are quoted and inner
    quotes doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for row in rows:
        writer.writerow(_row_values(row))
    return buffer.getvalue()


def write_csv(rows: list[ExportRow], path: Path) -> Path:
    """Write rows to a CSV file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="") as f:
        f.write(rows_to_csv(rows))
    return path


def copy_text(text: str, fallback_path: Path | None = None) -> tuple[bool, str]:
    """Copy text to the system clipboard.

    When no clipboard is available the text is written to ``fallback_path``
    instead so it is never lost.

    Returns:
        (copied_to_clipboard, status message)
    """
    try:
        pyperclip.copy(text)
        return True, "Copied to clipboard"
    except (pyperclip.PyperclipException, OSError) as exc:
        if fallback_path is None:
            return False, f"Could not copy to clipboard: {exc}"
        fallback_path.parent.mkdir(parents=True, exist_ok=True)
        with open(fallback_path, "w") as f:
            f.write(text)
        return False, f"Clipboard unavailable; text written to {fallback_path}"
