"""A single work item: free-text fields, identifiers and an elapsed-time clock."""

from enum import Enum
from typing import Any

from pydantic import ValidationError

from .clock import Clock
from .models.note import EDITABLE_FIELDS, NoteRecord, attribute_for
from .store import Store
from .ticker import Ticker, note_tick_key
from .timeutil import TimeSource, format_time, system_time_ms

SUMMARY_SECTIONS = (
    ("failingIssues", "Failing issues"),
    ("nonFailingIssues", "Non-failing issues"),
    ("discussion", "Discussion"),
)


class NoteState(str, Enum):
    """Read-only view over the completed/canceled bits."""

    DRAFT = "draft"
    RUNNING = "running"
    EDITING = "editing"
    COMPLETED = "completed"
    CANCELED = "canceled"


def load_bucket(store: Store, bucket: str) -> dict[str, Any]:
    """Raw note map of a bucket; anything but an object reads as empty."""
    data = store.get_json(bucket, {})
    return data if isinstance(data, dict) else {}


class Note:
    """One note of a day-bucket.

    ``completed`` and ``canceled`` are independent: a canceled note that is
    reopened keeps ``canceled`` so that completing it again, without
    canceling, still leaves it canceled.
    """

    def __init__(
        self,
        bucket: str,
        note_id: int,
        store: Store,
        defaults: NoteRecord | None = None,
        *,
        now: TimeSource = system_time_ms,
        ticker: Ticker | None = None,
    ) -> None:
        self.bucket = bucket
        self.id = note_id
        self.store = store
        self.display = "00:00:00"
        self.reopened = False

        record = self._hydrate(defaults)
        self.fields: dict[str, str] = {name: record.get(name) for name in EDITABLE_FIELDS}
        self.completed = record.completed
        self.canceled = record.canceled
        self.has_started = record.has_started or record.has_content()

        self.clock = Clock(
            record.start_timestamp,
            record.end_timestamp,
            record.additional_time,
            now=now,
            ticker=ticker,
            tick_key=note_tick_key(bucket, note_id),
            on_tick=self.refresh_display,
        )
        self.refresh_display()
        if self.has_started and not self.completed:
            self.clock.resume_display()

    def _hydrate(self, defaults: NoteRecord | None) -> NoteRecord:
        raw = load_bucket(self.store, self.bucket).get(str(self.id))
        if isinstance(raw, dict):
            try:
                return NoteRecord.model_validate(raw)
            except ValidationError:
                pass
        return defaults if defaults is not None else NoteRecord()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> NoteState:
        if self.completed:
            return NoteState.CANCELED if self.canceled else NoteState.COMPLETED
        if not self.has_started:
            return NoteState.DRAFT
        return NoteState.EDITING if self.reopened else NoteState.RUNNING

    @property
    def is_draft(self) -> bool:
        return not self.has_started and not self.completed

    @property
    def is_running(self) -> bool:
        return not self.completed and self.clock.is_running

    def get(self, field: str) -> str:
        attribute_for(field)
        return self.fields[field]

    def elapsed_seconds(self) -> int:
        return self.clock.get_elapsed_seconds()

    def refresh_display(self) -> None:
        self.display = format_time(self.clock.get_elapsed_seconds())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def on_field_edit(self, field: str, value: str) -> None:
        """Apply an edit; the first real edit of a draft starts the clock.

        Raises:
            ValueError: If the field name is unknown.
        """
        attribute_for(field)
        changed = self.fields[field] != value
        self.fields[field] = value
        if changed and not self.has_started and not self.completed:
            self.has_started = True
            self.clock.start()
        self.save()

    def complete(self, canceled: bool = False) -> bool:
        """Stop the clock and mark completed; cancellation is sticky.

        Returns:
            False (and changes nothing) if the note never started.
        """
        if not self.has_started:
            return False
        if self.clock.end_timestamp is None:
            self.clock.stop()
        self.clock.stop_display()
        self.completed = True
        self.canceled = canceled or self.canceled
        self.reopened = False
        self.refresh_display()
        self.save()
        return True

    def reopen(self) -> bool:
        """Reopen a completed note for editing, continuing its clock."""
        if not self.completed:
            return False
        self.completed = False
        self.has_started = True
        self.reopened = True
        self.clock.restart()
        self.save()
        return True

    def discard(self) -> None:
        """Cancel the display tick of a note that is going away."""
        self.clock.stop_display()

    def delete(self) -> None:
        """Drop this note's record from its bucket map."""
        self.discard()
        notes = load_bucket(self.store, self.bucket)
        if notes.pop(str(self.id), None) is not None:
            self.store.set_json(self.bucket, notes)

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def get_formatted_summary(self) -> str:
        """Text sections with content, for the clipboard."""
        parts = []
        for field, label in SUMMARY_SECTIONS:
            value = self.fields[field].strip()
            if value:
                parts.append(f"{label}:\n{value}")
        return "\n\n".join(parts)

    def get_formatted_identifiers(self) -> str:
        """Identifier block for the clipboard; Reason is left for the user."""
        project = self.fields["projectID"].strip()
        operation = self.fields["operationID"].strip()
        attempt = self.fields["attemptID"].strip()
        return (
            f"• Project Name/ID: {project}\n"
            f"• Op ID: {operation}\n"
            "• Reason: \n"
            f"• Task/Attempt ID(s): {attempt}"
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_record(self) -> NoteRecord:
        return NoteRecord.model_validate(
            {
                **self.fields,
                **self.clock.to_fields(),
                "completed": self.completed,
                "canceled": self.canceled,
                "hasStarted": self.has_started,
            }
        )

    def save(self) -> None:
        """Rewrite this note's record inside its bucket map."""
        notes = load_bucket(self.store, self.bucket)
        notes[str(self.id)] = self.to_record().to_json()
        self.store.set_json(self.bucket, notes)
