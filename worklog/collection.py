"""Note collection: lifecycle routing, numbering, statistics and search.

The collection owns the notes of the active day-bucket. Lifecycle per note:

    Draft --edit--> Running --complete--> Completed --reopen--> Editing
    Running/Editing --complete(canceled=True)--> Canceled

Completing or canceling a note that never started is ignored. Ids in a
bucket are kept gapless: every delete renumbers the survivors ``1..n`` in
their original order.
"""

from pydantic import ValidationError

from .audit import AuditLogger, audit
from .buckets import add_days, all_bucket_keys, format_bucket_label, in_range, today, week_start
from .category_timers import CategoryTimerSet
from .models.note import NoteRecord
from .models.stats import DaySummary, ExportRow, ProjectRate, SearchResult, StatsSnapshot
from .note import Note, load_bucket
from .store import Store
from .ticker import Ticker
from .timeutil import TimeSource, calculate_duration, format_time, system_time_ms
from .validators.records import validate_note_record

CANCELED_LABEL = "Cancelled"


def _note_id(key: str) -> int | None:
    """Positive integer id from a map key, else None."""
    try:
        value = int(key)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def parse_records(raw: dict) -> dict[int, NoteRecord]:
    """Valid records of a raw bucket map keyed by numeric id; the rest are skipped."""
    records: dict[int, NoteRecord] = {}
    for key, value in raw.items():
        note_id = _note_id(key)
        if note_id is None:
            continue
        is_valid, _ = validate_note_record(value)
        if not is_valid:
            continue
        try:
            records[note_id] = NoteRecord.model_validate(value)
        except ValidationError:
            continue
    return dict(sorted(records.items()))


def classify(record: NoteRecord) -> str:
    """Outcome bucket of a completed note: failed, nonFailed or noIssue."""
    if record.failing_issues.strip():
        return "failed"
    if record.non_failing_issues.strip():
        return "nonFailed"
    return "noIssue"


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


class NoteCollection:
    """Orchestrates notes of the active bucket plus the category timers."""

    def __init__(
        self,
        store: Store,
        bucket: str | None = None,
        timers: CategoryTimerSet | None = None,
        *,
        now: TimeSource = system_time_ms,
        ticker: Ticker | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.store = store
        self._now = now
        self.ticker = ticker
        self.audit_logger = audit_logger
        self.timers = timers if timers is not None else CategoryTimerSet(
            store, now=now, ticker=ticker, audit_logger=audit_logger
        )
        self.bucket = bucket or today()
        self.notes: list[Note] = []
        self.timers.load_timer_state(self.bucket)
        self.load()

    # ------------------------------------------------------------------
    # Loading and numbering
    # ------------------------------------------------------------------

    def _new_note(self, note_id: int) -> Note:
        return Note(self.bucket, note_id, self.store, now=self._now, ticker=self.ticker)

    def _discard_notes(self) -> None:
        for note in self.notes:
            note.discard()
        self.notes = []

    def cleanup_bucket(self, bucket: str) -> dict[int, NoteRecord]:
        """Drop malformed records from a bucket, rewriting it if anything was dropped."""
        raw = load_bucket(self.store, bucket)
        records = parse_records(raw)
        dropped = [key for key in raw if _note_id(key) not in records]
        if dropped:
            self.store.set_json(bucket, {key: raw[key] for key in raw if key not in dropped})
            audit(self.audit_logger, "REPAIR", bucket=bucket, dropped=",".join(dropped))
        return records

    def load(self, bucket: str | None = None) -> list[Note]:
        """(Re)hydrate the notes of the active bucket."""
        if bucket is not None:
            self.bucket = bucket
        self._discard_notes()
        records = self.cleanup_bucket(self.bucket)
        self.notes = [self._new_note(note_id) for note_id in records]
        self.ensure_trailing_draft()
        return self.list_notes()

    def next_available_id(self, bucket: str | None = None) -> int:
        """Smallest positive id not used in the bucket.

        Unsaved drafts of the active bucket count as used.
        """
        bucket = bucket or self.bucket
        used = {_note_id(key) for key in load_bucket(self.store, bucket)}
        if bucket == self.bucket:
            used.update(note.id for note in self.notes)
        next_id = 1
        while next_id in used:
            next_id += 1
        return next_id

    def renumber(self, bucket: str | None = None) -> dict[int, int]:
        """Reassign ids 1..n in original id order.

        Returns:
            Mapping of old id to new id for every id that moved.
        """
        bucket = bucket or self.bucket
        raw = load_bucket(self.store, bucket)
        ordered = sorted(
            (_note_id(key), record) for key, record in raw.items() if _note_id(key) is not None
        )
        moved = {old: new for new, (old, _) in enumerate(ordered, start=1) if old != new}
        renumbered = {str(new): record for new, (_, record) in enumerate(ordered, start=1)}
        self.store.set_json(bucket, renumbered)
        if moved:
            audit(
                self.audit_logger,
                "RENUMBER",
                bucket=bucket,
                moved=",".join(f"{old}->{new}" for old, new in moved.items()),
            )
        return moved

    def ensure_trailing_draft(self) -> Note | None:
        """Append a fresh draft when every note in the bucket is completed."""
        if all(note.completed for note in self.notes):
            return self.create_note()
        return None

    # ------------------------------------------------------------------
    # Queries over the active bucket
    # ------------------------------------------------------------------

    def list_notes(self, bucket: str | None = None) -> list[Note]:
        """Notes of a bucket in id order; other buckets are hydrated read-only."""
        if bucket is None or bucket == self.bucket:
            return sorted(self.notes, key=lambda note: note.id)
        records = parse_records(load_bucket(self.store, bucket))
        return [Note(bucket, note_id, self.store, now=self._now) for note_id in records]

    def get_note(self, note_id: int) -> Note | None:
        for note in self.notes:
            if note.id == note_id:
                return note
        return None

    def display_index(self, note: Note) -> int:
        """1 + number of non-canceled notes before this one."""
        return 1 + sum(1 for other in self.notes if other.id < note.id and not other.canceled)

    def display_label(self, note: Note) -> str:
        """Ordinal for display; canceled notes stay labelled even while reopened."""
        if note.canceled:
            return CANCELED_LABEL
        return str(self.display_index(note))

    def total_on_platform_seconds(self) -> int:
        """Live sum of every note clock in the active bucket."""
        return sum(note.elapsed_seconds() for note in self.notes)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_note(self, bucket: str | None = None) -> Note:
        """Add a blank draft with the next free id."""
        if bucket is not None and bucket != self.bucket:
            self.switch_bucket(bucket)
        note = self._new_note(self.next_available_id())
        self.notes.append(note)
        audit(self.audit_logger, "CREATE", bucket=self.bucket, note=note.id)
        return note

    def edit_field(self, note_id: int, field: str, value: str) -> bool:
        """Route a field edit. Completed notes must be reopened first.

        Raises:
            ValueError: If the field name is unknown.
        """
        note = self.get_note(note_id)
        if note is None or note.completed:
            return False
        was_draft = note.is_draft
        note.on_field_edit(field, value)
        if was_draft and note.has_started:
            audit(self.audit_logger, "EDIT_START", bucket=self.bucket, note=note_id)
        return True

    def complete_note(self, note_id: int, canceled: bool = False) -> bool:
        """Complete (or cancel) a started note, then keep a draft at the end."""
        note = self.get_note(note_id)
        if note is None or not note.complete(canceled):
            return False
        audit(
            self.audit_logger,
            "CANCEL" if canceled else "COMPLETE",
            bucket=self.bucket,
            note=note_id,
            canceled=note.canceled,
            seconds=note.elapsed_seconds(),
        )
        self.ensure_trailing_draft()
        return True

    def cancel_note(self, note_id: int) -> bool:
        """Cancel a note; drafts can never be canceled."""
        return self.complete_note(note_id, canceled=True)

    def reopen_note(self, note_id: int) -> bool:
        """Reopen a completed note. The trailing draft is left as it is."""
        note = self.get_note(note_id)
        if note is None or not note.reopen():
            return False
        audit(self.audit_logger, "REOPEN", bucket=self.bucket, note=note_id, canceled=note.canceled)
        return True

    def delete_note(self, note_id: int) -> bool:
        """Delete a note, renumber the bucket and reload it."""
        note = self.get_note(note_id)
        if note is None:
            if str(note_id) not in load_bucket(self.store, self.bucket):
                return False
            note = self._new_note(note_id)
        else:
            self.notes.remove(note)
        note.delete()
        audit(self.audit_logger, "DELETE", bucket=self.bucket, note=note_id)
        self.renumber()
        self.load()
        return True

    def switch_bucket(self, bucket: str) -> list[Note]:
        """Select another bucket.

        Category timers of the previous bucket keep accruing through the
        registry; note clocks keep their persisted timestamps.
        """
        if bucket == self.bucket:
            return self.list_notes()
        previous = self.bucket
        self._discard_notes()
        self.timers.switch_bucket(previous, bucket)
        self.bucket = bucket
        return self.load()

    def stop_all_timers(self) -> None:
        """Stop every note clock of the active bucket and every category timer."""
        for note in self.notes:
            if note.clock.is_running:
                note.clock.stop()
                note.refresh_display()
                note.save()
        self.timers.stop_all_timers(self.bucket)

    # ------------------------------------------------------------------
    # Cross-day search
    # ------------------------------------------------------------------

    def bucket_keys(self) -> list[str]:
        """Every day-bucket in the store, newest first."""
        return all_bucket_keys(self.store.keys())

    def search(self, query: str) -> list[SearchResult]:
        """Notes whose identifiers contain query (case-insensitive).

        Buckets come newest first; within a bucket, highest id first.
        """
        needle = query.strip().lower()
        if not needle:
            return []

        results: list[SearchResult] = []
        for bucket in self.bucket_keys():
            records = parse_records(load_bucket(self.store, bucket))
            ranks = _display_ranks(records)
            for note_id in sorted(records, reverse=True):
                record = records[note_id]
                project = record.project_id.lower()
                if (
                    needle in project
                    or needle in record.attempt_id.lower()
                    or needle in record.operation_id.lower()
                ):
                    results.append(
                        SearchResult(
                            bucket=bucket,
                            noteId=note_id,
                            note=record,
                            formattedDate=format_bucket_label(bucket),
                            displayIndex=ranks.get(note_id),
                            matchesProjectID=needle in project,
                        )
                    )
        return results

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def _scope(self, query: str | None, bucket: str | None) -> list[tuple[NoteRecord, int]]:
        """(record, elapsed seconds) pairs for a statistics scope.

        In-memory notes use their live clocks; persisted records use their
        timestamp delta plus carried time.
        """
        if query is not None:
            return [(r.note, r.note.persisted_seconds()) for r in self.search(query)]
        if bucket is not None and bucket != self.bucket:
            records = parse_records(load_bucket(self.store, bucket))
            return [(record, record.persisted_seconds()) for record in records.values()]
        return [(note.to_record(), note.elapsed_seconds()) for note in self.list_notes()]

    def compute_stats(self, query: str | None = None, bucket: str | None = None) -> StatsSnapshot:
        """Outcome counts over completed notes; canceled notes are skipped.

        Args:
            query: Compute over cross-day search results instead of a bucket.
            bucket: Compute over a stored bucket (defaults to the active one).
        """
        entries = self._scope(query, bucket)
        counts = {"failed": 0, "nonFailed": 0, "noIssue": 0}
        for record, _ in entries:
            if record.canceled or not record.completed:
                continue
            counts[classify(record)] += 1
        return StatsSnapshot(
            failedCount=counts["failed"],
            nonFailedCount=counts["nonFailed"],
            noIssueCount=counts["noIssue"],
            totalCompleted=sum(counts.values()),
            totalResults=len(entries) if query is not None else None,
        )

    def compute_project_rates(self, query: str | None = None, bucket: str | None = None) -> list[ProjectRate]:
        """Per-project counts, time and fail rates over completed, non-canceled notes."""
        projects: dict[str, ProjectRate] = {}
        for record, seconds in self._scope(query, bucket):
            project_id = record.project_id.strip()
            if not project_id or record.canceled or not record.completed:
                continue
            rate = projects.setdefault(
                project_id,
                ProjectRate(projectID=project_id, displayID=project_id[-5:]),
            )
            rate.total += 1
            rate.totalTime += seconds
            outcome = classify(record)
            if outcome == "failed":
                rate.failed += 1
            elif outcome == "nonFailed":
                rate.nonFailed += 1

        for rate in projects.values():
            rate.failRate = rate.failed / rate.total
            rate.nonFailRate = rate.nonFailed / rate.total
            rate.avgTimeSeconds = _round_half_up(rate.totalTime / rate.total)
            rate.avgTime = format_time(rate.avgTimeSeconds)
        return list(projects.values())

    # ------------------------------------------------------------------
    # Export and daily aggregates
    # ------------------------------------------------------------------

    def export_rows(self, start: str | None = None, end: str | None = None) -> list[ExportRow]:
        """One row per completed note in the inclusive bucket range, oldest first."""
        rows: list[ExportRow] = []
        for bucket in reversed(self.bucket_keys()):
            if not in_range(bucket, start, end):
                continue
            for note_id, record in parse_records(load_bucket(self.store, bucket)).items():
                if not record.completed:
                    continue
                rows.append(
                    ExportRow(
                        date=bucket,
                        noteId=note_id,
                        projectID=record.project_id,
                        attemptID=record.attempt_id,
                        operationID=record.operation_id,
                        startTimestamp=record.start_timestamp,
                        endTimestamp=record.end_timestamp,
                        duration=calculate_duration(
                            record.start_timestamp, record.end_timestamp, record.additional_time
                        ),
                        canceled=record.canceled,
                        failingIssues=record.failing_issues,
                        nonFailingIssues=record.non_failing_issues,
                        discussion=record.discussion,
                    )
                )
        return rows

    def day_summary(self, bucket: str) -> DaySummary:
        """On/off-platform seconds and completed count for one bucket."""
        now = self._now()
        records = parse_records(load_bucket(self.store, bucket))
        return DaySummary(
            bucket=bucket,
            onPlatformSeconds=sum(record.persisted_seconds(now) for record in records.values()),
            offPlatformSeconds=self.timers.get_total_seconds(bucket),
            completedCount=sum(1 for r in records.values() if r.completed and not r.canceled),
        )

    def week_summary(self, bucket: str) -> list[DaySummary]:
        """Seven day summaries, Monday first, for the week containing bucket."""
        monday = week_start(bucket)
        return [self.day_summary(add_days(monday, offset)) for offset in range(7)]


def _display_ranks(records: dict[int, NoteRecord]) -> dict[int, int]:
    """Display ordinal of each non-canceled record in id order."""
    ranks: dict[int, int] = {}
    position = 0
    for note_id in sorted(records):
        if records[note_id].canceled:
            continue
        position += 1
        ranks[note_id] = position
    return ranks
