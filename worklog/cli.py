"""Command line entry point for the work log."""

import argparse
import json
from pathlib import Path

from .audit import AuditLogger
from .backup import BackupManager
from .buckets import format_bucket_label, parse_bucket, today
from .collection import NoteCollection
from .export import copy_text, rows_to_csv, write_csv
from .models.note import EDITABLE_FIELDS
from .models.timers import CATEGORIES
from .settings import Settings, load_settings
from .store import JsonFileStore
from .ticker import Ticker
from .timeutil import format_time


def _settings(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.config)
    if args.store is not None:
        settings.store_path = args.store
    if args.audit_log is not None:
        settings.audit_log_path = args.audit_log
    return settings


def _bucket(value: str | None) -> str:
    if value is None:
        return today()
    parse_bucket(value)
    return value


def _collection(settings: Settings, bucket: str) -> NoteCollection:
    return NoteCollection(
        JsonFileStore(settings.store_path),
        bucket,
        ticker=Ticker(),
        audit_logger=AuditLogger(settings.audit_log_path),
    )


def _require(ok: bool, message: str) -> None:
    if not ok:
        raise ValueError(message)


def _note(collection: NoteCollection, note_id: int):
    note = collection.get_note(note_id)
    if note is None:
        raise ValueError(f"Note not found: {note_id} in {collection.bucket}")
    return note


def _print_notes(collection: NoteCollection) -> None:
    print(f"{format_bucket_label(collection.bucket)} ({collection.bucket})")
    for note in collection.list_notes():
        project = note.get("projectID") or "-"
        print(
            f"  #{note.id:<3} {collection.display_label(note):>9}  "
            f"{note.state.value:<9} {format_time(note.elapsed_seconds())}  {project}"
        )
    print(f"  On-platform: {format_time(collection.total_on_platform_seconds())}")


def _print_timers(collection: NoteCollection) -> None:
    timers = collection.timers
    running = timers.running_category(collection.bucket)
    for category in CATEGORIES:
        marker = "*" if category == running else " "
        print(f" {marker} {category:<16} {format_time(timers.get_seconds(collection.bucket, category))}")
    print(f"   {'total':<16} {format_time(timers.get_total_seconds(collection.bucket))}")


def run(args: argparse.Namespace) -> None:
    """Execute one parsed command.

    Raises:
        ValueError: On unknown notes or rejected transitions.
    """
    settings = _settings(args)
    bucket = _bucket(args.date)

    if args.command == "backup":
        manager = BackupManager(
            JsonFileStore(settings.store_path),
            settings.backup_dir,
            keep=settings.backup_keep,
            audit_logger=AuditLogger(settings.audit_log_path),
        )
        if args.restore is not None:
            count = manager.restore(args.restore)
            print(f"Restored {count} keys from {args.restore}")
        elif args.status:
            print(json.dumps(manager.status(), indent=2))
        else:
            path = manager.perform_backup(force=args.force)
            print(f"Backup saved: {path}" if path else "Already backed up today")
        return

    if args.command == "history":
        logger = AuditLogger(settings.audit_log_path)
        entries = logger.entries(bucket=None if args.all else bucket, operation=args.operation)
        for entry in entries:
            details = " ".join(f"{key}={value}" for key, value in entry.fields.items())
            print(f"{entry.timestamp} {entry.operation:<14} {details}".rstrip())
        print(f"{len(entries)} entr{'y' if len(entries) == 1 else 'ies'}")
        return

    collection = _collection(settings, bucket)

    if args.command == "list":
        _print_notes(collection)
    elif args.command == "new":
        note = collection.create_note()
        note.save()
        print(f"Created note {note.id}")
    elif args.command == "edit":
        _note(collection, args.id)
        _require(
            collection.edit_field(args.id, args.field, args.value),
            f"Note {args.id} is completed; reopen it first",
        )
        print(f"Updated {args.field} of note {args.id}")
    elif args.command == "complete":
        _note(collection, args.id)
        _require(collection.complete_note(args.id), f"Note {args.id} has not started")
        print(f"Completed note {args.id}")
    elif args.command == "cancel":
        _note(collection, args.id)
        _require(collection.cancel_note(args.id), f"Note {args.id} has not started")
        print(f"Canceled note {args.id}")
    elif args.command == "reopen":
        _note(collection, args.id)
        _require(collection.reopen_note(args.id), f"Note {args.id} is not completed")
        print(f"Reopened note {args.id}")
    elif args.command == "delete":
        _require(collection.delete_note(args.id), f"Note not found: {args.id} in {bucket}")
        print(f"Deleted note {args.id}")
    elif args.command == "copy":
        note = _note(collection, args.id)
        text = note.get_formatted_identifiers() if args.identifiers else note.get_formatted_summary()
        _, message = copy_text(text, settings.fallback_copy_path)
        print(message)
    elif args.command == "search":
        results = collection.search(args.query)
        for result in results:
            label = "Cancelled" if result.displayIndex is None else str(result.displayIndex)
            print(f"{result.formattedDate:<12} #{result.noteId:<3} {label:>9}  {result.note.project_id}")
        print(f"{len(results)} result(s)")
    elif args.command == "stats":
        print(collection.compute_stats(args.query).model_dump_json(indent=2))
    elif args.command == "rates":
        rates = collection.compute_project_rates(args.query)
        print(json.dumps([rate.model_dump(mode="json") for rate in rates], indent=2))
    elif args.command == "timer":
        timers = collection.timers
        if args.action == "start":
            _require(timers.start_timer(bucket, args.category), f"Timer already running: {args.category}")
        elif args.action == "stop":
            _require(timers.stop_timer(bucket, args.category), f"Timer not running: {args.category}")
        elif args.action == "edit":
            timers.edit_timer(bucket, args.category, args.hours, args.minutes, args.seconds)
        _print_timers(collection)
    elif args.command == "stop-all":
        collection.stop_all_timers()
        print("Stopped all timers")
    elif args.command == "summary":
        days = collection.week_summary(bucket) if args.week else [collection.day_summary(bucket)]
        for day in days:
            print(
                f"{day.bucket}  on={format_time(day.onPlatformSeconds)}  "
                f"off={format_time(day.offPlatformSeconds)}  completed={day.completedCount}"
            )
    elif args.command == "export":
        rows = collection.export_rows(args.start, args.end)
        if args.out is not None:
            write_csv(rows, args.out)
            print(f"Exported {len(rows)} note(s) to {args.out}")
        else:
            print(rows_to_csv(rows), end="")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Track notes and off-platform time per day")
    parser.add_argument("--config", type=Path, default=None, help="Path to a JSON settings file")
    parser.add_argument("--store", type=Path, default=None, help="Path to the store JSON file")
    parser.add_argument("--audit-log", type=Path, default=None, help="Path to the audit log file")
    parser.add_argument("--date", default=None, help="Day-bucket (YYYY-MM-DD), defaults to today")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List notes of the day")
    sub.add_parser("new", help="Create a draft note")

    edit = sub.add_parser("edit", help="Edit a note field")
    edit.add_argument("id", type=int)
    edit.add_argument("field", choices=EDITABLE_FIELDS)
    edit.add_argument("value")

    for name, help_text in (
        ("complete", "Complete a note"),
        ("cancel", "Cancel a note"),
        ("reopen", "Reopen a completed note"),
        ("delete", "Delete a note and renumber the day"),
    ):
        command = sub.add_parser(name, help=help_text)
        command.add_argument("id", type=int)

    copy = sub.add_parser("copy", help="Copy a note to the clipboard")
    copy.add_argument("id", type=int)
    copy.add_argument("--identifiers", action="store_true", help="Copy the identifier block")

    search = sub.add_parser("search", help="Search identifiers across every day")
    search.add_argument("query")

    for name, help_text in (("stats", "Outcome counts"), ("rates", "Per-project rates")):
        command = sub.add_parser(name, help=help_text)
        command.add_argument("--query", default=None, help="Compute over search results")

    timer = sub.add_parser("timer", help="Off-platform category timers")
    timer_actions = timer.add_subparsers(dest="action", required=True)
    timer_actions.add_parser("show")
    for action in ("start", "stop"):
        timer_actions.add_parser(action).add_argument("category", choices=CATEGORIES)
    timer_edit = timer_actions.add_parser("edit")
    timer_edit.add_argument("category", choices=CATEGORIES)
    timer_edit.add_argument("hours", type=int)
    timer_edit.add_argument("minutes", type=int)
    timer_edit.add_argument("seconds", type=int)

    sub.add_parser("stop-all", help="Stop every note clock and category timer")

    history = sub.add_parser("history", help="Show audit entries for the day")
    history.add_argument("--operation", default=None, help="Only this operation, e.g. COMPLETE")
    history.add_argument("--all", action="store_true", help="Entries of every day")

    summary = sub.add_parser("summary", help="On/off-platform time per day")
    summary.add_argument("--week", action="store_true", help="Whole week containing the date")

    export = sub.add_parser("export", help="Export completed notes as CSV")
    export.add_argument("--start", default=None)
    export.add_argument("--end", default=None)
    export.add_argument("--out", type=Path, default=None)

    backup = sub.add_parser("backup", help="Back up or restore the store")
    backup.add_argument("--force", action="store_true", help="Back up even if done today")
    backup.add_argument("--status", action="store_true")
    backup.add_argument("--restore", type=Path, default=None)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    try:
        run(args)
    except (ValueError, OSError) as e:
        print(f"Error: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
