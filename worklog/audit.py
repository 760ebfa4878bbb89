"""Audit trail for note and category timer lifecycle operations.

Each line reads ``<UTC time> [<OPERATION>] key=value ...`` and is stamped
from the same time source the clocks and timers use, so a replayed or
simulated day produces a matching trail. Values containing spaces are
quoted; ``None`` values are left out.

Operations: CREATE, EDIT_START, COMPLETE, CANCEL, REOPEN, DELETE, RENUMBER,
REPAIR, TIMER_START, TIMER_STOP, TIMER_EDIT, TIMER_RESUME, TIMER_STOP_ALL,
BACKUP
"""

import re
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from .timeutil import TimeSource, system_time_ms

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
LINE_PATTERN = re.compile(r"^(?P<timestamp>\S+) \[(?P<operation>[A-Z_]+)\](?: (?P<fields>.*))?$")
FIELD_PATTERN = re.compile(r'(\w+)=("[^"]*"|\S+)')

AuditValue = str | int | float | bool | None


class AuditEntry(BaseModel):
    """One parsed audit line; field values are kept as written."""

    timestamp: str
    operation: str
    fields: dict[str, str] = Field(default_factory=dict)

    @property
    def bucket(self) -> str | None:
        return self.fields.get("bucket")


def format_timestamp(ms: int) -> str:
    """Epoch milliseconds as a whole-second UTC ISO 8601 string."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime(TIMESTAMP_FORMAT)


def format_fields(fields: dict[str, AuditValue]) -> str:
    pairs = []
    for key, value in fields.items():
        if value is None:
            continue
        text = str(value)
        if " " in text:
            text = f'"{text}"'
        pairs.append(f"{key}={text}")
    return " ".join(pairs)


def parse_line(line: str) -> AuditEntry | None:
    """Parse one audit line, or None if it is not one."""
    match = LINE_PATTERN.match(line.rstrip("\n"))
    if match is None:
        return None
    fields = {
        key: value[1:-1] if value.startswith('"') else value
        for key, value in FIELD_PATTERN.findall(match.group("fields") or "")
    }
    return AuditEntry(timestamp=match.group("timestamp"), operation=match.group("operation"), fields=fields)


class AuditLogger:
    """Append-only audit file for one store."""

    def __init__(self, log_path: Path, *, now: TimeSource = system_time_ms) -> None:
        self.log_path = log_path
        self._now = now

    def log(self, operation: str, **kwargs: AuditValue) -> None:
        """Append an audit log entry.

        Args:
            operation: The operation name (e.g., COMPLETE, DELETE, TIMER_START)
            **kwargs: Key-value pairs to include in the log entry.
        """
        line = f"{format_timestamp(self._now())} [{operation}]"
        kv_string = format_fields(kwargs)
        if kv_string:
            line = f"{line} {kv_string}"

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, "a") as f:
            f.write(line + "\n")

    def entries(self, bucket: str | None = None, operation: str | None = None) -> list[AuditEntry]:
        """Read back logged entries in order, optionally filtered.

        Lines that do not parse are skipped.
        """
        if not self.log_path.exists():
            return []
        result = []
        for line in self.log_path.read_text().splitlines():
            entry = parse_line(line)
            if entry is None:
                continue
            if bucket is not None and entry.bucket != bucket:
                continue
            if operation is not None and entry.operation != operation:
                continue
            result.append(entry)
        return result


def audit(logger: AuditLogger | None, operation: str, **kwargs: AuditValue) -> None:
    """Log through an optional audit logger."""
    if logger is not None:
        logger.log(operation, **kwargs)
