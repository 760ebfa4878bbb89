"""Daily whole-store backups.

Backup files are ``backup-<timestamp>.json`` holding ``{timestamp, data}``
where ``data`` is every store key decoded as JSON where possible. At most
one backup is written per UTC day unless forced; the last backup date is
kept in ``backup-meta.json`` next to the backups.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .audit import AuditLogger, audit
from .store import Store
from .validators.records import validate_backup

META_FILENAME = "backup-meta.json"
BACKUP_GLOB = "backup-*.json"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class BackupManager:
    """Writes, lists, prunes and restores store backups."""

    def __init__(
        self,
        store: Store,
        backup_dir: Path,
        keep: int | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self.store = store
        self.backup_dir = backup_dir
        self.keep = keep
        self.audit_logger = audit_logger

    @property
    def meta_path(self) -> Path:
        return self.backup_dir / META_FILENAME

    def last_backup_date(self) -> str | None:
        """Date (YYYY-MM-DD) of the last backup, or None."""
        if not self.meta_path.exists():
            return None
        try:
            with open(self.meta_path) as f:
                meta = json.load(f)
        except json.JSONDecodeError:
            return None
        if not isinstance(meta, dict):
            return None
        value = meta.get("lastBackupDate")
        return value if isinstance(value, str) else None

    def _save_meta(self, day: str) -> None:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        with open(self.meta_path, "w") as f:
            json.dump({"lastBackupDate": day}, f, indent=2)

    def should_backup_today(self, now: datetime | None = None) -> bool:
        day = (now or _utcnow()).date().isoformat()
        return self.last_backup_date() != day

    def list_backups(self) -> list[Path]:
        """Backup files, oldest first."""
        if not self.backup_dir.exists():
            return []
        return sorted(p for p in self.backup_dir.glob(BACKUP_GLOB) if p.name != META_FILENAME)

    def perform_backup(self, force: bool = False, now: datetime | None = None) -> Path | None:
        """Write a backup unless one was already written today.

        Returns:
            Path of the new backup file, or None when skipped.
        """
        moment = now or _utcnow()
        if not force and not self.should_backup_today(moment):
            return None

        stamp = _iso(moment)
        path = self.backup_dir / f"backup-{stamp.replace(':', '-').replace('.', '-')}.json"
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump({"timestamp": stamp, "data": self.store.snapshot()}, f, indent=2)
        self._save_meta(moment.date().isoformat())
        audit(self.audit_logger, "BACKUP", action="write", file=path.name)
        self.prune()
        return path

    def status(self, now: datetime | None = None) -> dict[str, Any]:
        """Last backup date, whether a backup is due, and the file count."""
        return {
            "lastBackupDate": self.last_backup_date(),
            "shouldBackupToday": self.should_backup_today(now),
            "backups": len(self.list_backups()),
        }

    def prune(self) -> list[Path]:
        """Delete the oldest backups beyond ``keep``. Returns the removed paths."""
        if not self.keep or self.keep < 1:
            return []
        backups = self.list_backups()
        removed = backups[: max(0, len(backups) - self.keep)]
        for path in removed:
            path.unlink()
        return removed

    def restore(self, path: Path) -> int:
        """Replace the store contents with a backup.

        Returns:
            Number of keys restored.

        Raises:
            ValueError: If the file is not a valid backup.
        """
        try:
            with open(path) as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Backup is not valid JSON: {path}") from e

        is_valid, errors = validate_backup(payload)
        if not is_valid:
            raise ValueError(f"Invalid backup {path}: {'; '.join(errors)}")

        for key in self.store.keys():
            self.store.remove(key)
        data = payload["data"]
        for key, value in data.items():
            self.store.set(key, value if isinstance(value, str) else json.dumps(value))
        audit(self.audit_logger, "BACKUP", action="restore", file=path.name, keys=len(data))
        return len(data)
