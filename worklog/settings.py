"""Paths and limits used by the command line entry point."""

import json
from pathlib import Path

from pydantic import BaseModel, Field

REPO_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_DATA_DIR = REPO_ROOT / "data"


class Settings(BaseModel):
    """Where the store, audit log and backups live.

    Paths left unset are placed under ``data_dir``.
    """

    data_dir: Path = DEFAULT_DATA_DIR
    store_path: Path | None = None
    audit_log_path: Path | None = None
    backup_dir: Path | None = None
    fallback_copy_path: Path | None = None
    backup_keep: int = Field(default=30, ge=0)  # 0 keeps every backup

    def model_post_init(self, __context: object) -> None:
        if self.store_path is None:
            self.store_path = self.data_dir / "store.json"
        if self.audit_log_path is None:
            self.audit_log_path = self.data_dir / "audit.log"
        if self.backup_dir is None:
            self.backup_dir = self.data_dir / "backups"
        if self.fallback_copy_path is None:
            self.fallback_copy_path = self.data_dir / "clipboard.txt"


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a JSON file. Missing file means defaults.

    Raises:
        ValueError: If the file is not valid JSON or fails validation.
    """
    if path is None or not path.exists():
        return Settings()
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid settings file {path}: {e}") from e
    return Settings.model_validate(data)
