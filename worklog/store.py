"""Synchronous key -> string stores backing notes and category timers.

Values are JSON text. A missing key and an unparseable value both read as
empty; that is the only failure mode callers ever see.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any


class Store(ABC):
    """Key-enumerable string map with JSON conveniences."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the raw value or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Write a raw value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key if present."""

    @abstractmethod
    def keys(self) -> list[str]:
        """All keys currently held."""

    def get_json(self, key: str, default: Any = None) -> Any:
        """Parse a value as JSON, returning default when missing or corrupt."""
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return default

    def set_json(self, key: str, value: Any) -> None:
        """Serialize value as JSON and store it."""
        self.set(key, json.dumps(value))

    def snapshot(self) -> dict[str, Any]:
        """Every key decoded as JSON where possible, raw string otherwise."""
        data: dict[str, Any] = {}
        for key in self.keys():
            raw = self.get(key)
            try:
                data[key] = json.loads(raw) if raw is not None else None
            except json.JSONDecodeError:
                data[key] = raw
        return data


class MemoryStore(Store):
    """In-process store, used by tests and as a scratch backend."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore(Store):
    """Store persisted as one JSON object file, rewritten on every set.

    The whole file is read once and kept in memory; there is no conflict
    detection against other writers of the same file.
    """

    def __init__(self, path: Path) -> None:
        """Initialize store with the path to its JSON file."""
        self.path = path
        self._data: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._data is None:
            self._data = {}
            if self.path.exists():
                try:
                    with open(self.path) as f:
                        raw = json.load(f)
                except json.JSONDecodeError:
                    raw = {}
                if isinstance(raw, dict):
                    self._data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        return self._data

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._load(), f, indent=2)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._flush()

    def keys(self) -> list[str]:
        return list(self._load())
