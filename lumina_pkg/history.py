"""Persistent calculation history for Lumina.

This module provides:
- Key-value storage slots (in-memory and JSON-file backed)
- A bounded, newest-first history of committed calculations
- Load-once/save-after-every-mutation persistence with corruption recovery
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator, Protocol

from .config import HISTORY_FILE, HISTORY_KEY, HISTORY_LIMIT
from .logging_config import get_logger
from .types import HistoryEntry

logger = get_logger("history")


class Storage(Protocol):
    """A string-valued key-value slot store."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage, used for tests and ``--no-history`` sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStorage:
    """Storage persisted as one JSON object of ``{key: value}`` on disk."""

    def __init__(self, path: Path | str = HISTORY_FILE):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError, RecursionError) as e:
            logger.warning(f"Failed to read storage file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} has invalid structure")
            return {}
        return data

    def get(self, key: str) -> str | None:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # Write atomically (write to temp file then rename)
            temp_file = self.path.with_suffix(".tmp")
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            temp_file.replace(self.path)
        except OSError as e:
            logger.warning(f"Failed to write storage file {self.path}: {e}")


class HistoryStore:
    """Bounded newest-first history, saved after every mutation.

    The serialized sequence lives in a single storage slot addressed by
    ``key``. It is read once, at construction; corrupt data is logged and
    replaced by an empty history.
    """

    def __init__(
        self,
        storage: Storage | None = None,
        key: str = HISTORY_KEY,
        limit: int = HISTORY_LIMIT,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key
        self.limit = limit
        self._entries: list[HistoryEntry] = self._load()

    def _load(self) -> list[HistoryEntry]:
        raw = self.storage.get(self.key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            entries = [HistoryEntry.from_dict(item) for item in data]
        except (
            json.JSONDecodeError,
            ValueError,
            TypeError,
            OverflowError,
            RecursionError,
        ) as e:
            logger.warning(f"Failed to parse history, starting empty: {e}")
            return []
        logger.debug(f"Loaded {len(entries)} history entries")
        return entries[: self.limit]

    def _save(self) -> None:
        payload = json.dumps(
            [entry.to_dict() for entry in self._entries], ensure_ascii=False
        )
        self.storage.set(self.key, payload)

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(tuple(self._entries))

    def record(self, entry: HistoryEntry) -> None:
        """Prepend an entry, dropping the oldest beyond the limit."""
        self._entries = [entry, *self._entries][: self.limit]
        self._save()

    def clear(self) -> None:
        self._entries = []
        self._save()

    def select(self, entry_id: str) -> HistoryEntry | None:
        """Look up an entry by id without changing the history."""
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None
