"""
Key-value persistence for project documents.

The engine only ever hands a store serialized text under a key; how the
text is kept is up to the implementation:

- MemoryStore: a dict, for tests and embedding.
- JsonFileStore: one ``<key>.json`` file per key in a directory, written
  atomically.

BackupRing keeps a bounded list of ``{timestamp, data}`` snapshots under a
separate key of any store.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from .exceptions import StoreError

logger = logging.getLogger(__name__)

DEFAULT_MAX_BACKUPS = 10

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class DocumentStore(Protocol):
    """Anything that can load, save and remove text by key."""

    def load(self, key: str) -> str | None:
        """Return the stored text, or None when the key is absent."""
        ...

    def save(self, key: str, text: str) -> bool:
        """Store *text* under *key*; False when the write failed."""
        ...

    def remove(self, key: str) -> bool:
        """Delete *key*; False when it did not exist."""
        ...


class MemoryStore:
    """In-memory store."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> str | None:
        return self._data.get(key)

    def save(self, key: str, text: str) -> bool:
        self._data[key] = text
        return True

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore:
    """
    Store each key as ``<directory>/<key>.json``.

    Writes go to a temp file in the same directory which then replaces
    the target, so a crash never leaves a half-written document behind.

    Example:
        >>> store = JsonFileStore(Path(".planboard"))
        >>> store.save("ganttProject", '{"version": 11}')
        True
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        """
        File path backing *key*.

        Raises:
            StoreError: If the key contains path separators or other
                characters not allowed in a file name
        """
        if not _KEY_PATTERN.match(key) or key in (".", ".."):
            raise StoreError(key, f"Invalid store key: {key!r}")
        return self.directory / f"{key}.json"

    def load(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreError(key, f"Failed to read {path}: {e}", path=str(path)) from e

    def save(self, key: str, text: str) -> bool:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=self.directory, prefix=f".{key}_", suffix=".json.tmp"
            )
        except OSError as e:
            logger.error("Failed to prepare write of %s: %s", path, e)
            return False

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(temp_path, path)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            return False
        return True

    def remove(self, key: str) -> bool:
        path = self.path_for(key)
        if not path.exists():
            return False
        try:
            path.unlink()
        except OSError as e:
            raise StoreError(key, f"Failed to remove {path}: {e}", path=str(path)) from e
        return True


@dataclass(frozen=True)
class Backup:
    timestamp: str
    data: str

    def to_dict(self) -> dict[str, str]:
        return {"timestamp": self.timestamp, "data": self.data}


class BackupRing:
    """
    Bounded list of document snapshots, oldest first.

    Used for disaster recovery only; nothing in loading or migration reads
    from it.
    """

    def __init__(self, store: DocumentStore, key: str, max_backups: int = DEFAULT_MAX_BACKUPS) -> None:
        if max_backups < 1:
            raise ValueError("max_backups must be at least 1")
        self.store = store
        self.key = key
        self.max_backups = max_backups

    def list(self) -> list[Backup]:
        """All snapshots; an unreadable ring is reported as empty."""
        text = self.store.load(self.key)
        if not text:
            return []
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error("Backup ring %s is corrupt: %s", self.key, e)
            return []
        if not isinstance(raw, list):
            logger.error("Backup ring %s is not a list", self.key)
            return []
        return [
            Backup(timestamp=str(b["timestamp"]), data=str(b["data"]))
            for b in raw
            if isinstance(b, dict) and "timestamp" in b and "data" in b
        ]

    def create(self, text: str, now: datetime | None = None) -> Backup | None:
        """Append a snapshot, dropping the oldest beyond ``max_backups``."""
        stamp = (now or datetime.now(timezone.utc)).isoformat()
        backup = Backup(timestamp=stamp, data=text)
        backups = [*self.list(), backup][-self.max_backups :]
        if not self._write(backups):
            return None
        return backup

    def restore(self, timestamp: str) -> str | None:
        """Serialized document stored at *timestamp*, if any."""
        return next((b.data for b in self.list() if b.timestamp == timestamp), None)

    def latest(self) -> Backup | None:
        backups = self.list()
        return backups[-1] if backups else None

    def clear(self) -> bool:
        return self.store.remove(self.key)

    def _write(self, backups: list[Backup]) -> bool:
        ok = self.store.save(self.key, json.dumps([b.to_dict() for b in backups]))
        if not ok:
            logger.error("Failed to write backup ring %s", self.key)
        return ok
