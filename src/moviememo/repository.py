"""Record repository boundary.

The insights engine only ever asks the store for "all records". This
module defines that contract and a reference in-memory implementation
that also reads and writes the export-file format:

    {
      "watchedEntries": [{"title": ..., "watchedDate": "2024-03-01", ...}],
      "watchlistItems": [],
      "genres": [],
      "exportDate": "2024-03-31T20:15:00",
      "version": "1.0"
    }

Change listeners let a cache owner invalidate whenever the snapshot
changes.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Protocol, runtime_checkable

from pydantic import ValidationError

from moviememo.core.models import WatchedEntry
from moviememo.exceptions import RepositoryError

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"


@runtime_checkable
class WatchedEntryRepository(Protocol):
    """Anything that can hand over the full record snapshot."""

    def get_all_watched_entries(self) -> list[WatchedEntry]:
        ...


class InMemoryRepository:
    """Reference record store kept in process memory.

    Attributes:
        _entries: Records by id, in insertion order.
        _listeners: Callbacks fired after every change.
        _extra: Export-file sections this engine does not interpret
            (watchlist items, genres), kept so a round trip loses nothing.
    """

    def __init__(self, entries: list[WatchedEntry] | None = None) -> None:
        self._entries: dict[str, WatchedEntry] = {}
        self._listeners: list[Callable[[], None]] = []
        self._extra: dict[str, Any] = {"watchlistItems": [], "genres": []}
        self._lock = threading.RLock()
        for entry in entries or []:
            self._entries[entry.id] = entry

    # =========================================================================
    # Queries
    # =========================================================================

    def get_all_watched_entries(self) -> list[WatchedEntry]:
        """Snapshot of every record (a new list each call)."""
        with self._lock:
            return list(self._entries.values())

    def get(self, entry_id: str) -> WatchedEntry | None:
        with self._lock:
            return self._entries.get(entry_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # =========================================================================
    # Mutations
    # =========================================================================

    def add(self, entry: WatchedEntry) -> None:
        with self._lock:
            self._entries[entry.id] = entry
        self._notify()

    def update(self, entry: WatchedEntry) -> bool:
        """Replace the record with the same id.

        Returns:
            True if a record was replaced.
        """
        with self._lock:
            if entry.id not in self._entries:
                return False
            self._entries[entry.id] = entry
        self._notify()
        return True

    def delete(self, entry_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop(entry_id, None)
        if removed is None:
            return False
        self._notify()
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        self._notify()

    # =========================================================================
    # Listeners
    # =========================================================================

    def add_change_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback fired after every change to the record set."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    # =========================================================================
    # Export / Import
    # =========================================================================

    def export_json(self) -> str:
        """Serialize all records in the export-file format."""
        with self._lock:
            payload = {
                "watchedEntries": [e.to_export_dict() for e in self._entries.values()],
                "watchlistItems": self._extra.get("watchlistItems", []),
                "genres": self._extra.get("genres", []),
                "exportDate": datetime.now().isoformat(timespec="seconds"),
                "version": EXPORT_VERSION,
            }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def import_json(self, content: str) -> int:
        """Replace all records with those in an export document.

        Individual invalid records are skipped with a warning. A document
        that is not valid JSON or lacks ``watchedEntries`` leaves the
        current records untouched.

        Args:
            content: Export-file JSON text.

        Returns:
            Number of records imported.

        Raises:
            RepositoryError: If the document itself is malformed.
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise RepositoryError(f"Export file is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("watchedEntries"), list):
            raise RepositoryError("Export file has no 'watchedEntries' list")

        imported: dict[str, WatchedEntry] = {}
        for index, raw in enumerate(data["watchedEntries"]):
            try:
                entry = WatchedEntry.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"Skipping watched entry #{index}: {e.error_count()} invalid fields")
                continue
            imported[entry.id] = entry

        with self._lock:
            self._entries = imported
            self._extra = {
                "watchlistItems": data.get("watchlistItems") or [],
                "genres": data.get("genres") or [],
            }
        logger.info(f"Imported {len(imported)} watched entries")
        self._notify()
        return len(imported)

    @classmethod
    def load_file(cls, path: Path) -> "InMemoryRepository":
        """Create a repository from an export file on disk.

        Raises:
            RepositoryError: If the file cannot be read or parsed.
        """
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise RepositoryError(f"Cannot read export file {path}: {e}") from e
        repository = cls()
        repository.import_json(content)
        return repository

    def save_file(self, path: Path) -> None:
        """Write the export document to disk.

        Raises:
            RepositoryError: If the file cannot be written.
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.export_json(), encoding="utf-8")
        except OSError as e:
            raise RepositoryError(f"Cannot write export file {path}: {e}") from e
