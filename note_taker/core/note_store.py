"""Note record store — in-memory index with JSON persistence.

Writes go to a sibling temp file that replaces the store in one
``os.replace`` call, so a crash mid-save never leaves a truncated store.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from .constants import NoteType
from .errors import StoreWriteFailed
from .note import Note

log = logging.getLogger(__name__)

STORE_VERSION = 1


class NoteStore:
    """Holds every note; the single shared mutable resource of the app."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path is not None else None
        self._notes: list[Note] = []

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def count(self) -> int:
        return len(self._notes)

    def insert(self, note: Note) -> None:
        if self.get(note.id) is not None:
            raise ValueError(f"note {note.id} already in store")
        self._notes.append(note)
        log.debug("Inserted %s note %s", note.type.value, note.id)

    def get(self, note_id: str) -> Note | None:
        """Get note by id."""
        for n in self._notes:
            if n.id == note_id:
                return n
        return None

    def delete(self, note: Note | str) -> bool:
        """Remove a note (or note id). Returns True if found and removed."""
        note_id = note if isinstance(note, str) else note.id
        for i, n in enumerate(self._notes):
            if n.id == note_id:
                self._notes.pop(i)
                log.debug("Deleted note %s", note_id)
                return True
        return False

    def query_all(self, *, newest_first: bool = True) -> list[Note]:
        """All notes sorted by creation time."""
        return sorted(self._notes, key=lambda n: n.timestamp, reverse=newest_first)

    def query_by_type(self, note_type: NoteType, *, newest_first: bool = True) -> list[Note]:
        return [n for n in self.query_all(newest_first=newest_first) if n.type is note_type]

    def search(self, query: str) -> list[Note]:
        """Search notes by title, content, file name or URL."""
        if not query.strip():
            return self.query_all()
        return [n for n in self.query_all() if n.matches(query)]

    def to_dict(self) -> dict:
        return {
            "version": STORE_VERSION,
            "notes": [n.to_dict() for n in self._notes],
        }

    @classmethod
    def from_dict(cls, data: dict, path: str | Path | None = None) -> NoteStore:
        store = cls(path)
        for nd in data.get("notes", []):
            try:
                store._notes.append(Note.from_dict(nd))
            except (KeyError, TypeError, ValueError):
                log.warning("Skipping malformed note record: %r", nd.get("id") if isinstance(nd, dict) else nd)
        return store

    def save(self, path: str | Path | None = None) -> None:
        """Write the store to JSON. Raises StoreWriteFailed on I/O errors."""
        target = Path(path) if path is not None else self._path
        if target is None:
            raise StoreWriteFailed("note store has no backing file")
        tmp = target.with_name(target.name + ".tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)
            os.replace(tmp, target)
        except OSError as exc:
            try:
                tmp.unlink(missing_ok=True)
            except OSError:
                log.warning("Could not remove temp store file %s", tmp)
            raise StoreWriteFailed(f"failed to write {target}: {exc}") from exc
        log.debug("Saved %d notes to %s", len(self._notes), target)

    @classmethod
    def load(cls, path: str | Path) -> NoteStore:
        """Load a store from JSON; a missing file yields an empty store.

        An unreadable or corrupted file is moved aside to ``<name>.corrupt``
        and an empty store is returned, so the next save cannot clobber it.
        """
        path = Path(path)
        if not path.exists():
            return cls(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict) or not isinstance(data.get("notes", []), list):
                raise ValueError("store root must be an object with a notes list")
        except (json.JSONDecodeError, UnicodeDecodeError, OSError, ValueError) as e:
            log.warning("Failed to load note store %s: %s. Starting empty.", path, e)
            cls._move_aside(path)
            return cls(path)
        return cls.from_dict(data, path)

    @staticmethod
    def _move_aside(path: Path) -> None:
        backup = path.with_name(path.name + ".corrupt")
        try:
            os.replace(path, backup)
        except OSError as e:
            log.warning("Could not move %s aside: %s", path, e)
        else:
            log.warning("Corrupted note store kept at %s", backup)
