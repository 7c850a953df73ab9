"""Capture service — what each capture view calls to turn input into notes.

Every flow ends the same way: build a ``Note`` with ``NoteFactory``, insert
it into the store, save. A failed save keeps the note in the in-memory
store so ``flush()`` can retry it later.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .audio_devices import probe_duration
from .config import ConfigManager
from .constants import NoteType
from .errors import UnreadableArtifact
from .file_importer import ImportedFile, SourceHandle, import_file
from .formatting import default_text_title
from .note import Note
from .note_factory import NoteFactory
from .note_store import NoteStore
from .web_link import fetch_page_text, normalize_url, title_from_url

log = logging.getLogger(__name__)


class NoteService:
    """Routes capture results into the note store."""

    def __init__(self, store: NoteStore, documents_dir: str | Path, config: ConfigManager | None = None) -> None:
        self._store = store
        self._documents_dir = Path(documents_dir)
        self._config = config

    @classmethod
    def from_config(cls, config: ConfigManager) -> NoteService:
        store = NoteStore.load(config.store_path)
        return cls(store, config.documents_dir, config)

    @property
    def store(self) -> NoteStore:
        return self._store

    @property
    def documents_dir(self) -> Path:
        return self._documents_dir

    def _setting(self, key: str, default):
        if self._config is None:
            return default
        return self._config.get(key, default)

    # ── Browse ──

    def notes(self, note_type: NoteType | None = None) -> list[Note]:
        newest_first = self._setting("library.sort_order", "desc") != "asc"
        if note_type is None:
            return self._store.query_all(newest_first=newest_first)
        return self._store.query_by_type(note_type, newest_first=newest_first)

    def search(self, query: str) -> list[Note]:
        return self._store.search(query)

    # ── Capture flows ──

    def save_recording(self, recorder, title: str) -> Note:
        """Commit a stopped RecordingController and persist the audio note."""
        artifact = recorder.commit(title)
        return self._persist(NoteFactory.from_recording(artifact))

    def import_file(self, source: str | Path | SourceHandle) -> ImportedFile:
        """Copy and classify a file; call ``save_import`` to keep it."""
        overwrite = bool(self._setting("import.overwrite", False))
        return import_file(source, self._documents_dir, overwrite=overwrite)

    def save_import(self, imported: ImportedFile) -> Note:
        duration = None
        content = None
        if imported.classified_type is NoteType.AUDIO:
            try:
                duration = probe_duration(imported.stored_path)
            except UnreadableArtifact as exc:
                log.warning("Could not read duration of %s: %s", imported.original_file_name, exc)
        elif imported.classified_type is NoteType.TEXT:
            content = imported.stored_path.read_text(encoding="utf-8", errors="replace")
            # The text now lives in the note; nothing references the copy.
            self._remove_artifact(imported.stored_path)
        return self._persist(
            NoteFactory.from_imported_file(imported, duration=duration, content=content)
        )

    def discard_import(self, imported: ImportedFile) -> None:
        """Drop an import the user did not save."""
        self._remove_artifact(imported.stored_path)

    def add_text(self, title: str, content: str) -> Note:
        if not title or not title.strip():
            title = default_text_title()
        return self._persist(NoteFactory.from_text(title, content))

    def add_web_link(
        self,
        url: str,
        title: str | None = None,
        content: str | None = None,
        *,
        fetch: bool = False,
    ) -> Note:
        url = normalize_url(url)
        if not title:
            title = title_from_url(url) or url
        if fetch and not content:
            content = fetch_page_text(
                url,
                limit=int(self._setting("web.content_limit", 500)),
                timeout=float(self._setting("web.timeout_seconds", 10.0)),
            )
        return self._persist(NoteFactory.from_web_link(title, url, content))

    # ── Delete ──

    def delete(self, note: Note | str, *, remove_artifact: bool = True) -> bool:
        """Delete a note (and by default its stored file)."""
        target = self._store.get(note) if isinstance(note, str) else note
        if target is None or not self._store.delete(target):
            return False
        self._store.save()
        if remove_artifact and target.artifact_path:
            self._remove_artifact(Path(target.artifact_path))
        log.info("Deleted %s note %s", target.type.value, target.id)
        return True

    def flush(self) -> None:
        """Retry persisting the in-memory store."""
        self._store.save()

    def _persist(self, note: Note) -> Note:
        self._store.insert(note)
        self._store.save()
        log.info("Saved %s note %r", note.type.value, note.title)
        return note

    def _remove_artifact(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            log.warning("Failed to delete %s: %s", path, exc)
