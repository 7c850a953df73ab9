"""Import external files into managed storage and classify them.

The copy lands in a hidden ``.part`` file first and is moved into place only
after every byte is written, so a failed import never leaves a half-copied
file under the name a note would reference.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from .constants import CLASSIFICATION_TABLE, NoteType
from .errors import AccessDenied, CopyFailed

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportedFile:
    """Result of a successful import, before it becomes a note."""

    display_title: str
    stored_path: Path
    original_file_name: str
    byte_size: int
    classified_type: NoteType


class SourceHandle:
    """Reference to an external file that needs read access claimed first.

    Subclasses wrap platform grants (sandbox bookmarks, portal handles) by
    overriding ``_acquire`` / ``_release``; the default checks plain
    filesystem permissions.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    @property
    def name(self) -> str:
        return self.path.name

    def _acquire(self) -> bool:
        return self.path.is_file() and os.access(self.path, os.R_OK)

    def _release(self) -> None:
        pass

    @contextmanager
    def access(self) -> Iterator[Path]:
        if not self._acquire():
            raise AccessDenied(f"cannot read {self.path}")
        try:
            yield self.path
        finally:
            self._release()


def classify(file_name: str) -> NoteType:
    """Map a file name to a note type by extension (case-insensitive)."""
    ext = Path(file_name).suffix.lower().lstrip(".")
    for extensions, note_type in CLASSIFICATION_TABLE:
        if ext in extensions:
            return note_type
    return NoteType.FILE


def display_title(file_name: str) -> str:
    """'Lecture_Notes.TXT' -> 'Lecture Notes'."""
    title = Path(file_name).stem.replace("_", " ").strip()
    return title or file_name


def supported_extensions() -> list[str]:
    """Extensions with a dedicated note type, sorted."""
    exts: set[str] = set()
    for extensions, _ in CLASSIFICATION_TABLE:
        exts.update(extensions)
    return sorted(exts)


def _copy_into(src: Path, dest: Path, overwrite: bool) -> None:
    if dest.exists() and not overwrite:
        raise CopyFailed(f"{dest.name} already exists in storage") from FileExistsError(str(dest))
    part = dest.with_name(f".{dest.name}.part")
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, part)
        os.replace(part, dest)
    except OSError as exc:
        try:
            part.unlink(missing_ok=True)
        except OSError:
            log.warning("Could not remove partial copy %s", part)
        raise CopyFailed(f"failed to copy {src.name}: {exc}") from exc


def import_file(
    source: str | Path | SourceHandle,
    storage_dir: str | Path,
    *,
    overwrite: bool = False,
) -> ImportedFile:
    """Copy ``source`` into ``storage_dir`` and classify it.

    Raises AccessDenied if the source cannot be read, CopyFailed if the copy
    fails or the destination exists and ``overwrite`` is false.
    """
    handle = source if isinstance(source, SourceHandle) else SourceHandle(source)
    storage_dir = Path(storage_dir)

    with handle.access() as src:
        file_name = src.name
        dest = storage_dir / file_name
        _copy_into(src, dest, overwrite)

    try:
        size = dest.stat().st_size
    except OSError as exc:
        raise CopyFailed(f"copied file unreadable: {dest}") from exc

    imported = ImportedFile(
        display_title=display_title(file_name),
        stored_path=dest,
        original_file_name=file_name,
        byte_size=size,
        classified_type=classify(file_name),
    )
    log.info("Imported %s as %s (%d bytes)", file_name, imported.classified_type.value, size)
    return imported
