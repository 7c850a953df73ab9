"""Display helpers for list rows and detail headers."""

from __future__ import annotations

from datetime import datetime

from .constants import NoteType
from .note import Note

_SIZE_UNITS = ("KB", "MB", "GB", "TB")


def format_recording_time(seconds: float) -> str:
    """Live recording counter: ``m:ss.t`` (tenths)."""
    seconds = max(0.0, seconds)
    whole = int(seconds)
    tenths = int((seconds - whole) * 10)
    return f"{whole // 60}:{whole % 60:02d}.{tenths}"


def format_duration(seconds: float) -> str:
    """Row / player label: ``m:ss``."""
    whole = int(max(0.0, seconds))
    return f"{whole // 60}:{whole % 60:02d}"


def format_file_size(size: int) -> str:
    """Decimal (1000-based) file size, e.g. ``123 KB`` or ``1.2 MB``."""
    if size <= 0:
        return "Zero KB"
    if size < 1000:
        return "1 byte" if size == 1 else f"{size} bytes"
    value = float(size)
    for i, unit in enumerate(_SIZE_UNITS):
        value /= 1000.0
        if value < 1000.0 or i == len(_SIZE_UNITS) - 1:
            if unit == "KB":
                return f"{round(value)} KB"
            text = f"{value:.1f}".rstrip("0").rstrip(".")
            return f"{text} {unit}"
    raise AssertionError("unreachable")


def preview_text(note: Note) -> str:
    """Second line of a list row."""
    if note.type is NoteType.AUDIO:
        return "Audio recording" if note.duration else "Audio note"
    if note.type is NoteType.FILE:
        return note.file_name or "File attachment"
    if note.type is NoteType.PDF:
        return note.file_name or "PDF document"
    if note.type is NoteType.TEXT:
        return note.content or "Text note"
    return note.content or "Web link"


def default_text_title(now: datetime | None = None) -> str:
    """Title suggested for a text note left untitled."""
    now = now or datetime.now()
    return f"Note {now.strftime('%b %d, %Y at %H:%M')}"
