"""Note data model — a tagged union with one payload record per note type.

The ``type`` field is the discriminant: ``Note`` refuses to construct when
the payload does not match it, so a note can never carry audio fields and
file fields at the same time.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .constants import NoteType


@dataclass(frozen=True, slots=True)
class AudioPayload:
    """Recorded or imported audio."""

    audio_url: str
    duration: float  # seconds

    def __post_init__(self) -> None:
        if self.duration < 0:
            raise ValueError(f"duration must be non-negative, got {self.duration}")


@dataclass(frozen=True, slots=True)
class FilePayload:
    """A file copied into managed storage (generic file or PDF)."""

    file_url: str
    file_name: str
    file_size: int  # bytes at import time


@dataclass(frozen=True, slots=True)
class WebLinkPayload:
    """A saved web link."""

    web_url: str


Payload = AudioPayload | FilePayload | WebLinkPayload | None

_PAYLOAD_FOR_TYPE: dict[NoteType, type | None] = {
    NoteType.AUDIO: AudioPayload,
    NoteType.FILE: FilePayload,
    NoteType.PDF: FilePayload,
    NoteType.TEXT: None,
    NoteType.WEB_LINK: WebLinkPayload,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Note:
    """A single persisted note."""

    title: str
    type: NoteType
    payload: Payload = None
    content: str | None = None
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("note title is required")
        object.__setattr__(self, "type", NoteType(self.type))
        expected = _PAYLOAD_FOR_TYPE[self.type]
        if expected is None:
            if self.payload is not None:
                raise ValueError(f"{self.type.value} note must not carry a payload")
        elif not isinstance(self.payload, expected):
            raise ValueError(
                f"{self.type.value} note requires {expected.__name__}, "
                f"got {type(self.payload).__name__}"
            )

    # ── Flat accessors (None when not applicable) ──

    @property
    def audio_url(self) -> str | None:
        return self.payload.audio_url if isinstance(self.payload, AudioPayload) else None

    @property
    def duration(self) -> float | None:
        return self.payload.duration if isinstance(self.payload, AudioPayload) else None

    @property
    def file_url(self) -> str | None:
        return self.payload.file_url if isinstance(self.payload, FilePayload) else None

    @property
    def file_name(self) -> str | None:
        return self.payload.file_name if isinstance(self.payload, FilePayload) else None

    @property
    def file_size(self) -> int | None:
        return self.payload.file_size if isinstance(self.payload, FilePayload) else None

    @property
    def web_url(self) -> str | None:
        return self.payload.web_url if isinstance(self.payload, WebLinkPayload) else None

    @property
    def artifact_path(self) -> str | None:
        """Local file owned by this note, if any."""
        return self.audio_url or self.file_url

    def matches(self, query: str) -> bool:
        """Check if this note matches a search query (case-insensitive)."""
        q = query.lower()
        return (
            q in self.title.lower()
            or q in (self.content or "").lower()
            or q in (self.file_name or "").lower()
            or q in (self.web_url or "").lower()
        )

    # ── Serialization ──

    def to_dict(self) -> dict:
        data: dict = {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
        if isinstance(self.payload, AudioPayload):
            data["audio_url"] = self.payload.audio_url
            data["duration"] = self.payload.duration
        elif isinstance(self.payload, FilePayload):
            data["file_url"] = self.payload.file_url
            data["file_name"] = self.payload.file_name
            data["file_size"] = self.payload.file_size
        elif isinstance(self.payload, WebLinkPayload):
            data["web_url"] = self.payload.web_url
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Note:
        note_type = NoteType(data["type"])
        payload: Payload
        if note_type is NoteType.AUDIO:
            payload = AudioPayload(
                audio_url=data["audio_url"],
                duration=float(data.get("duration", 0.0)),
            )
        elif note_type in (NoteType.FILE, NoteType.PDF):
            payload = FilePayload(
                file_url=data["file_url"],
                file_name=data["file_name"],
                file_size=int(data.get("file_size", 0)),
            )
        elif note_type is NoteType.WEB_LINK:
            payload = WebLinkPayload(web_url=data["web_url"])
        else:
            payload = None

        return cls(
            id=data["id"],
            title=data["title"],
            type=note_type,
            payload=payload,
            content=data.get("content"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )
