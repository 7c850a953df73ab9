"""Build ``Note`` records from capture results.

Pure construction: no I/O happens here. Everything that can fail (device
access, file copies, network) has already happened upstream.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .constants import NoteType
from .note import AudioPayload, FilePayload, Note, WebLinkPayload

if TYPE_CHECKING:
    from .audio_recorder import RecordedArtifact
    from .file_importer import ImportedFile


class NoteFactory:
    """Turns recorder, importer and form output into notes."""

    @staticmethod
    def from_recording(artifact: RecordedArtifact) -> Note:
        return Note(
            title=artifact.title,
            type=NoteType.AUDIO,
            payload=AudioPayload(
                audio_url=str(artifact.artifact_path),
                duration=artifact.duration_seconds,
            ),
        )

    @staticmethod
    def from_imported_file(
        imported: ImportedFile,
        *,
        duration: float | None = None,
        content: str | None = None,
    ) -> Note:
        """Build a note of the imported file's classified type.

        Audio imports become audio notes (``duration`` defaults to 0.0 when
        the caller could not probe it). Text imports keep only ``content``;
        PDFs and other files keep the stored file reference.
        """
        kind = imported.classified_type
        if kind is NoteType.AUDIO:
            return Note(
                title=imported.display_title,
                type=NoteType.AUDIO,
                payload=AudioPayload(
                    audio_url=str(imported.stored_path),
                    duration=duration or 0.0,
                ),
            )
        if kind is NoteType.TEXT:
            return Note(
                title=imported.display_title,
                type=NoteType.TEXT,
                content=content,
            )
        return Note(
            title=imported.display_title,
            type=kind,
            payload=FilePayload(
                file_url=str(imported.stored_path),
                file_name=imported.original_file_name,
                file_size=imported.byte_size,
            ),
        )

    @staticmethod
    def from_text(title: str, content: str) -> Note:
        return Note(title=title, type=NoteType.TEXT, content=content)

    @staticmethod
    def from_web_link(title: str, url: str, content: str | None = None) -> Note:
        """Web-link note; empty content falls back to a placeholder line."""
        if not content:
            content = f"Web link: {url}"
        return Note(
            title=title,
            type=NoteType.WEB_LINK,
            payload=WebLinkPayload(web_url=url),
            content=content,
        )
