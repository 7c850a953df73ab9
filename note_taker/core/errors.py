"""Exceptions raised by the capture, playback, import and storage layers."""

from __future__ import annotations


class NoteTakerError(Exception):
    """Base class for all note taker failures."""


class DeviceUnavailable(NoteTakerError):
    """The capture or playback device could not be acquired."""


class UnreadableArtifact(NoteTakerError):
    """An audio artifact is missing or cannot be decoded."""


class MissingArtifact(NoteTakerError):
    """Commit was requested but no recording artifact exists."""


class InvalidState(NoteTakerError):
    """The operation is not allowed in the controller's current state."""


class AccessDenied(NoteTakerError):
    """An external file could not be opened for reading."""


class CopyFailed(NoteTakerError):
    """Copying an imported file into managed storage failed."""


class StoreWriteFailed(NoteTakerError):
    """The note store could not be written to disk."""
