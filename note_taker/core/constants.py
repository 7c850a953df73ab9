"""Note types, extension tables, and timing constants."""

from enum import Enum


class NoteType(str, Enum):
    """Kind of a note. Fixed at creation."""
    AUDIO = "audio"
    FILE = "file"
    TEXT = "text"
    WEB_LINK = "webLink"
    PDF = "pdf"


# Import classification table, checked in order. Extensions are lowercase
# and without the leading dot.
AUDIO_EXTENSIONS = frozenset({"m4a", "mp3", "wav", "aac", "caf"})
PDF_EXTENSIONS = frozenset({"pdf"})
TEXT_EXTENSIONS = frozenset({"txt", "rtf", "md"})

CLASSIFICATION_TABLE: tuple[tuple[frozenset[str], NoteType], ...] = (
    (AUDIO_EXTENSIONS, NoteType.AUDIO),
    (PDF_EXTENSIONS, NoteType.PDF),
    (TEXT_EXTENSIONS, NoteType.TEXT),
)

# Recording defaults (44.1 kHz stereo, same as the mobile app)
DEFAULT_SAMPLE_RATE = 44100
DEFAULT_CHANNELS = 2
RECORDING_PREFIX = "recording_"
RECORDING_SUFFIX = ".wav"

# Elapsed-time / playback-position tick
TICK_INTERVAL_MS = 100

# Skip buttons on the detail view
SKIP_SECONDS = 15.0

# Web link fetch
WEB_CONTENT_LIMIT = 500
WEB_FETCH_TIMEOUT = 10.0
WEB_FETCH_FAILED = "Failed to fetch content from this URL."

# Managed storage
APP_DIR_NAME = ".note_taker"
DOCUMENTS_DIR_NAME = "documents"
STORE_FILE_NAME = "notes.json"
