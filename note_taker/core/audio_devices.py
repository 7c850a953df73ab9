"""Audio capture and playback devices backed by sounddevice + soundfile.

The controllers only talk to the small ``CaptureDevice`` / ``PlaybackDevice``
interfaces below, so tests can drive them with in-memory fakes.

PortAudio callbacks run on their own thread. Capture hands blocks to a
writer thread through a queue; playback reads from the open ``SoundFile``
under a lock so ``seek`` from the owning thread is safe.

``sounddevice`` is imported lazily: it raises ``OSError`` at import time
when the PortAudio library is missing, which is reported as
``DeviceUnavailable`` instead of breaking every importer of this module.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import soundfile as sf

from .errors import DeviceUnavailable, UnreadableArtifact

log = logging.getLogger(__name__)


def _import_sounddevice():
    try:
        import sounddevice as sd
    except OSError as exc:
        raise DeviceUnavailable(f"PortAudio is not available: {exc}") from exc
    return sd


def probe_duration(path: str | Path) -> float:
    """Return the duration of an audio file in seconds.

    Raises UnreadableArtifact if the file is missing or not decodable.
    """
    path = Path(path)
    if not path.is_file():
        raise UnreadableArtifact(f"audio file not found: {path}")
    try:
        info = sf.info(str(path))
    except (RuntimeError, OSError) as exc:  # sf.LibsndfileError is a RuntimeError
        raise UnreadableArtifact(f"cannot decode {path.name}: {exc}") from exc
    return float(info.duration)


# ──────────────────────────────────────────────
# Interfaces
# ──────────────────────────────────────────────

class CaptureDevice(Protocol):
    def open(self, path: Path, sample_rate: int, channels: int) -> None:
        """Begin writing captured audio to ``path``. Raises DeviceUnavailable."""

    def close(self) -> None:
        """Stop capture and finalize the file. Safe to call when not open."""


class PlaybackDevice(Protocol):
    def probe(self, path: Path) -> float:
        """Return duration in seconds. Raises UnreadableArtifact."""

    def start(self, path: Path, position: float, on_finished: Callable[[], None]) -> None:
        """Start output at ``position``. Raises DeviceUnavailable."""

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def seek(self, position: float) -> None: ...

    def stop(self) -> None: ...


# ──────────────────────────────────────────────
# sounddevice implementations
# ──────────────────────────────────────────────

class SoundDeviceCapture:
    """Records the default input device into a 16-bit PCM WAV file."""

    def __init__(self, device: int | str | None = None) -> None:
        self._device = device
        self._stream = None
        self._file: sf.SoundFile | None = None
        self._queue: queue.Queue = queue.Queue()
        self._writer: threading.Thread | None = None

    @property
    def active(self) -> bool:
        return self._stream is not None

    def open(self, path: Path, sample_rate: int, channels: int) -> None:
        self.close()
        sd = _import_sounddevice()
        try:
            self._stream = sd.InputStream(
                samplerate=sample_rate,
                channels=channels,
                dtype="int16",
                device=self._device,
                callback=self._on_block,
            )
            self._file = sf.SoundFile(
                str(path), mode="w", samplerate=sample_rate,
                channels=channels, subtype="PCM_16",
            )
            self._queue = queue.Queue()
            self._writer = threading.Thread(
                target=self._write_loop, daemon=True, name="audio-capture-writer",
            )
            self._writer.start()
            self._stream.start()
        except (sd.PortAudioError, RuntimeError, OSError) as exc:
            self.close()
            Path(path).unlink(missing_ok=True)
            raise DeviceUnavailable(f"cannot open input device: {exc}") from exc
        log.info("Capture started: %s (%d Hz, %d ch)", path.name, sample_rate, channels)

    def close(self) -> None:
        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            except Exception:
                log.exception("Error closing input stream")
            self._stream = None
        if self._writer is not None:
            self._queue.put(None)
            self._writer.join(timeout=3.0)
            self._writer = None
        if self._file is not None:
            self._file.close()
            self._file = None

    def _on_block(self, indata, frames, time_info, status) -> None:
        """PortAudio thread: hand the block to the writer."""
        if status:
            log.debug("Input status: %s", status)
        self._queue.put(indata.copy())

    def _write_loop(self) -> None:
        while True:
            block = self._queue.get()
            if block is None:
                return
            if self._file is not None:
                self._file.write(block)


class SoundDevicePlayback:
    """Plays a sound file through the default output device."""

    def __init__(self, device: int | str | None = None) -> None:
        self._device = device
        self._stream = None
        self._file: sf.SoundFile | None = None
        self._lock = threading.Lock()
        self._on_finished: Callable[[], None] | None = None
        self._reached_end = False

    def probe(self, path: Path) -> float:
        return probe_duration(path)

    def start(self, path: Path, position: float, on_finished: Callable[[], None]) -> None:
        self.stop()
        sd = _import_sounddevice()
        try:
            self._file = sf.SoundFile(str(path))
            self._file.seek(int(position * self._file.samplerate))
            self._reached_end = False
            self._on_finished = on_finished
            self._stream = sd.OutputStream(
                samplerate=self._file.samplerate,
                channels=self._file.channels,
                dtype="float32",
                device=self._device,
                callback=self._on_block,
                finished_callback=self._on_stream_finished,
            )
            self._stream.start()
        except (sd.PortAudioError, RuntimeError, OSError) as exc:
            self.stop()
            raise DeviceUnavailable(f"cannot open output device: {exc}") from exc

    def pause(self) -> None:
        if self._stream is not None:
            self._stream.stop()

    def resume(self) -> None:
        if self._stream is not None:
            self._stream.start()

    def seek(self, position: float) -> None:
        with self._lock:
            if self._file is not None:
                self._file.seek(int(position * self._file.samplerate))
                self._reached_end = False

    def stop(self) -> None:
        self._on_finished = None
        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            except Exception:
                log.exception("Error closing output stream")
            self._stream = None
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

    def _on_block(self, outdata, frames, time_info, status) -> None:
        """PortAudio thread: fill the output buffer from the file."""
        sd = _import_sounddevice()
        with self._lock:
            if self._file is None:
                outdata.fill(0)
                raise sd.CallbackStop
            data = self._file.read(frames, dtype="float32", always_2d=True)
        n = len(data)
        outdata[:n] = data
        if n < frames:
            outdata[n:] = 0
            self._reached_end = True
            raise sd.CallbackStop

    def _on_stream_finished(self) -> None:
        # Also fires after pause()/stop(); only natural end is reported.
        callback = self._on_finished
        if self._reached_end and callback is not None:
            callback()
