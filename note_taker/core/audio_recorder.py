"""Audio recording state machine.

Pure-Python state enum, artifact record and path allocation are importable
without Qt. The ``RecordingController`` QObject is defined lazily on first
use and requires a running QCoreApplication.

States::

    IDLE -> RECORDING -> STOPPED -> SAVED     (commit, artifact kept)
                                 -> CANCELLED (cancel, artifact deleted)

SAVED and CANCELLED are reported once, then the controller is IDLE again.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import IntEnum, auto
from pathlib import Path

from .constants import (
    DEFAULT_CHANNELS,
    DEFAULT_SAMPLE_RATE,
    RECORDING_PREFIX,
    RECORDING_SUFFIX,
    TICK_INTERVAL_MS,
)
from .errors import InvalidState, MissingArtifact

log = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Pure Python (no Qt dependency)
# ──────────────────────────────────────────────

class RecordingState(IntEnum):
    IDLE = auto()
    RECORDING = auto()
    STOPPED = auto()
    SAVED = auto()
    CANCELLED = auto()


@dataclass(frozen=True, slots=True)
class RecordedArtifact:
    """A finished recording, ready for the note factory."""

    title: str
    artifact_path: Path
    duration_seconds: float


def next_recording_path(storage_dir: Path, now: float | None = None) -> Path:
    """Allocate a collision-free recording path from the current time."""
    if now is None:
        now = time.time()
    stem = f"{RECORDING_PREFIX}{now:.3f}"
    path = storage_dir / f"{stem}{RECORDING_SUFFIX}"
    n = 1
    while path.exists():
        path = storage_dir / f"{stem}-{n}{RECORDING_SUFFIX}"
        n += 1
    return path


# ──────────────────────────────────────────────
# Qt-dependent (requires running QCoreApplication)
# ──────────────────────────────────────────────

_RecordingControllerClass = None


def _ensure_qt_classes():
    """Define Qt-dependent classes on first use."""
    global _RecordingControllerClass

    if _RecordingControllerClass is not None:
        return

    from PyQt6.QtCore import QObject, QTimer, pyqtSignal

    class RecordingController(QObject):
        """Owns one capture device and at most one live recording artifact.

        Elapsed time is measured from a monotonic clock; the 100 ms tick only
        publishes it. ``stop()`` samples the clock once and freezes that
        value, so the committed duration is the one seen at stop time.
        """

        state_changed = pyqtSignal(int)
        elapsed_changed = pyqtSignal(float)
        recording_finished = pyqtSignal(str, float)  # artifact path, duration

        def __init__(
            self,
            storage_dir: str | Path,
            device=None,
            *,
            sample_rate: int = DEFAULT_SAMPLE_RATE,
            channels: int = DEFAULT_CHANNELS,
            tick_interval_ms: int = TICK_INTERVAL_MS,
            clock=time.monotonic,
            parent=None,
        ) -> None:
            super().__init__(parent)
            if device is None:
                from .audio_devices import SoundDeviceCapture
                device = SoundDeviceCapture()
            self._storage_dir = Path(storage_dir)
            self._device = device
            self._sample_rate = sample_rate
            self._channels = channels
            self._clock = clock
            self._state = RecordingState.IDLE
            self._artifact_path: Path | None = None
            self._start_time = 0.0
            self._elapsed = 0.0
            self._timer = QTimer(self)
            self._timer.setInterval(tick_interval_ms)
            self._timer.timeout.connect(self._on_tick)

        @property
        def state(self) -> RecordingState:
            return self._state

        @property
        def is_recording(self) -> bool:
            return self._state == RecordingState.RECORDING

        @property
        def elapsed(self) -> float:
            """Seconds recorded so far, or the frozen total once stopped."""
            if self._state == RecordingState.RECORDING:
                return self._clock() - self._start_time
            return self._elapsed

        @property
        def artifact_path(self) -> Path | None:
            return self._artifact_path

        def start(self) -> None:
            """Begin capturing into a fresh artifact. Raises DeviceUnavailable."""
            if self._state != RecordingState.IDLE:
                log.debug("start() ignored in state %s", self._state.name)
                return
            self._storage_dir.mkdir(parents=True, exist_ok=True)
            path = next_recording_path(self._storage_dir)
            self._device.open(path, self._sample_rate, self._channels)

            self._artifact_path = path
            self._elapsed = 0.0
            self._start_time = self._clock()
            self._set_state(RecordingState.RECORDING)
            self._timer.start()
            self.elapsed_changed.emit(0.0)
            log.info("Recording started: %s", path.name)

        def stop(self) -> None:
            """Halt capture and freeze the elapsed counter."""
            if self._state != RecordingState.RECORDING:
                return
            self._elapsed = max(0.0, self._clock() - self._start_time)
            self._timer.stop()
            self._device.close()
            self._set_state(RecordingState.STOPPED)
            self.elapsed_changed.emit(self._elapsed)
            log.info("Recording stopped after %.1fs", self._elapsed)
            self.recording_finished.emit(str(self._artifact_path), self._elapsed)

        def commit(self, title: str) -> RecordedArtifact:
            """Hand over the stopped recording. Does not persist anything."""
            if self._state == RecordingState.RECORDING:
                raise InvalidState("stop the recording before saving it")
            if self._state != RecordingState.STOPPED or self._artifact_path is None:
                raise MissingArtifact("no recording to save")
            if not self._artifact_path.exists():
                raise MissingArtifact(f"recording file vanished: {self._artifact_path}")
            if not title or not title.strip():
                raise ValueError("recording title is required")

            artifact = RecordedArtifact(
                title=title.strip(),
                artifact_path=self._artifact_path,
                duration_seconds=self._elapsed,
            )
            # Ownership moves to the caller; the file must survive reset.
            self._artifact_path = None
            self._set_state(RecordingState.SAVED)
            self._reset()
            return artifact

        def cancel(self) -> None:
            """Stop if needed and discard the artifact. Always succeeds."""
            if self._state == RecordingState.IDLE:
                return
            if self._state == RecordingState.RECORDING:
                self._timer.stop()
                self._device.close()
            path = self._artifact_path
            if path is not None:
                try:
                    path.unlink(missing_ok=True)
                except OSError as exc:
                    log.warning("Failed to delete recording %s: %s", path, exc)
            self._artifact_path = None
            self._set_state(RecordingState.CANCELLED)
            self._reset()
            log.info("Recording cancelled")

        def release(self) -> None:
            """Tear down before the owner drops the controller."""
            self._timer.stop()
            if self._state in (RecordingState.RECORDING, RecordingState.STOPPED):
                self.cancel()
            self._device.close()

        def _on_tick(self) -> None:
            if self._state != RecordingState.RECORDING:
                return
            self.elapsed_changed.emit(self.elapsed)

        def _reset(self) -> None:
            self._elapsed = 0.0
            self._start_time = 0.0
            self._set_state(RecordingState.IDLE)
            self.elapsed_changed.emit(0.0)

        def _set_state(self, state: RecordingState) -> None:
            if state == self._state:
                return
            self._state = state
            self.state_changed.emit(int(state))

    _RecordingControllerClass = RecordingController


def get_recording_controller_class():
    """Get the RecordingController class (requires running QCoreApplication)."""
    _ensure_qt_classes()
    return _RecordingControllerClass


def create_recording_controller(storage_dir, device=None, parent=None, **kwargs):
    """Create a RecordingController (requires running QCoreApplication)."""
    cls = get_recording_controller_class()
    return cls(storage_dir, device, parent=parent, **kwargs)
