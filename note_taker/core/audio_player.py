"""Audio playback state machine for recorded or imported audio notes.

States::

    IDLE -> READY -> PLAYING <-> PAUSED
                       |
                       v
                    FINISHED -> READY (position 0)

The ``PlaybackController`` QObject is defined lazily and requires a running
QCoreApplication.
"""

from __future__ import annotations

import logging
import time
from enum import IntEnum, auto
from pathlib import Path

from .constants import SKIP_SECONDS, TICK_INTERVAL_MS

log = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Pure Python (no Qt dependency)
# ──────────────────────────────────────────────

class PlaybackState(IntEnum):
    IDLE = auto()
    READY = auto()
    PLAYING = auto()
    PAUSED = auto()
    FINISHED = auto()


def clamp_position(position: float, duration: float) -> float:
    """Clamp a seek target into [0, duration]."""
    return max(0.0, min(float(duration), float(position)))


# ──────────────────────────────────────────────
# Qt-dependent (requires running QCoreApplication)
# ──────────────────────────────────────────────

_PlaybackControllerClass = None


def _ensure_qt_classes():
    """Define Qt-dependent classes on first use."""
    global _PlaybackControllerClass

    if _PlaybackControllerClass is not None:
        return

    from PyQt6.QtCore import QObject, QTimer, pyqtSignal

    class PlaybackController(QObject):
        """Plays one loaded artifact and publishes its position.

        The output device may report natural completion from its own thread;
        that report is re-emitted through ``_device_finished`` so the state
        change runs on the thread that owns this object. Each device start is
        tagged with a generation number so a late report from an earlier start
        is dropped.
        """

        state_changed = pyqtSignal(int)
        position_changed = pyqtSignal(float, float)  # position, duration
        playback_finished = pyqtSignal()
        _device_finished = pyqtSignal(int)  # device start generation

        def __init__(
            self,
            device=None,
            *,
            tick_interval_ms: int = TICK_INTERVAL_MS,
            skip_seconds: float = SKIP_SECONDS,
            clock=time.monotonic,
            parent=None,
        ) -> None:
            super().__init__(parent)
            if device is None:
                from .audio_devices import SoundDevicePlayback
                device = SoundDevicePlayback()
            self._device = device
            self._skip_seconds = skip_seconds
            self._clock = clock
            self._state = PlaybackState.IDLE
            self._path: Path | None = None
            self._duration = 0.0
            self._position = 0.0
            self._anchor_time = 0.0
            self._anchor_position = 0.0
            self._device_active = False
            self._generation = 0
            self._timer = QTimer(self)
            self._timer.setInterval(tick_interval_ms)
            self._timer.timeout.connect(self._on_tick)
            self._device_finished.connect(self._on_device_finished)

        @property
        def state(self) -> PlaybackState:
            return self._state

        @property
        def is_loaded(self) -> bool:
            return self._state != PlaybackState.IDLE

        @property
        def is_playing(self) -> bool:
            return self._state == PlaybackState.PLAYING

        @property
        def artifact_path(self) -> Path | None:
            return self._path

        @property
        def duration(self) -> float:
            return self._duration

        @property
        def position(self) -> float:
            if self._state == PlaybackState.PLAYING:
                elapsed = self._clock() - self._anchor_time
                return clamp_position(self._anchor_position + elapsed, self._duration)
            return self._position

        def load(self, artifact_path: str | Path) -> float:
            """Load an artifact and enter READY. Raises UnreadableArtifact.

            Returns the artifact duration in seconds.
            """
            self.release()
            path = Path(artifact_path)
            duration = self._device.probe(path)

            self._path = path
            self._duration = max(0.0, float(duration))
            self._position = 0.0
            self._set_state(PlaybackState.READY)
            self.position_changed.emit(0.0, self._duration)
            log.info("Loaded %s (%.1fs)", path.name, self._duration)
            return self._duration

        def play(self) -> None:
            """Start or resume playback. Raises DeviceUnavailable."""
            if self._state not in (PlaybackState.READY, PlaybackState.PAUSED):
                return
            if self._position >= self._duration:
                self._position = 0.0
                if self._device_active:
                    self._device.seek(0.0)

            if self._device_active:
                self._device.resume()
            else:
                self._generation += 1
                generation = self._generation
                self._device.start(
                    self._path, self._position, lambda: self._device_finished.emit(generation)
                )
                self._device_active = True

            self._anchor_time = self._clock()
            self._anchor_position = self._position
            self._set_state(PlaybackState.PLAYING)
            self._timer.start()

        def pause(self) -> None:
            if self._state != PlaybackState.PLAYING:
                return
            self._position = self.position
            self._timer.stop()
            self._device.pause()
            self._set_state(PlaybackState.PAUSED)
            self.position_changed.emit(self._position, self._duration)

        def toggle(self) -> None:
            if self._state == PlaybackState.PLAYING:
                self.pause()
            else:
                self.play()

        def seek(self, to_seconds: float) -> None:
            """Move to ``to_seconds`` clamped into [0, duration]."""
            if self._state == PlaybackState.IDLE:
                return
            target = clamp_position(to_seconds, self._duration)
            self._position = target
            if self._device_active:
                self._device.seek(target)
            if self._state == PlaybackState.PLAYING:
                self._anchor_time = self._clock()
                self._anchor_position = target
            self.position_changed.emit(target, self._duration)

        def seek_relative(self, delta_seconds: float) -> None:
            self.seek(self.position + delta_seconds)

        def skip_forward(self) -> None:
            self.seek_relative(self._skip_seconds)

        def skip_backward(self) -> None:
            self.seek_relative(-self._skip_seconds)

        def release(self) -> None:
            """Stop output, halt the tick and unload."""
            self._timer.stop()
            self._stop_device()
            self._path = None
            self._duration = 0.0
            self._position = 0.0
            self._set_state(PlaybackState.IDLE)

        def _on_tick(self) -> None:
            if self._state != PlaybackState.PLAYING:
                return
            position = self.position
            if position >= self._duration:
                self._finish()
                return
            self.position_changed.emit(position, self._duration)

        def _on_device_finished(self, generation: int) -> None:
            # Completions queued from an earlier start are stale.
            if generation != self._generation:
                return
            if self._state == PlaybackState.PLAYING:
                self._finish()

        def _finish(self) -> None:
            self._timer.stop()
            self._stop_device()
            self._position = self._duration
            self.position_changed.emit(self._duration, self._duration)
            self._set_state(PlaybackState.FINISHED)
            self.playback_finished.emit()
            # Stay loaded; rewind so the next play() starts over.
            self._position = 0.0
            self._set_state(PlaybackState.READY)
            self.position_changed.emit(0.0, self._duration)
            log.debug("Playback finished: %s", self._path)

        def _stop_device(self) -> None:
            if self._device_active:
                self._device.stop()
                self._device_active = False

        def _set_state(self, state: PlaybackState) -> None:
            if state == self._state:
                return
            self._state = state
            self.state_changed.emit(int(state))

    _PlaybackControllerClass = PlaybackController


def get_playback_controller_class():
    """Get the PlaybackController class (requires running QCoreApplication)."""
    _ensure_qt_classes()
    return _PlaybackControllerClass


def create_playback_controller(device=None, parent=None, **kwargs):
    """Create a PlaybackController (requires running QCoreApplication)."""
    cls = get_playback_controller_class()
    return cls(device, parent=parent, **kwargs)
