"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from note_taker.core.errors import DeviceUnavailable, UnreadableArtifact


@pytest.fixture(scope="session")
def qapp():
    """Provide a QCoreApplication instance for the entire test session."""
    from PyQt6.QtCore import QCoreApplication

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCaptureDevice:
    """Writes a placeholder file on open, like a real recorder would."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.opened: list[Path] = []
        self.close_calls = 0
        self.active = False

    def open(self, path: Path, sample_rate: int, channels: int) -> None:
        if self.fail:
            raise DeviceUnavailable("no microphone")
        path.write_bytes(b"RIFF")
        self.opened.append(path)
        self.active = True

    def close(self) -> None:
        self.close_calls += 1
        self.active = False


class FakePlaybackDevice:
    """Records calls; ``durations`` maps paths to probe results."""

    def __init__(self, durations: dict | None = None, fail_start: bool = False) -> None:
        self.durations = {str(k): v for k, v in (durations or {}).items()}
        self.fail_start = fail_start
        self.calls: list[tuple] = []
        self.on_finished = None

    def probe(self, path: Path) -> float:
        if str(path) not in self.durations:
            raise UnreadableArtifact(f"missing {path}")
        return self.durations[str(path)]

    def start(self, path, position, on_finished) -> None:
        if self.fail_start:
            raise DeviceUnavailable("no output")
        self.on_finished = on_finished
        self.calls.append(("start", position))

    def pause(self) -> None:
        self.calls.append(("pause",))

    def resume(self) -> None:
        self.calls.append(("resume",))

    def seek(self, position: float) -> None:
        self.calls.append(("seek", position))

    def stop(self) -> None:
        self.on_finished = None
        self.calls.append(("stop",))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def capture_device():
    return FakeCaptureDevice()


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    path = tmp_path / "documents"
    path.mkdir()
    return path


@pytest.fixture
def make_playback_device():
    return FakePlaybackDevice


@pytest.fixture
def make_capture_device():
    return FakeCaptureDevice
