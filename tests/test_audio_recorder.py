"""Tests for the recording state machine with a fake device and clock."""

from __future__ import annotations

from pathlib import Path

import pytest

from note_taker.core.audio_recorder import (
    RecordedArtifact,
    RecordingState,
    create_recording_controller,
    next_recording_path,
)
from note_taker.core.errors import DeviceUnavailable, InvalidState, MissingArtifact


@pytest.fixture
def recorder(qapp, storage_dir, capture_device, clock):
    rec = create_recording_controller(storage_dir, capture_device, clock=clock)
    yield rec
    rec.release()


# ── Path allocation ────────────────────────────────────────


class TestNextRecordingPath:
    def test_timestamp_name(self, tmp_path: Path):
        path = next_recording_path(tmp_path, now=1700000000.25)
        assert path.name == "recording_1700000000.250.wav"
        assert path.parent == tmp_path

    def test_collision_gets_suffix(self, tmp_path: Path):
        first = next_recording_path(tmp_path, now=5.0)
        first.write_bytes(b"")
        second = next_recording_path(tmp_path, now=5.0)
        assert second != first
        assert second.name == "recording_5.000-1.wav"


# ── RecordingController ───────────────────────────────────


class TestRecordingController:
    def test_initial_state(self, recorder):
        assert recorder.state == RecordingState.IDLE
        assert not recorder.is_recording
        assert recorder.elapsed == 0.0
        assert recorder.artifact_path is None

    def test_start_allocates_artifact(self, recorder, capture_device, storage_dir):
        recorder.start()
        assert recorder.is_recording
        assert recorder.artifact_path is not None
        assert recorder.artifact_path.parent == storage_dir
        assert capture_device.opened == [recorder.artifact_path]

    def test_start_while_recording_ignored(self, recorder, capture_device):
        recorder.start()
        first = recorder.artifact_path
        recorder.start()
        assert len(capture_device.opened) == 1
        assert recorder.artifact_path == first

    def test_start_device_unavailable(self, qapp, storage_dir, clock, make_capture_device):
        rec = create_recording_controller(storage_dir, make_capture_device(fail=True), clock=clock)
        with pytest.raises(DeviceUnavailable):
            rec.start()
        assert rec.state == RecordingState.IDLE
        assert rec.artifact_path is None
        assert list(storage_dir.iterdir()) == []

    def test_elapsed_tracks_clock(self, recorder, clock):
        recorder.start()
        clock.advance(1.5)
        assert recorder.elapsed == pytest.approx(1.5)

    def test_tick_emits_elapsed(self, recorder, clock):
        seen = []
        recorder.elapsed_changed.connect(seen.append)
        recorder.start()
        for _ in range(3):
            clock.advance(0.1)
            recorder._on_tick()
        assert seen[-1] == pytest.approx(0.3)
        assert seen == sorted(seen)

    def test_stop_freezes_duration(self, recorder, clock):
        recorder.start()
        clock.advance(2.3)
        recorder.stop()
        clock.advance(5.0)
        assert recorder.state == RecordingState.STOPPED
        assert recorder.elapsed == pytest.approx(2.3)

    def test_stop_when_idle_is_noop(self, recorder, capture_device):
        recorder.stop()
        assert recorder.state == RecordingState.IDLE
        assert capture_device.close_calls == 0

    def test_stop_twice_is_noop(self, recorder, capture_device, clock):
        recorder.start()
        clock.advance(1.0)
        recorder.stop()
        clock.advance(1.0)
        recorder.stop()
        assert capture_device.close_calls == 1
        assert recorder.elapsed == pytest.approx(1.0)

    def test_recording_finished_signal(self, recorder, clock):
        finished = []
        recorder.recording_finished.connect(lambda p, d: finished.append((p, d)))
        recorder.start()
        clock.advance(0.7)
        recorder.stop()
        assert len(finished) == 1
        assert finished[0][0] == str(recorder.artifact_path)
        assert finished[0][1] == pytest.approx(0.7)

    def test_commit_returns_artifact(self, recorder, clock):
        recorder.start()
        clock.advance(2.3)
        recorder.stop()
        path = recorder.artifact_path
        clock.advance(10.0)  # time spent typing a title does not count

        artifact = recorder.commit("X")

        assert isinstance(artifact, RecordedArtifact)
        assert artifact.title == "X"
        assert artifact.artifact_path == path
        assert artifact.duration_seconds == pytest.approx(2.3, abs=0.1)
        assert path.exists()
        assert recorder.state == RecordingState.IDLE
        assert recorder.artifact_path is None

    def test_commit_without_recording(self, recorder):
        with pytest.raises(MissingArtifact):
            recorder.commit("Nothing")

    def test_commit_while_recording(self, recorder):
        recorder.start()
        with pytest.raises(InvalidState):
            recorder.commit("Too early")
        assert recorder.is_recording

    def test_commit_missing_file(self, recorder):
        recorder.start()
        recorder.stop()
        recorder.artifact_path.unlink()
        with pytest.raises(MissingArtifact):
            recorder.commit("Gone")

    def test_commit_requires_title(self, recorder):
        recorder.start()
        recorder.stop()
        with pytest.raises(ValueError):
            recorder.commit("   ")
        assert recorder.state == RecordingState.STOPPED

    def test_cancel_while_recording_removes_file(self, recorder, storage_dir, capture_device):
        recorder.start()
        recorder.cancel()
        assert recorder.state == RecordingState.IDLE
        assert recorder.elapsed == 0.0
        assert list(storage_dir.iterdir()) == []
        assert not capture_device.active

    def test_cancel_after_stop_removes_file(self, recorder, storage_dir, clock):
        recorder.start()
        clock.advance(1.0)
        recorder.stop()
        recorder.cancel()
        assert list(storage_dir.iterdir()) == []
        assert recorder.state == RecordingState.IDLE

    def test_cancel_when_idle_is_noop(self, recorder):
        recorder.cancel()
        assert recorder.state == RecordingState.IDLE

    def test_cancel_delete_failure_is_swallowed(self, recorder, monkeypatch):
        recorder.start()

        def boom(self, missing_ok=False):
            raise PermissionError("locked")

        monkeypatch.setattr(Path, "unlink", boom)
        recorder.cancel()  # Should not raise
        assert recorder.state == RecordingState.IDLE

    def test_state_signal_sequence(self, recorder, clock):
        states = []
        recorder.state_changed.connect(states.append)
        recorder.start()
        recorder.stop()
        recorder.commit("Seq")
        assert states == [
            RecordingState.RECORDING,
            RecordingState.STOPPED,
            RecordingState.SAVED,
            RecordingState.IDLE,
        ]

    def test_cancel_signal_sequence(self, recorder):
        states = []
        recorder.start()
        recorder.state_changed.connect(states.append)
        recorder.cancel()
        assert states == [RecordingState.CANCELLED, RecordingState.IDLE]

    def test_restart_after_commit(self, recorder, capture_device, clock):
        recorder.start()
        clock.advance(0.5)
        recorder.stop()
        recorder.commit("One")
        clock.advance(0.01)
        recorder.start()
        assert recorder.is_recording
        assert len(capture_device.opened) == 2
        assert capture_device.opened[0] != capture_device.opened[1]

    def test_release_cancels_and_stops_timer(self, recorder, storage_dir):
        recorder.start()
        recorder.release()
        assert recorder.state == RecordingState.IDLE
        assert not recorder._timer.isActive()
        assert list(storage_dir.iterdir()) == []
