"""Tests for the listening session lifecycle."""

import sys
import threading
import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path so imports work
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from audio.mock_audio import MockAudioSource
from errors import DeviceUnavailable, InvalidFrameLength, ModelLoadError
from listening import ListeningSession, SessionState
from wake.mock_wake import MockWakeWord

FRAME = 512
FRAME_BYTES = FRAME * 2


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _source(tmp_path, chunks=None, **overrides):
    config = {
        "audio_mock_dir": str(tmp_path),
        "audio_mock_pace": 0,
        "audio_mock_silence": False,
        "audio_queue_chunks": 256,
    }
    config.update(overrides)
    return MockAudioSource(config, chunks=chunks if chunks is not None else [])


def _detector_factory(trigger_after=1000, frame_length=FRAME):
    created = []

    def factory():
        detector = MockWakeWord({
            "wake_mock_trigger_after": trigger_after,
            "wake_mock_frame_length": frame_length,
        })
        created.append(detector)
        return detector

    factory.created = created
    return factory


def test_new_session_is_unstarted(tmp_path):
    session = ListeningSession(_source(tmp_path), _detector_factory(), on_wake=MagicMock())
    assert session.state is SessionState.UNSTARTED
    assert not session.is_active


def test_start_acquires_device_and_detector(tmp_path):
    source = _source(tmp_path)
    factory = _detector_factory()
    session = ListeningSession(source, factory, on_wake=MagicMock())

    session.start()
    assert session.is_active
    assert source.in_use
    assert len(factory.created) == 1

    session.stop()
    assert session.state is SessionState.STOPPED
    assert not source.in_use
    assert factory.created[0].released


def test_stop_twice_releases_once(tmp_path):
    """stop() is idempotent and never double-releases the detector."""
    source = _source(tmp_path)
    detector = MagicMock(frame_length=FRAME, sample_rate=16000)
    session = ListeningSession(source, lambda: detector, on_wake=MagicMock())

    session.start()
    session.stop()
    session.stop()

    detector.release.assert_called_once()
    assert source.close_count == 1


def test_stop_before_start(tmp_path):
    source = _source(tmp_path)
    factory = _detector_factory()
    session = ListeningSession(source, factory, on_wake=MagicMock())

    session.stop()
    assert session.state is SessionState.STOPPED
    assert source.open_count == 0
    assert factory.created == []


def test_stopped_session_cannot_restart(tmp_path):
    session = ListeningSession(_source(tmp_path), _detector_factory(), on_wake=MagicMock())
    session.start()
    session.stop()
    with pytest.raises(RuntimeError):
        session.start()


def test_start_twice_raises(tmp_path):
    session = ListeningSession(_source(tmp_path), _detector_factory(), on_wake=MagicMock())
    session.start()
    try:
        with pytest.raises(RuntimeError):
            session.start()
    finally:
        session.stop()


def test_failed_detector_releases_device_once(tmp_path):
    """A detector failure after the device opened rolls the device back."""
    source = _source(tmp_path)
    factory = MagicMock(side_effect=ModelLoadError("bad model"))
    session = ListeningSession(source, factory, on_wake=MagicMock())

    with pytest.raises(ModelLoadError):
        session.start()

    assert session.state is SessionState.UNSTARTED
    assert source.open_count == 1
    assert source.close_count == 1
    assert not source.in_use


def test_failed_session_is_not_reusable(tmp_path):
    source = _source(tmp_path)
    factory = MagicMock(side_effect=[ModelLoadError("bad model"), MockWakeWord({})])
    session = ListeningSession(source, factory, on_wake=MagicMock())

    with pytest.raises(ModelLoadError):
        session.start()
    with pytest.raises(RuntimeError):
        session.start()
    assert factory.call_count == 1


def test_device_unavailable_acquires_nothing(tmp_path):
    source = _source(tmp_path, audio_mock_unavailable=True)
    factory = _detector_factory()
    session = ListeningSession(source, factory, on_wake=MagicMock())

    with pytest.raises(DeviceUnavailable):
        session.start()
    assert factory.created == []
    assert session.state is SessionState.UNSTARTED


def test_sample_rate_mismatch_rolls_back(tmp_path):
    source = _source(tmp_path)
    detector = MagicMock(frame_length=FRAME, sample_rate=8000)
    session = ListeningSession(source, lambda: detector, on_wake=MagicMock())

    with pytest.raises(ModelLoadError, match="8000Hz"):
        session.start()
    detector.release.assert_called_once()
    assert not source.in_use


def test_feed_routes_frames_and_reports_match(tmp_path):
    """feed() keeps partial frames and reports the matching keyword."""
    on_wake = MagicMock()
    session = ListeningSession(
        _source(tmp_path), _detector_factory(trigger_after=2), on_wake=on_wake,
    )
    session.start()
    try:
        assert session.feed(b"\x00" * (FRAME_BYTES + 100)) == []
        assert session.frames_processed == 1
        assert session.feed(b"\x00" * (FRAME_BYTES * 2 - 100)) == [0]
        assert session.frames_processed == 3
        on_wake.assert_called_once_with(session, 0)
    finally:
        session.stop()


def test_match_does_not_stop_session(tmp_path):
    """The session keeps running after a match until its owner stops it."""
    on_wake = MagicMock()
    session = ListeningSession(
        _source(tmp_path), _detector_factory(trigger_after=0), on_wake=on_wake,
    )
    session.start()
    session.feed(b"\x00" * FRAME_BYTES * 3)
    assert session.is_active
    assert session.frames_processed == 3
    session.stop()


def test_no_frames_after_stop_in_wake_callback(tmp_path):
    """Stopping inside on_wake prevents the rest of the chunk being processed."""
    def on_wake(session, index):
        session.stop()

    factory = _detector_factory(trigger_after=0)
    session = ListeningSession(_source(tmp_path), factory, on_wake=on_wake)
    session.start()

    session.feed(b"\x00" * FRAME_BYTES * 4)
    assert session.state is SessionState.STOPPED
    assert session.frames_processed == 1
    assert factory.created[0].released


def test_feed_after_stop_is_ignored(tmp_path):
    session = ListeningSession(_source(tmp_path), _detector_factory(), on_wake=MagicMock())
    session.start()
    session.stop()
    assert session.feed(b"\x00" * FRAME_BYTES) == []
    assert session.frames_processed == 0


def test_worker_detects_wake_from_stream(tmp_path):
    """Frame index 5 of the stream triggers exactly one wake callback."""
    chunk_sizes = [700, 300, 1500, 1000, 2048, 900, 100, 1000]  # 7548 bytes, 7 frames
    chunks = [b"\x00" * size for size in chunk_sizes]
    hits = []
    done = threading.Event()

    def on_wake(session, index):
        hits.append((session.frames_processed - 1, index))
        done.set()

    session = ListeningSession(
        _source(tmp_path, chunks=chunks), _detector_factory(trigger_after=5), on_wake=on_wake,
    )
    session.start()
    assert done.wait(timeout=2)
    assert _wait_for(lambda: session.frames_processed == 7)
    session.stop()

    assert hits == [(5, 0)]


def test_device_lost_tears_down_and_notifies(tmp_path):
    source = _source(tmp_path)
    factory = _detector_factory()
    lost = []
    session = ListeningSession(
        source, factory, on_wake=MagicMock(),
        on_lost=lambda s, e: lost.append((s, e)),
    )
    session.start()
    source.disconnect(source._active)

    assert _wait_for(lambda: session.state is SessionState.STOPPED)
    assert _wait_for(lambda: len(lost) == 1)
    assert lost[0][0] is session
    assert factory.created[0].released
    assert not source.in_use


def test_contract_violation_stops_session_and_notifies(tmp_path):
    """A detector raising InvalidFrameLength tears the session down and tells the owner."""
    source = _source(tmp_path, chunks=[b"\x00" * FRAME_BYTES])
    detector = MagicMock(frame_length=FRAME, sample_rate=16000)
    detector.process.side_effect = InvalidFrameLength("bad frame")
    on_lost = MagicMock()
    session = ListeningSession(source, lambda: detector, on_wake=MagicMock(), on_lost=on_lost)

    session.start()
    assert _wait_for(lambda: session.state is SessionState.STOPPED)
    assert _wait_for(lambda: on_lost.call_count == 1)
    detector.release.assert_called_once()
    assert on_lost.call_args.args[0] is session
    assert isinstance(on_lost.call_args.args[1], InvalidFrameLength)
    assert not source.in_use


def test_sample_rate_mismatch_releases_device_even_if_release_fails(tmp_path):
    source = _source(tmp_path)
    detector = MagicMock(frame_length=FRAME, sample_rate=8000)
    detector.release.side_effect = RuntimeError("engine already gone")
    session = ListeningSession(source, lambda: detector, on_wake=MagicMock())

    with pytest.raises(RuntimeError, match="engine already gone"):
        session.start()
    assert not source.in_use
