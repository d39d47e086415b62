"""Tests for the speech-to-text abstraction layer."""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

# Add src to path so imports work
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from errors import ModelLoadError
from speech import get_stt
from speech.mock_stt import MockSTT


def test_mock_stt_default_response():
    """MockSTT should return 'hello world' by default."""
    stt = MockSTT({})
    assert stt.transcribe(b"\x00\x00" * 1600) == "hello world"


def test_mock_stt_replays_scripted_responses():
    """stt_mock_responses are returned in order, then "" once exhausted."""
    stt = MockSTT({"stt_mock_responses": ["what time is it", "thanks"]})
    assert stt.transcribe(b"\x00\x00") == "what time is it"
    assert stt.transcribe(b"\x00\x00") == "thanks"
    assert stt.transcribe(b"\x00\x00") == ""


def test_mock_stt_single_response_used_once():
    stt = MockSTT({"stt_mock_response": "add milk"})
    assert stt.transcribe(b"\xff" * 10) == "add milk"
    assert stt.transcribe(b"\xff" * 10) == ""


def test_empty_audio_is_not_transcribed():
    """Empty audio short-circuits and does not consume the script."""
    stt = MockSTT({"stt_mock_responses": ["first"]})
    assert stt.transcribe(b"") == ""
    assert stt.transcribe(b"\x00\x00") == "first"


def test_whitespace_is_collapsed():
    stt = MockSTT({"stt_mock_responses": ["  what   time\n is it  ", "   "]})
    assert stt.transcribe(b"\x00\x00") == "what time is it"
    assert stt.transcribe(b"\x00\x00") == ""


def test_factory_returns_mock():
    """get_stt() should return MockSTT by default."""
    assert isinstance(get_stt({"stt_mode": "mock"}), MockSTT)
    assert isinstance(get_stt({}), MockSTT)


def test_mock_stt_close():
    """close() should not raise."""
    MockSTT({}).close()


# --- WhisperSTT ---


def _fake_faster_whisper(monkeypatch, segments=()):
    fake = MagicMock()
    fake.WhisperModel.return_value.transcribe.return_value = (iter(segments), MagicMock())
    monkeypatch.setitem(sys.modules, "faster_whisper", fake)
    return fake


def test_whisper_empty_audio_skips_model(monkeypatch):
    fake = _fake_faster_whisper(monkeypatch)

    from speech.whisper_stt import WhisperSTT

    stt = WhisperSTT({"stt_whisper_model": "tiny.en"})
    assert stt.transcribe(b"") == ""
    fake.WhisperModel.assert_called_once_with("tiny.en", device="cpu", compute_type="int8")
    fake.WhisperModel.return_value.transcribe.assert_not_called()


def test_whisper_joins_segments(monkeypatch):
    segments = [SimpleNamespace(text=" What time"), SimpleNamespace(text=" is it? ")]
    fake = _fake_faster_whisper(monkeypatch, segments)

    from speech.whisper_stt import WhisperSTT

    stt = WhisperSTT({})
    assert stt.transcribe(b"\x00\x10" * 1600) == "What time is it?"
    kwargs = fake.WhisperModel.return_value.transcribe.call_args.kwargs
    assert kwargs["language"] == "en"
    assert kwargs["vad_filter"] is True


def test_whisper_bad_model_is_model_load_error(monkeypatch):
    fake = _fake_faster_whisper(monkeypatch)
    fake.WhisperModel.side_effect = RuntimeError("Unable to open file 'model.bin'")

    from speech.whisper_stt import WhisperSTT

    with pytest.raises(ModelLoadError, match="nonexistent"):
        WhisperSTT({"stt_whisper_model": "nonexistent"})
