"""Mock audio backend for local development and tests.

Streams scripted chunks (from a WAV file or passed in directly), optionally
followed by paced silence, and writes played audio to WAV files in an
output directory. Like a real device it can only be opened once at a time.
"""

from __future__ import annotations

import logging
import threading
import time
import wave
from pathlib import Path

from audio.base import AudioHandle, BaseAudioSource
from errors import DeviceLost, DeviceUnavailable

log = logging.getLogger(__name__)


class MockAudioSource(BaseAudioSource):
    """File-based audio backend for development without hardware."""

    def __init__(self, config: dict, chunks: list[bytes] | None = None):
        super().__init__(config)
        self._output_dir = Path(config.get("audio_mock_dir", "output/audio"))
        self._output_dir.mkdir(parents=True, exist_ok=True)
        self._mock_input_file = config.get("audio_mock_input_file")
        # Seconds between chunks; 0 pushes the script as fast as possible
        self._pace = config.get("audio_mock_pace", self.audio_config.chunk_ms / 1000)
        self._silence = config.get("audio_mock_silence", True)
        self._unavailable = config.get("audio_mock_unavailable", False)
        self._script = list(chunks) if chunks is not None else None
        self._producers: dict[int, threading.Thread] = {}
        self.open_count = 0
        self.close_count = 0
        self.played: list[bytes] = []

    def _chunks(self) -> list[bytes]:
        if self._script is not None:
            return self._script
        if self._mock_input_file:
            path = Path(self._mock_input_file)
            if path.exists():
                log.info("Mock stream from %s", path)
                pcm = _read_wav(path)
                size = self.audio_config.chunk_samples * 2
                return [pcm[i:i + size] for i in range(0, len(pcm), size)]
            log.warning("Mock input file not found: %s, streaming silence", path)
        return []

    def _open(self, handle: AudioHandle) -> None:
        if self._unavailable:
            raise DeviceUnavailable("Mock audio device configured as unavailable")
        self.open_count += 1
        producer = threading.Thread(
            target=self._produce, args=(handle,), name="mock-audio", daemon=True,
        )
        self._producers[id(handle)] = producer
        producer.start()

    def _produce(self, handle: AudioHandle) -> None:
        for chunk in self._chunks():
            if handle.closed:
                return
            handle.put(chunk)
            if self._pace:
                time.sleep(self._pace)
        if not self._silence:
            return
        silence = b"\x00\x00" * self.audio_config.chunk_samples
        # Never spin: silence is always paced at real time
        interval = self._pace or self.audio_config.chunk_ms / 1000
        while not handle.closed:
            handle.put(silence)
            time.sleep(interval)

    def _close(self, handle: AudioHandle) -> None:
        self.close_count += 1
        producer = self._producers.pop(id(handle), None)
        if producer is not None and producer is not threading.current_thread():
            producer.join(timeout=2)

    def disconnect(self, handle: AudioHandle) -> None:
        """Simulate the device being unplugged while the stream is open."""
        handle.mark_lost(DeviceLost("Mock audio device disconnected"))

    def play(self, data: bytes) -> None:
        """Write PCM data to latest.wav in the output directory."""
        self.played.append(data)
        output_path = self._output_dir / "latest.wav"
        _write_wav(output_path, data, self.sample_rate, self.channels)
        log.info("Mock playback saved to %s", output_path)


def _read_wav(path: Path) -> bytes:
    """Read a WAV file and return raw PCM bytes."""
    with wave.open(str(path), "rb") as wf:
        return wf.readframes(wf.getnframes())


def _write_wav(path: Path, data: bytes, sample_rate: int, channels: int) -> None:
    """Write raw PCM bytes to a WAV file (16-bit int16)."""
    sample_width = 2  # 16-bit
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(data)
