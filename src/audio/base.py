"""Abstract base class for microphone sources and the handles they open."""

from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

from errors import DeviceLost, DeviceUnavailable

log = logging.getLogger(__name__)

# Wake-word engines and Whisper both want 16kHz mono
DEFAULT_SAMPLE_RATE = 16000
DEFAULT_CHANNELS = 1
SAMPLE_WIDTH = 2  # bytes per int16 sample


@dataclass(frozen=True)
class AudioConfig:
    """Capture format for one microphone stream.

    Only 16-bit signed little-endian PCM is supported.
    """

    sample_rate: int = DEFAULT_SAMPLE_RATE
    channels: int = DEFAULT_CHANNELS
    bit_depth: int = 16
    byteorder: str = "little"
    encoding: str = "signed-integer"
    device: str | int | None = None
    chunk_ms: int = 80
    queue_chunks: int = 64

    def __post_init__(self):
        if self.bit_depth != 16:
            raise ValueError(f"Only 16-bit audio is supported, got {self.bit_depth}")
        if self.byteorder != "little":
            raise ValueError(f"Only little-endian audio is supported, got {self.byteorder!r}")
        if self.encoding != "signed-integer":
            raise ValueError(f"Only signed-integer PCM is supported, got {self.encoding!r}")
        if self.sample_rate <= 0 or self.channels <= 0:
            raise ValueError("sample_rate and channels must be positive")
        if self.chunk_ms <= 0 or self.queue_chunks <= 0:
            raise ValueError("chunk_ms and queue_chunks must be positive")

    @property
    def chunk_samples(self) -> int:
        return self.sample_rate * self.chunk_ms // 1000

    @classmethod
    def from_config(cls, config: dict) -> AudioConfig:
        return cls(
            sample_rate=config.get("audio_sample_rate", DEFAULT_SAMPLE_RATE),
            channels=config.get("audio_channels", DEFAULT_CHANNELS),
            device=config.get("audio_device"),
            chunk_ms=config.get("audio_chunk_ms", 80),
            queue_chunks=config.get("audio_queue_chunks", 64),
        )


class AudioHandle:
    """Bounded channel of PCM chunks from one open capture stream.

    The producer (device callback thread) calls put(); the consumer calls
    read(). When the queue is full the oldest chunk is dropped so a stalled
    consumer never blocks the audio callback.
    """

    def __init__(self, config: AudioConfig):
        self.config = config
        self.native = None  # backend stream object
        self._queue: queue.Queue[bytes] = queue.Queue(maxsize=config.queue_chunks)
        self._closed = threading.Event()
        self._lost: DeviceLost | None = None
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def lost(self) -> bool:
        return self._lost is not None

    def put(self, chunk: bytes) -> None:
        """Enqueue a chunk from the device, dropping the oldest if full.

        Ignored once the handle is closed or the device was lost.
        """
        if self._closed.is_set() or self._lost is not None:
            return
        while True:
            try:
                self._queue.put_nowait(bytes(chunk))
                return
            except queue.Full:
                try:
                    self._queue.get_nowait()
                    self.dropped += 1
                    log.debug("Audio queue full, dropped oldest chunk (%d total)", self.dropped)
                except queue.Empty:
                    pass

    def read(self, timeout: float | None = None) -> bytes | None:
        """Return the next chunk, or None on timeout or once closed.

        Raises DeviceLost after the device disappeared and the queued
        chunks have been drained.
        """
        if self._closed.is_set():
            return None
        if self._lost is not None:
            try:
                return self._queue.get_nowait()
            except queue.Empty:
                raise self._lost from None
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            if self._lost is not None:
                raise self._lost from None
            return None

    def drain(self) -> int:
        """Discard queued chunks (e.g. speaker echo captured during playback)."""
        count = 0
        while True:
            try:
                self._queue.get_nowait()
                count += 1
            except queue.Empty:
                return count

    def mark_lost(self, error: DeviceLost) -> None:
        if not self._closed.is_set() and self._lost is None:
            log.warning("Audio device lost: %s", error)
            self._lost = error

    def close(self) -> None:
        self._closed.set()


class BaseAudioSource(ABC):
    """Common interface for mock and hardware microphone/speaker backends.

    Audio data is raw PCM bytes (16-bit signed int16, little-endian).
    A source holds at most one open handle at a time: the device is
    exclusive.
    """

    def __init__(self, config: dict):
        self._audio_config = AudioConfig.from_config(config)
        self._lock = threading.Lock()
        self._active: AudioHandle | None = None

    @property
    def audio_config(self) -> AudioConfig:
        return self._audio_config

    @property
    def sample_rate(self) -> int:
        return self._audio_config.sample_rate

    @property
    def channels(self) -> int:
        return self._audio_config.channels

    @property
    def in_use(self) -> bool:
        return self._active is not None

    def start(self) -> AudioHandle:
        """Open the device exclusively and return a handle streaming chunks.

        Raises DeviceUnavailable if the device is missing or already held.
        """
        with self._lock:
            if self._active is not None:
                raise DeviceUnavailable(
                    f"{self.__class__.__name__}: device already held by another stream"
                )
            handle = AudioHandle(self._audio_config)
            self._open(handle)
            self._active = handle
        log.info("%s stream opened", self.__class__.__name__)
        return handle

    def stop(self, handle: AudioHandle) -> None:
        """Close the stream and release the device. Safe to call repeatedly."""
        with self._lock:
            if handle.closed:
                return
            handle.close()
            try:
                self._close(handle)
            finally:
                if self._active is handle:
                    self._active = None
        log.info("%s stream closed", self.__class__.__name__)

    @abstractmethod
    def _open(self, handle: AudioHandle) -> None:
        """Open the backend stream and start feeding handle.put()."""
        ...

    @abstractmethod
    def _close(self, handle: AudioHandle) -> None:
        """Stop the backend stream; the device must be released on return."""
        ...

    @abstractmethod
    def play(self, data: bytes) -> None:
        """Play raw PCM audio data (int16, little-endian)."""
        ...

    def close(self) -> None:
        """Release any open stream."""
        handle = self._active
        if handle is not None:
            self.stop(handle)
