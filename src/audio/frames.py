"""Reassemble arbitrarily sized PCM chunks into fixed-length sample frames."""

import numpy as np

from audio.base import SAMPLE_WIDTH

# int16, little-endian regardless of host byte order
PCM_DTYPE = np.dtype("<i2")


class FrameReassembler:
    """Slices a PCM byte stream into frames of exactly frame_length samples.

    Bytes that do not complete a frame (including half a sample from an
    odd-length chunk) are carried over to the next feed() call. Emitted
    frames are read-only int16 arrays.
    """

    def __init__(self, frame_length: int):
        if frame_length <= 0:
            raise ValueError(f"frame_length must be positive, got {frame_length}")
        self._frame_length = frame_length
        self._frame_bytes = frame_length * SAMPLE_WIDTH
        self._buffer = bytearray()

    @property
    def frame_length(self) -> int:
        return self._frame_length

    @property
    def pending_bytes(self) -> int:
        """Number of leftover bytes waiting for the next chunk."""
        return len(self._buffer)

    def feed(self, chunk: bytes) -> list[np.ndarray]:
        """Append a chunk and return every frame that is now complete."""
        self._buffer.extend(chunk)
        count = len(self._buffer) // self._frame_bytes
        if count == 0:
            return []

        usable = count * self._frame_bytes
        samples = np.frombuffer(bytes(self._buffer[:usable]), dtype=PCM_DTYPE)
        del self._buffer[:usable]

        n = self._frame_length
        return [samples[i * n:(i + 1) * n] for i in range(count)]
