"""Shared PCM helpers for speech backends and the interaction surface."""

import numpy as np

SAMPLE_WIDTH = 2  # int16


def pcm_seconds(pcm: bytes, sample_rate: int = 16000, channels: int = 1) -> float:
    """Duration of int16 PCM audio in seconds."""
    return len(pcm) / (SAMPLE_WIDTH * channels * sample_rate)


def resample(pcm: bytes, source_rate: int, target_rate: int = 16000) -> bytes:
    """Resample mono int16 PCM using linear interpolation."""
    if source_rate == target_rate or not pcm:
        return pcm
    samples = np.frombuffer(pcm, dtype=np.int16).astype(np.float32)
    target_len = int(len(samples) * target_rate / source_rate)
    source_pos = np.arange(len(samples), dtype=np.float64)
    target_pos = np.linspace(0, len(samples), target_len, endpoint=False)
    resampled = np.interp(target_pos, source_pos, samples)
    return resampled.clip(-32768, 32767).astype(np.int16).tobytes()
