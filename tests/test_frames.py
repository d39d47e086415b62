"""Tests for the frame reassembler."""

import random
import struct
import sys
from pathlib import Path

import numpy as np
import pytest

# Add src to path so imports work
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from audio.frames import FrameReassembler


def _pcm(samples):
    """Pack a list of ints as int16 little-endian bytes."""
    return struct.pack(f"<{len(samples)}h", *samples)


def _split(data, sizes):
    chunks, pos = [], 0
    for size in sizes:
        chunks.append(data[pos:pos + size])
        pos += size
    return chunks


def test_emits_frames_in_order_without_loss():
    """Concatenated frames equal the input truncated to whole frames."""
    rng = random.Random(1234)
    frame_length = 7
    for _ in range(50):
        samples = [rng.randint(-32768, 32767) for _ in range(rng.randint(0, 200))]
        data = _pcm(samples)
        sizes = []
        remaining = len(data)
        while remaining > 0:
            size = min(remaining, rng.randint(0, 40))
            sizes.append(size)
            remaining -= size

        reassembler = FrameReassembler(frame_length)
        frames = []
        for chunk in _split(data, sizes):
            frames.extend(reassembler.feed(chunk))

        whole = len(samples) - len(samples) % frame_length
        assert all(len(f) == frame_length for f in frames)
        emitted = [int(s) for f in frames for s in f]
        assert emitted == samples[:whole]
        assert reassembler.pending_bytes == len(data) - whole * 2


def test_odd_byte_chunk_splits_sample():
    """A sample split across two chunks is reassembled, not dropped."""
    reassembler = FrameReassembler(2)
    data = _pcm([1000, -2000, 3000, -4000])

    assert reassembler.feed(data[:3]) == []
    assert reassembler.pending_bytes == 3

    frames = reassembler.feed(data[3:])
    assert len(frames) == 2
    assert frames[0].tolist() == [1000, -2000]
    assert frames[1].tolist() == [3000, -4000]
    assert reassembler.pending_bytes == 0


def test_frame_only_emitted_when_complete():
    """A chunk ending mid-frame holds the partial frame back."""
    reassembler = FrameReassembler(4)
    data = _pcm(list(range(8)))

    frames = reassembler.feed(data[:12])  # 6 samples
    assert len(frames) == 1
    assert frames[0].tolist() == [0, 1, 2, 3]
    assert reassembler.pending_bytes == 4

    frames = reassembler.feed(data[12:])
    assert len(frames) == 1
    assert frames[0].tolist() == [4, 5, 6, 7]


def test_two_and_a_half_frames_then_completion():
    """3 chunks carrying 2.5 frames emit 2; a 4th chunk emits the 3rd."""
    frame_length = 512
    samples = list(range(-1280, 1280))  # 2560 samples = 5 frames
    data = _pcm(samples)
    reassembler = FrameReassembler(frame_length)

    # 2.5 frames = 1280 samples = 2560 bytes, in uneven chunks
    first = [reassembler.feed(c) for c in _split(data, [1001, 999, 560])]
    assert sum(len(f) for f in first) == 2
    assert reassembler.pending_bytes == 256 * 2

    fourth = reassembler.feed(data[2560:2560 + 256 * 2])
    assert len(fourth) == 1
    assert fourth[0].tolist() == samples[1024:1536]
    assert reassembler.pending_bytes == 0


def test_frames_are_little_endian_int16():
    reassembler = FrameReassembler(1)
    frames = reassembler.feed(b"\x01\x80")
    assert frames[0].dtype == np.dtype("<i2")
    assert frames[0][0] == -32767


def test_frames_are_read_only():
    reassembler = FrameReassembler(2)
    (frame,) = reassembler.feed(_pcm([1, 2]))
    with pytest.raises(ValueError):
        frame[0] = 5


def test_empty_chunk_is_noop():
    reassembler = FrameReassembler(4)
    assert reassembler.feed(b"") == []
    assert reassembler.pending_bytes == 0


def test_rejects_non_positive_frame_length():
    with pytest.raises(ValueError):
        FrameReassembler(0)
