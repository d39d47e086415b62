"""Energy-based voice activity detection for utterance capture."""

import logging
import time
from collections.abc import Iterator

import numpy as np

log = logging.getLogger(__name__)


class VoiceActivityDetector:
    """Detects end-of-speech using RMS energy of audio chunks.

    Accumulates audio from a chunk iterator and stops when silence follows
    speech for a configurable duration, when max duration is reached, or
    when nobody starts speaking within the idle timeout.
    """

    def __init__(self, config: dict):
        self._silence_threshold = config.get("vad_silence_threshold", 500)
        self._silence_duration = config.get("vad_silence_duration", 1.5)
        self._min_duration = config.get("vad_min_duration", 0.5)
        self._max_duration = config.get("vad_max_duration", 15.0)
        self._speech_chunks_required = config.get("vad_speech_chunks_required", 3)

    @staticmethod
    def rms(chunk: bytes) -> float:
        """Compute RMS energy of a PCM int16 chunk."""
        samples = np.frombuffer(chunk, dtype=np.int16)
        if len(samples) == 0:
            return 0.0
        return float(np.sqrt(np.mean(samples.astype(np.float64) ** 2)))

    def record_until_silence(self, chunks: Iterator[bytes], idle_timeout: float | None = None) -> bytes:
        """Record from a chunk iterator until the utterance is over.

        Stops when:
        - Silence (RMS below threshold) persists for silence_duration seconds
          after speech started AND at least min_duration has elapsed
        - OR max_duration is reached
        - OR idle_timeout elapses before any speech (returns b"")

        Returns:
            Concatenated PCM bytes from the recording.
        """
        collected: list[bytes] = []
        start = time.monotonic()
        silence_start: float | None = None
        speech_chunks = 0
        speech_started = self._speech_chunks_required <= 0

        for chunk in chunks:
            elapsed = time.monotonic() - start

            if not speech_started and idle_timeout is not None and elapsed >= idle_timeout:
                log.info("VAD: no speech within %.1fs", idle_timeout)
                return b""

            collected.append(chunk)

            # Enforce max duration (unconditional safety net)
            if elapsed >= self._max_duration:
                log.info("VAD: max duration reached (%.1fs)", elapsed)
                break

            energy = self.rms(chunk)

            if energy >= self._silence_threshold:
                speech_chunks += 1
                if not speech_started and speech_chunks >= self._speech_chunks_required:
                    speech_started = True
                    log.debug("VAD: speech started (%d chunks)", speech_chunks)
                silence_start = None
            elif speech_started:
                # Only allow silence-triggered stop once speech has started
                if silence_start is None:
                    silence_start = time.monotonic()
                silence_elapsed = time.monotonic() - silence_start
                past_silence = silence_elapsed >= self._silence_duration
                past_min = elapsed >= self._min_duration
                if past_silence and past_min:
                    log.info(
                        "VAD: silence detected after %.1fs (silence=%.1fs)",
                        elapsed, silence_elapsed,
                    )
                    break

        if not speech_started:
            return b""
        total = time.monotonic() - start
        log.info("VAD: recorded %.1fs (%d chunks)", total, len(collected))
        return b"".join(collected)
