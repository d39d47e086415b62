"""Whisper STT backend using faster-whisper (int8 on the CPU)."""

import logging

import numpy as np

from errors import ModelLoadError
from speech.base import BaseSTT
from utils.audio import pcm_seconds

log = logging.getLogger(__name__)


class WhisperSTT(BaseSTT):
    """Transcribes utterances with a local Whisper model."""

    def __init__(self, config: dict):
        super().__init__(config)

        try:
            from faster_whisper import WhisperModel
        except ImportError as e:
            raise ImportError(
                "faster-whisper is required for whisper STT mode. "
                "Install it with: pip install faster-whisper"
            ) from e

        model_name = config.get("stt_whisper_model", "base.en")
        self._language = config.get("stt_language", "en")
        log.info("Loading Whisper model: %s", model_name)
        try:
            self._model = WhisperModel(model_name, device="cpu", compute_type="int8")
        except (OSError, RuntimeError, ValueError) as e:
            raise ModelLoadError(f"Could not load Whisper model {model_name!r}: {e}") from e

    def _transcribe(self, audio: bytes) -> str:
        # int16 PCM → float32 in [-1.0, 1.0)
        samples = np.frombuffer(audio, dtype=np.int16).astype(np.float32) / 32768.0
        log.info("Transcribing %.1fs of audio with Whisper", pcm_seconds(audio))
        segments, _info = self._model.transcribe(
            samples,
            beam_size=5,
            language=self._language,
            vad_filter=True,
        )
        text = " ".join(segment.text for segment in segments)
        log.info("Whisper transcription: %r", text.strip())
        return text
