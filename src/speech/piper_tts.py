"""Piper TTS backend (local ONNX voices via piper-tts).

TTS_PIPER_MODEL is either a path to a .onnx voice or a voice name such as
en_US-lessac-medium, looked up as models/tts/<name>.onnx. Each voice needs
its .onnx.json config next to it; both files are published at
https://huggingface.co/rhasspy/piper-voices.
"""

import io
import logging
import wave
from pathlib import Path

from config import PROJECT_ROOT
from errors import ModelLoadError
from speech.base import SPEECH_SAMPLE_RATE, BaseTTS
from utils.audio import resample

log = logging.getLogger("deskwake.tts.piper")

VOICES_DIR = PROJECT_ROOT / "models" / "tts"


def resolve_voice(value: str, voices_dir: Path = VOICES_DIR) -> Path:
    """Map a TTS_PIPER_MODEL value to an existing .onnx file."""
    if not value:
        raise ModelLoadError("TTS_PIPER_MODEL is required for piper TTS mode")

    if value.endswith(".onnx") or "/" in value or "\\" in value:
        path = Path(value)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
    else:
        path = voices_dir / f"{value}.onnx"

    missing = [p for p in (path, path.with_name(path.name + ".json")) if not p.exists()]
    if missing:
        raise ModelLoadError(
            f"Piper voice files not found: {', '.join(str(p) for p in missing)}. "
            "Download the .onnx and .onnx.json from rhasspy/piper-voices."
        )
    return path


class PiperTTS(BaseTTS):
    """Synthesizes with a Piper voice and resamples to the microphone rate."""

    def __init__(self, config: dict):
        super().__init__(config)

        try:
            from piper import PiperVoice
        except ImportError as e:
            raise ImportError(
                "piper-tts is required for piper TTS mode. "
                "Install it with: pip install piper-tts"
            ) from e

        model_path = resolve_voice(config.get("tts_piper_model", ""))
        log.info("Loading Piper voice: %s", model_path)
        self._voice = PiperVoice.load(str(model_path))
        self._voice_rate = self._voice.config.sample_rate
        log.info("Piper ready (voice rate=%dHz)", self._voice_rate)

    def _synthesize(self, text: str) -> bytes:
        buf = io.BytesIO()
        with wave.open(buf, "wb") as wav_file:
            self._voice.synthesize_wav(text, wav_file)
        buf.seek(0)
        with wave.open(buf, "rb") as wav_file:
            pcm = wav_file.readframes(wav_file.getnframes())
        return resample(pcm, self._voice_rate, SPEECH_SAMPLE_RATE)
