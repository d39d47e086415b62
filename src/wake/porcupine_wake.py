"""Wake word detection using Picovoice Porcupine.

Requires an access key and one .ppn keyword model per wake phrase.
Porcupine dictates both the sample rate and the frame length.
"""

import logging
from pathlib import Path

from errors import InvalidCredential, ModelLoadError
from wake.base import BaseWakeWord, resolve_sensitivities

log = logging.getLogger(__name__)


class PorcupineWakeWord(BaseWakeWord):
    """Real wake word detection via pvporcupine."""

    def __init__(self, config: dict):
        access_key = config.get("picovoice_access_key")
        if not access_key:
            raise InvalidCredential(
                "PICOVOICE_ACCESS_KEY is required for porcupine wake mode. "
                "Set it in .env or as an environment variable."
            )

        model_paths = [str(p) for p in config.get("wake_model_paths") or []]
        if not model_paths:
            raise ModelLoadError("WAKE_MODEL_PATHS must list at least one .ppn keyword file")
        missing = [p for p in model_paths if not Path(p).exists()]
        if missing:
            raise ModelLoadError(f"Wake word model file(s) not found: {', '.join(missing)}")
        sensitivities = resolve_sensitivities(model_paths, config.get("wake_sensitivities") or [])

        try:
            import pvporcupine
        except ImportError as e:
            raise ModelLoadError(
                "pvporcupine is required for porcupine wake mode. "
                "Install it with: pip install pvporcupine"
            ) from e

        activation_errors = (
            pvporcupine.PorcupineActivationError,
            pvporcupine.PorcupineActivationLimitError,
            pvporcupine.PorcupineActivationRefusedError,
            pvporcupine.PorcupineActivationThrottledError,
        )
        try:
            self._porcupine = pvporcupine.create(
                access_key=access_key,
                keyword_paths=model_paths,
                sensitivities=sensitivities,
            )
        except activation_errors as e:
            raise InvalidCredential(f"Picovoice rejected the access key: {e}") from e
        except pvporcupine.PorcupineError as e:
            raise ModelLoadError(f"Failed to load Porcupine models {model_paths}: {e}") from e

        super().__init__(
            frame_length=self._porcupine.frame_length,
            sample_rate=self._porcupine.sample_rate,
        )
        self._model_paths = model_paths
        log.info(
            "PorcupineWakeWord initialized: models=%s, sensitivities=%s, frame=%d @ %dHz",
            [Path(p).name for p in model_paths],
            sensitivities,
            self.frame_length,
            self.sample_rate,
        )

    def _process(self, frame) -> int:
        # pvporcupine packs samples through ctypes, which wants plain ints
        pcm = frame.tolist() if hasattr(frame, "tolist") else list(frame)
        index = self._porcupine.process(pcm)
        if index >= 0:
            log.info("Wake word detected: %s", Path(self._model_paths[index]).name)
        return index

    def _release(self) -> None:
        self._porcupine.delete()
        log.info("PorcupineWakeWord released.")
