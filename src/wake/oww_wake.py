"""Wake word detection using openWakeWord.

openwakeword is not required for local dev.
Expects 16kHz mono int16 PCM in 1280-sample frames (80ms).
"""

import logging
from pathlib import Path

from errors import ModelLoadError
from wake.base import NO_MATCH, BaseWakeWord, resolve_sensitivities

log = logging.getLogger(__name__)

OWW_FRAME_LENGTH = 1280


class OWWWakeWord(BaseWakeWord):
    """Real wake word detection via openWakeWord.

    A model matches when its score reaches 1 - sensitivity, so a higher
    sensitivity accepts more (as with Porcupine).
    """

    def __init__(self, config: dict):
        super().__init__(frame_length=OWW_FRAME_LENGTH, sample_rate=16000)
        import numpy as np

        self._np = np
        model_paths = [str(p) for p in config.get("wake_model_paths") or []]
        if not model_paths:
            raise ModelLoadError("WAKE_MODEL_PATHS must list at least one openWakeWord model")
        sensitivities = resolve_sensitivities(
            model_paths, config.get("wake_sensitivities") or [], default=0.5,
        )

        try:
            from openwakeword.model import Model

            self._model = Model(wakeword_models=model_paths)
        except ImportError as e:
            raise ModelLoadError(
                "openwakeword is required for oww wake mode. "
                "Install it with: pip install openwakeword"
            ) from e
        except Exception as e:
            log.exception("Failed to load openWakeWord models %s", model_paths)
            raise ModelLoadError(f"Failed to load openWakeWord models {model_paths}: {e}") from e

        # Model keys are derived from the file names
        self._names = [Path(p).stem for p in model_paths]
        self._thresholds = [1.0 - s for s in sensitivities]
        log.info(
            "OWWWakeWord initialized: models=%s, thresholds=%s",
            self._names,
            ["%.2f" % t for t in self._thresholds],
        )

    def _process(self, frame) -> int:
        audio = self._np.ascontiguousarray(frame, dtype=self._np.int16)
        scores = self._model.predict(audio)
        for index, (name, threshold) in enumerate(zip(self._names, self._thresholds)):
            score = scores.get(name, 0.0)
            if score >= threshold:
                log.info("Wake word detected: %s (score=%.3f)", name, score)
                return index
        return NO_MATCH

    def _release(self) -> None:
        self._model.reset()
        log.info("OWWWakeWord released.")
