"""Abstract base class for wake word detectors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from errors import InvalidFrameLength, UseAfterRelease

NO_MATCH = -1


class BaseWakeWord(ABC):
    """Common interface for wake word detection backends.

    Consumes one fixed-length frame of int16 samples per process() call and
    returns the index of the matched keyword, or NO_MATCH. Detectors are
    not reentrant and own native resources until release().
    """

    def __init__(self, frame_length: int, sample_rate: int = 16000):
        self._frame_length = frame_length
        self._sample_rate = sample_rate
        self._released = False

    @property
    def frame_length(self) -> int:
        return self._frame_length

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def released(self) -> bool:
        return self._released

    def process(self, frame: Sequence[int]) -> int:
        """Classify one frame; >= 0 is a keyword index, < 0 is no match."""
        if self._released:
            raise UseAfterRelease(f"{self.__class__.__name__}.process() after release()")
        if len(frame) != self._frame_length:
            raise InvalidFrameLength(
                f"{self.__class__.__name__} needs frames of {self._frame_length} samples, "
                f"got {len(frame)}"
            )
        return self._process(frame)

    def release(self) -> None:
        """Free native resources. Must be called exactly once."""
        if self._released:
            raise UseAfterRelease(f"{self.__class__.__name__} released twice")
        self._released = True
        self._release()

    @abstractmethod
    def _process(self, frame: Sequence[int]) -> int:
        ...

    def _release(self) -> None:
        """Free backend resources. Override if needed."""
        pass


def resolve_sensitivities(model_paths: list[str], sensitivities: list[float],
                          default: float = 0.65) -> list[float]:
    """Return one sensitivity per model, filling in the default if none given."""
    if not sensitivities:
        return [default] * len(model_paths)
    if len(sensitivities) != len(model_paths):
        raise ValueError(
            f"Got {len(sensitivities)} wake sensitivities for {len(model_paths)} models. "
            "Set one WAKE_SENSITIVITIES value per WAKE_MODEL_PATHS entry."
        )
    for value in sensitivities:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"Wake sensitivity must be in [0, 1], got {value}")
    return list(sensitivities)
