"""Abstract base classes for the speech backends used by the voice surface.

Both directions speak the microphone's PCM format: 16-bit signed
little-endian, mono, 16kHz.
"""

from abc import ABC, abstractmethod

SPEECH_SAMPLE_RATE = 16000


class BaseSTT(ABC):
    """Turns one captured utterance into text.

    Empty audio never reaches the backend; whitespace in the result is
    collapsed, so "" means nothing intelligible was said.
    """

    def __init__(self, config: dict):
        self._config = config

    def transcribe(self, audio: bytes) -> str:
        if not audio:
            return ""
        return " ".join(self._transcribe(audio).split())

    @abstractmethod
    def _transcribe(self, audio: bytes) -> str:
        ...

    def close(self) -> None:
        """Clean up resources. Override if needed."""
        pass


class BaseTTS(ABC):
    """Turns reply text into PCM ready for the audio source's play()."""

    # Returned for blank text so callers always have something to play
    BLANK_SECONDS = 0.1

    def __init__(self, config: dict):
        self._config = config

    def synthesize(self, text: str) -> bytes:
        if not text or not text.strip():
            return b"\x00\x00" * int(SPEECH_SAMPLE_RATE * self.BLANK_SECONDS)
        return self._synthesize(text.strip())

    @abstractmethod
    def _synthesize(self, text: str) -> bytes:
        ...

    def close(self) -> None:
        """Clean up resources. Override if needed."""
        pass
