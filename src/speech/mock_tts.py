"""Mock TTS backend for local development."""

import logging

from speech.base import SPEECH_SAMPLE_RATE, BaseTTS

log = logging.getLogger("deskwake.tts.mock")


class MockTTS(BaseTTS):
    """Speaks silence of a fixed length and keeps a transcript of what it said."""

    def __init__(self, config: dict):
        super().__init__(config)
        self._duration = config.get("tts_mock_duration", 0.5)
        self.spoken: list[str] = []

    def _synthesize(self, text: str) -> bytes:
        log.debug("MockTTS: %r (%.1fs silence)", text, self._duration)
        self.spoken.append(text)
        return b"\x00\x00" * int(SPEECH_SAMPLE_RATE * self._duration)
