"""Mock STT backend: replays scripted utterances in order, ignoring the audio.

stt_mock_responses takes precedence over the single stt_mock_response.
Once the script runs out every further utterance transcribes to "".
"""

import logging

from speech.base import BaseSTT

log = logging.getLogger(__name__)


class MockSTT(BaseSTT):

    def __init__(self, config: dict):
        super().__init__(config)
        script = config.get("stt_mock_responses")
        if script is None:
            script = [config.get("stt_mock_response", "hello world")]
        self._script = list(script)

    def _transcribe(self, audio: bytes) -> str:
        text = self._script.pop(0) if self._script else ""
        log.info("Mock transcription of %d bytes: %r", len(audio), text)
        return text
