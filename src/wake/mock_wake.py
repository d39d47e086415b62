"""Mock wake word detector for local development.

Fires once at a configurable frame index (no actual audio analysis).
Useful for testing the listening loop without a real wake word model.
"""

import logging

from wake.base import NO_MATCH, BaseWakeWord

log = logging.getLogger(__name__)


class MockWakeWord(BaseWakeWord):
    """Counter-based wake word detector for development."""

    def __init__(self, config: dict):
        super().__init__(
            frame_length=config.get("wake_mock_frame_length", 512),
            sample_rate=config.get("audio_sample_rate", 16000),
        )
        # Zero-based index of the frame that matches
        self._trigger_after = config.get("wake_mock_trigger_after", 62)
        self._keyword_index = config.get("wake_mock_keyword_index", 0)
        self._count = 0
        log.info("MockWakeWord initialized (trigger at frame %d)", self._trigger_after)

    @property
    def frames_seen(self) -> int:
        return self._count

    def _process(self, frame) -> int:
        index = self._count
        self._count += 1
        if index == self._trigger_after:
            log.info("Mock wake word triggered at frame %d", index)
            return self._keyword_index
        return NO_MATCH
