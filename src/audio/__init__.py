"""Audio abstraction layer.

Provides a unified interface for microphone capture and playback on either:
- MockAudioSource: scripted chunks / WAV files (for development)
- HardwareAudioSource: real mic/speaker via sounddevice (for production)
"""

from audio.base import BaseAudioSource
from audio.mock_audio import MockAudioSource


def get_audio_source(config: dict) -> BaseAudioSource:
    """Factory: return the appropriate audio backend based on config."""
    mode = config.get("audio_mode", "mock")

    if mode == "hardware":
        from audio.hardware_audio import HardwareAudioSource
        return HardwareAudioSource(config)
    else:
        return MockAudioSource(config)
