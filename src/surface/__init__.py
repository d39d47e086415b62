"""Interaction surfaces opened after a wake word, and their factory."""

from audio.base import BaseAudioSource
from surface.base import BaseSurface


def get_surface(config: dict, source: BaseAudioSource) -> BaseSurface:
    """Create the surface opened after a wake word, based on config."""
    mode = config.get("surface_mode", "mock")
    if mode == "voice":
        from llm import get_llm
        from speech import get_stt, get_tts
        from surface.voice_surface import VoiceSurface

        return VoiceSurface(source, get_stt(config), get_llm(config), get_tts(config), config)
    else:
        from surface.mock_surface import MockSurface

        return MockSurface(config)
