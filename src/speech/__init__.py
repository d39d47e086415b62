"""Speech backends for the voice surface.

- STT: MockSTT (scripted) / WhisperSTT (faster-whisper, local)
- TTS: MockTTS (silence) / PiperTTS (piper-tts, local ONNX voices)
"""

from speech.base import BaseSTT, BaseTTS


def get_stt(config: dict) -> BaseSTT:
    """Create the speech-to-text backend selected by stt_mode."""
    if config.get("stt_mode", "mock") == "whisper":
        from speech.whisper_stt import WhisperSTT

        return WhisperSTT(config)

    from speech.mock_stt import MockSTT

    return MockSTT(config)


def get_tts(config: dict) -> BaseTTS:
    """Create the text-to-speech backend selected by tts_mode."""
    if config.get("tts_mode", "mock") == "piper":
        from speech.piper_tts import PiperTTS

        return PiperTTS(config)

    from speech.mock_tts import MockTTS

    return MockTTS(config)
