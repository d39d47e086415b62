"""Wake word detection backends and the factory that picks one from config.

Each call creates a new detector owning fresh resources; the caller must
release() it exactly once.
"""

from wake.base import BaseWakeWord


def get_wake(config: dict) -> BaseWakeWord:
    """Create a wake word detector based on config.

    Raises InvalidCredential or ModelLoadError if the backend can't start.
    """
    mode = config.get("wake_mode", "mock")
    if mode == "porcupine":
        from wake.porcupine_wake import PorcupineWakeWord

        return PorcupineWakeWord(config)
    elif mode == "oww":
        from wake.oww_wake import OWWWakeWord

        return OWWWakeWord(config)
    else:
        from wake.mock_wake import MockWakeWord

        return MockWakeWord(config)
