"""Configuration management for deskwake."""

import os
from pathlib import Path

# Project root is one level up from src/
PROJECT_ROOT = Path(__file__).parent.parent
ENV_FILE = PROJECT_ROOT / ".env"


def _load_env_file(path: Path) -> None:
    """Load KEY=VALUE lines into os.environ (existing env vars win)."""
    if not path.exists():
        return
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            key, _, value = line.partition("=")
            key, value = key.strip(), value.strip().strip("\"'")
            if key not in os.environ:
                os.environ[key] = value


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _get_list(name: str) -> list[str]:
    """Split a comma-separated env var, dropping empty entries."""
    raw = os.getenv(name, "")
    return [part.strip() for part in raw.split(",") if part.strip()]


def _get_float_list(name: str) -> list[float]:
    values = []
    for part in _get_list(name):
        try:
            values.append(float(part))
        except ValueError:
            raise ValueError(f"{name} must be comma-separated numbers, got {part!r}") from None
    return values


def load_config(env_file: Path = ENV_FILE) -> dict:
    """Load configuration from environment variables and .env file."""
    _load_env_file(env_file)

    return {
        # Logging
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_dir": os.getenv("LOG_DIR", str(PROJECT_ROOT / "logs")),

        # Audio capture/playback
        "audio_mode": os.getenv("AUDIO_MODE", "mock"),  # "mock" or "hardware"
        "audio_device": os.getenv("AUDIO_DEVICE", "Microphone"),
        "audio_sample_rate": _get_int("AUDIO_SAMPLE_RATE", 16000),
        "audio_chunk_ms": _get_int("AUDIO_CHUNK_MS", 80),
        "audio_queue_chunks": _get_int("AUDIO_QUEUE_CHUNKS", 64),
        "audio_mock_dir": os.getenv("AUDIO_MOCK_DIR", str(PROJECT_ROOT / "output" / "audio")),
        "audio_mock_input_file": os.getenv("AUDIO_MOCK_INPUT_FILE") or None,

        # Wake word
        "wake_mode": os.getenv("WAKE_MODE", "mock"),  # "mock", "porcupine" or "oww"
        "picovoice_access_key": os.getenv("PICOVOICE_ACCESS_KEY", ""),
        "wake_model_paths": _get_list("WAKE_MODEL_PATHS"),
        "wake_sensitivities": _get_float_list("WAKE_SENSITIVITIES"),
        "wake_mock_trigger_after": _get_int("WAKE_MOCK_TRIGGER_AFTER", 62),

        # Listening retry policy (bounded exponential backoff)
        "listen_max_retries": _get_int("LISTEN_MAX_RETRIES", 3),
        "listen_retry_base": _get_float("LISTEN_RETRY_BASE", 1.0),
        "listen_retry_max_delay": _get_float("LISTEN_RETRY_MAX_DELAY", 30.0),

        # Interaction surface
        "surface_mode": os.getenv("SURFACE_MODE", "mock"),  # "mock" or "voice"
        "surface_idle_timeout": _get_float("SURFACE_IDLE_TIMEOUT", 7.0),
        "surface_greeting": os.getenv("SURFACE_GREETING", "Hello! How can I help you?"),
        "surface_mock_auto_close": _get_float("SURFACE_MOCK_AUTO_CLOSE", 3.0),

        # Speech
        "stt_mode": os.getenv("STT_MODE", "mock"),  # "mock" or "whisper"
        "stt_whisper_model": os.getenv("STT_WHISPER_MODEL", "base.en"),
        "tts_mode": os.getenv("TTS_MODE", "mock"),  # "mock" or "piper"
        "tts_piper_model": os.getenv("TTS_PIPER_MODEL", "en_US-lessac-medium"),

        # Remote LLM
        "llm_mode": os.getenv("LLM_MODE", "mock"),  # "mock" or "claude"
        "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY", ""),
        "llm_model": os.getenv("LLM_MODEL", "claude-sonnet-4-5-20250929"),
        "llm_max_tokens": _get_int("LLM_MAX_TOKENS", 256),
        "llm_temperature": _get_float("LLM_TEMPERATURE", 0.8),
        "llm_max_history": _get_int("LLM_MAX_HISTORY", 10),
        "llm_history_ttl": _get_int("LLM_HISTORY_TTL", 300),
        "llm_system_prompt": os.getenv("LLM_SYSTEM_PROMPT", ""),

        # Voice activity detection (end of utterance)
        "vad_silence_threshold": _get_int("VAD_SILENCE_THRESHOLD", 500),
        "vad_silence_duration": _get_float("VAD_SILENCE_DURATION", 1.5),
        "vad_max_duration": _get_float("VAD_MAX_DURATION", 15.0),
    }
