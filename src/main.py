"""deskwake - voice-activated desktop assistant."""

import functools
import logging
import logging.handlers
import signal
import sys
import threading
import time
from pathlib import Path

from config import load_config

log = logging.getLogger("deskwake")


def setup_logging(config: dict) -> None:
    """Configure root logger with console and rotating file handlers."""
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    level = getattr(logging, config["log_level"].upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    root.addHandler(console)

    log_dir = Path(config["log_dir"])
    log_dir.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / "deskwake.log",
        maxBytes=1_000_000,
        backupCount=3,
    )
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)


def check_credentials(config: dict) -> None:
    """Fail fast on missing secrets instead of on the first listening cycle."""
    if config.get("wake_mode") == "porcupine" and not config.get("picovoice_access_key"):
        raise ValueError(
            "PICOVOICE_ACCESS_KEY is required for porcupine wake mode. "
            "Set it in .env or as an environment variable."
        )


def main() -> int:
    config = load_config()
    setup_logging(config)

    from arbiter import SessionArbiter
    from audio import get_audio_source
    from surface import get_surface
    from wake import get_wake

    try:
        check_credentials(config)
        source = get_audio_source(config)
        surface = get_surface(config, source)
    except Exception:
        log.exception("Startup failed")
        return 1

    log.info(
        "Starting deskwake (audio=%s, wake=%s, surface=%s)",
        config["audio_mode"], config["wake_mode"], config["surface_mode"],
    )

    # Cleared from the signal handler
    running = threading.Event()
    running.set()

    def shutdown(signum, frame):
        log.info("Shutting down...")
        running.clear()

    signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)

    arbiter = SessionArbiter(source, functools.partial(get_wake, config), surface, config)
    try:
        arbiter.start()
        while running.is_set():
            time.sleep(0.5)
    finally:
        arbiter.shutdown()
        source.close()
        log.info("deskwake stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
