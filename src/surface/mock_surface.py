"""Mock interaction surface for local development.

Logs the interaction and closes itself after a configurable delay, or
stays open until finish() is called when auto-close is disabled.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from surface.base import BaseSurface

log = logging.getLogger(__name__)


class MockSurface(BaseSurface):
    """Counts opens and reported failures; no audio involved."""

    def __init__(self, config: dict):
        # None or <= 0 disables auto-close
        self._auto_close = config.get("surface_mock_auto_close", 3.0)
        self._lock = threading.Lock()
        self._on_closed: Callable[[], None] | None = None
        self._timer: threading.Timer | None = None
        self.open_count = 0
        self.failures: list[Exception] = []

    @property
    def is_open(self) -> bool:
        return self._on_closed is not None

    def open(self, on_closed: Callable[[], None]) -> None:
        with self._lock:
            if self._on_closed is not None:
                raise RuntimeError("MockSurface is already open")
            self._on_closed = on_closed
            self.open_count += 1
            if self._auto_close and self._auto_close > 0:
                self._timer = threading.Timer(self._auto_close, self.finish)
                self._timer.daemon = True
                self._timer.start()
        log.info("Mock interaction opened (#%d)", self.open_count)

    def finish(self) -> None:
        """End the current interaction and notify the owner."""
        with self._lock:
            on_closed, self._on_closed = self._on_closed, None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if on_closed is None:
            return
        log.info("Mock interaction closed")
        on_closed()

    def report_failure(self, error: Exception) -> None:
        self.failures.append(error)
        super().report_failure(error)

    def close(self) -> None:
        with self._lock:
            self._on_closed = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
