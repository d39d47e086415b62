"""Session arbiter: hands the microphone between wake word listening and
the interaction surface, never to both at once.

State machine:
- IDLE: not started, or shut down
- LISTENING: a ListeningSession owns the microphone
- INTERACTING: the surface is open; no session exists
- DEGRADED: listening could not start (or the device was lost); a bounded
  number of retries may be pending
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum

from audio.base import BaseAudioSource
from errors import ContractViolation, InvalidCredential
from listening import ListeningSession
from surface.base import BaseSurface
from wake.base import BaseWakeWord

log = logging.getLogger("deskwake.arbiter")


class ArbiterState(str, Enum):
    IDLE = "IDLE"
    LISTENING = "LISTENING"
    INTERACTING = "INTERACTING"
    DEGRADED = "DEGRADED"


class SessionArbiter:
    """Drives listening ↔ interaction transitions for one microphone."""

    def __init__(
        self,
        source: BaseAudioSource,
        detector_factory: Callable[[], BaseWakeWord],
        surface: BaseSurface,
        config: dict,
    ):
        self._source = source
        self._detector_factory = detector_factory
        self._surface = surface
        self._max_retries = config.get("listen_max_retries", 3)
        self._retry_base = config.get("listen_retry_base", 1.0)
        self._retry_max_delay = config.get("listen_retry_max_delay", 30.0)

        self._lock = threading.Lock()
        self._state = ArbiterState.IDLE
        self._session: ListeningSession | None = None
        self._retry_timer: threading.Timer | None = None
        self._retries = 0
        self._shutdown = False
        self.last_error: Exception | None = None
        self.sessions_started = 0
        self.interactions = 0

    @property
    def state(self) -> ArbiterState:
        return self._state

    @property
    def session(self) -> ListeningSession | None:
        return self._session

    def start(self) -> None:
        """Begin ambient listening."""
        with self._lock:
            if self._state is not ArbiterState.IDLE or self._shutdown:
                raise RuntimeError(f"SessionArbiter already started (state={self._state.value})")
            failure = self._start_listening()
        self._after_failure(failure)

    def handle_wake(self, session: ListeningSession, keyword_index: int) -> None:
        """Wake word heard: free the microphone, then open the surface."""
        with self._lock:
            if self._state is not ArbiterState.LISTENING or session is not self._session:
                log.warning(
                    "Ignoring wake word %d in state %s (stale session=%s)",
                    keyword_index, self._state.value, session is not self._session,
                )
                return
            # Must complete before the surface asks for the microphone
            session.stop()
            self._session = None
            self._state = ArbiterState.INTERACTING
            self.interactions += 1
        log.info("Wake word %d detected, opening interaction surface", keyword_index)

        try:
            self._surface.open(self.interaction_closed)
        except Exception:
            log.exception("Interaction surface failed to open; resuming listening")
            self.interaction_closed()

    def interaction_closed(self) -> None:
        """Surface finished: start a brand-new listening session."""
        with self._lock:
            if self._state is not ArbiterState.INTERACTING:
                log.warning("Ignoring interaction-closed in state %s", self._state.value)
                return
            log.info("Interaction closed, resuming wake word listening")
            failure = self._start_listening()
        self._after_failure(failure)

    def handle_device_lost(self, session: ListeningSession, error: Exception) -> None:
        """The active session tore itself down after losing its device or detector."""
        with self._lock:
            if session is not self._session or self._state is not ArbiterState.LISTENING:
                return
            self._session = None
            failure = self._enter_degraded(error)
        self._after_failure(failure)

    def retry(self) -> None:
        """Re-attempt listening from DEGRADED."""
        with self._lock:
            self._retry_timer = None
            if self._state is not ArbiterState.DEGRADED or self._shutdown:
                return
            log.info("Retrying wake word listening (attempt %d/%d)", self._retries, self._max_retries)
            failure = self._start_listening()
        self._after_failure(failure)

    def shutdown(self) -> None:
        """Stop listening, cancel retries and close the surface."""
        with self._lock:
            self._shutdown = True
            if self._retry_timer is not None:
                self._retry_timer.cancel()
                self._retry_timer = None
            session, self._session = self._session, None
            self._state = ArbiterState.IDLE
        # Outside the lock: the worker may be waiting on it inside handle_wake
        if session is not None:
            session.stop()
        self._surface.close()
        log.info("Session arbiter shut down.")

    # -- internals (called with self._lock held) --

    def _start_listening(self) -> Exception | None:
        session = ListeningSession(
            self._source,
            self._detector_factory,
            on_wake=self.handle_wake,
            on_lost=self.handle_device_lost,
        )
        try:
            session.start()
        except Exception as e:
            session.stop()
            log.error("Could not start wake word listening: %s", e)
            return self._enter_degraded(e)

        self._session = session
        self._state = ArbiterState.LISTENING
        self._retries = 0
        self.last_error = None
        self.sessions_started += 1
        return None

    def _enter_degraded(self, error: Exception) -> Exception:
        self._state = ArbiterState.DEGRADED
        self.last_error = error

        if isinstance(error, InvalidCredential):
            log.error("Wake word credential rejected; not retrying: %s", error)
        elif isinstance(error, ContractViolation):
            log.error("Wake word detector misused; not retrying: %s", error)
        elif self._retries >= self._max_retries:
            log.error("Giving up on wake word listening after %d retries", self._retries)
        else:
            delay = min(self._retry_base * 2 ** self._retries, self._retry_max_delay)
            self._retries += 1
            log.warning(
                "Wake word listening degraded (retry %d/%d in %.1fs)",
                self._retries, self._max_retries, delay,
            )
            self._retry_timer = threading.Timer(delay, self.retry)
            self._retry_timer.daemon = True
            self._retry_timer.start()
        return error

    def _after_failure(self, error: Exception | None) -> None:
        if error is None:
            return
        try:
            self._surface.report_failure(error)
        except Exception:
            log.exception("Surface failed to report error (non-fatal)")
