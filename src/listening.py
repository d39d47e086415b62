"""Listening session: microphone → frames → wake word detector.

A ListeningSession owns one open audio handle and one detector for its
whole life. It is started once, stopped once (idempotently) and never
reused; the arbiter builds a fresh session for every listening cycle.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum

from audio.base import AudioHandle, BaseAudioSource
from audio.frames import FrameReassembler
from errors import ContractViolation, DeviceLost, ModelLoadError
from wake.base import BaseWakeWord

log = logging.getLogger("deskwake.listening")

WakeCallback = Callable[["ListeningSession", int], None]
LostCallback = Callable[["ListeningSession", Exception], None]


class SessionState(str, Enum):
    UNSTARTED = "UNSTARTED"
    ACTIVE = "ACTIVE"
    STOPPED = "STOPPED"


class ListeningSession:
    """Runs wake word detection on a dedicated thread until stopped.

    on_wake(session, keyword_index) is called on the worker thread for every
    matching frame. The session keeps running after a match; deciding what
    to do (usually stop()) is up to the owner.

    on_lost(session, error) is called after the session tore itself down
    because the device disappeared or the detector failed. A detector
    contract violation is reported this way too, then re-raised on the
    worker thread.
    """

    def __init__(
        self,
        source: BaseAudioSource,
        detector_factory: Callable[[], BaseWakeWord],
        on_wake: WakeCallback,
        on_lost: LostCallback | None = None,
        poll_interval: float = 0.1,
    ):
        self._source = source
        self._detector_factory = detector_factory
        self._on_wake = on_wake
        self._on_lost = on_lost
        self._poll_interval = poll_interval

        # Serialises detector.process() with stop()
        self._lock = threading.RLock()
        self._state = SessionState.UNSTARTED
        self._start_attempted = False
        self._handle: AudioHandle | None = None
        self._detector: BaseWakeWord | None = None
        self._reassembler: FrameReassembler | None = None
        self._thread: threading.Thread | None = None
        self.frames_processed = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    def start(self) -> None:
        """Acquire the microphone, then the detector, and start listening.

        On failure everything acquired so far is released, the error
        propagates and the session stays UNSTARTED (but can't be started
        again; build a new one).
        """
        with self._lock:
            if self._state is not SessionState.UNSTARTED or self._start_attempted:
                raise RuntimeError(
                    f"ListeningSession can only be started once (state={self._state.value})"
                )
            self._start_attempted = True

            handle = self._source.start()
            try:
                detector = self._detector_factory()
            except BaseException:
                self._source.stop(handle)
                raise
            if detector.sample_rate != handle.config.sample_rate:
                try:
                    detector.release()
                finally:
                    self._source.stop(handle)
                raise ModelLoadError(
                    f"Wake word engine needs {detector.sample_rate}Hz audio but the microphone "
                    f"is configured for {handle.config.sample_rate}Hz (set AUDIO_SAMPLE_RATE)"
                )

            self._handle = handle
            self._detector = detector
            self._reassembler = FrameReassembler(detector.frame_length)
            self._state = SessionState.ACTIVE
            self._thread = threading.Thread(
                target=self._run, args=(handle,), name="listening-session", daemon=True,
            )
            self._thread.start()

        log.info(
            "Listening session active (frame=%d samples @ %dHz)",
            detector.frame_length, detector.sample_rate,
        )

    def feed(self, chunk: bytes) -> list[int]:
        """Run one chunk through the reassembler and detector.

        Returns the keyword indices matched in this chunk. Frames that
        complete after stop() has begun are discarded.
        """
        matches = []
        with self._lock:
            if self._state is not SessionState.ACTIVE:
                return matches
            frames = self._reassembler.feed(chunk)

        for frame in frames:
            with self._lock:
                if self._state is not SessionState.ACTIVE:
                    break
                result = self._detector.process(frame)
                self.frames_processed += 1
            if result >= 0:
                log.info("Wake word %d matched at frame %d", result, self.frames_processed - 1)
                matches.append(result)
                self._on_wake(self, result)
        return matches

    def stop(self) -> None:
        """Release the detector, then the microphone. Idempotent.

        Safe from any state and from the worker thread itself (e.g. inside
        on_wake). Waits for an in-flight process() call to finish.
        """
        with self._lock:
            if self._state is SessionState.STOPPED:
                return
            was_active = self._state is SessionState.ACTIVE
            self._state = SessionState.STOPPED
            detector, self._detector = self._detector, None
            handle, self._handle = self._handle, None
            thread, self._thread = self._thread, None
            self._reassembler = None

            try:
                if detector is not None:
                    detector.release()
            finally:
                if handle is not None:
                    self._source.stop(handle)

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)
            if thread.is_alive():
                log.warning("Listening worker did not exit within 5s")
        if was_active:
            log.info("Listening session stopped after %d frames", self.frames_processed)

    def _run(self, handle: AudioHandle) -> None:
        while self._state is SessionState.ACTIVE:
            try:
                chunk = handle.read(timeout=self._poll_interval)
                if chunk is not None:
                    self.feed(chunk)
            except DeviceLost as e:
                self._teardown_after_failure(e)
                return
            except ContractViolation as e:
                log.exception("Wake word detector misused; stopping session")
                self._teardown_after_failure(e)
                raise
            except Exception as e:
                log.exception("Listening session failed")
                self._teardown_after_failure(e)
                return

    def _teardown_after_failure(self, error: Exception) -> None:
        if self._state is not SessionState.ACTIVE:
            return
        self.stop()
        if self._on_lost is not None:
            self._on_lost(self, error)
