"""Spoken conversation surface: greet → listen → transcribe → reply → speak.

Runs on its own thread after the arbiter has released the microphone, takes
the microphone itself for the duration of the conversation, and closes once
the user stays quiet for the inactivity timeout.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator

from audio.base import AudioHandle, BaseAudioSource
from errors import DeviceLost, DeviceUnavailable, RemoteError
from llm.base import BaseLLM
from speech.base import SPEECH_SAMPLE_RATE, BaseSTT, BaseTTS
from surface.base import BaseSurface
from utils.audio import pcm_seconds
from utils.vad import VoiceActivityDetector

log = logging.getLogger("deskwake.surface")

APOLOGY = "I'm sorry, I encountered an error. Please try again later."


class VoiceSurface(BaseSurface):
    """Voice-only interaction surface built on STT, LLM and TTS backends."""

    def __init__(
        self,
        source: BaseAudioSource,
        stt: BaseSTT,
        llm: BaseLLM,
        tts: BaseTTS,
        config: dict,
    ):
        # Whisper input and Piper output are both 16kHz mono
        if source.sample_rate != SPEECH_SAMPLE_RATE or source.channels != 1:
            raise ValueError(
                f"Voice surface needs {SPEECH_SAMPLE_RATE}Hz mono audio, but the microphone "
                f"is configured for {source.sample_rate}Hz x{source.channels} "
                f"(set AUDIO_SAMPLE_RATE={SPEECH_SAMPLE_RATE})"
            )
        self._source = source
        self._stt = stt
        self._llm = llm
        self._tts = tts
        self._vad = VoiceActivityDetector(config)
        self._idle_timeout = config.get("surface_idle_timeout", 7.0)
        self._greeting = config.get("surface_greeting", "Hello! How can I help you?")
        self._max_turns = config.get("surface_max_turns", 10)
        self._cancel = threading.Event()
        self._thread: threading.Thread | None = None
        self.turns = 0

    @property
    def is_open(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def open(self, on_closed: Callable[[], None]) -> None:
        if self.is_open:
            raise RuntimeError("VoiceSurface is already open")
        self._cancel.clear()
        self._thread = threading.Thread(
            target=self._converse, args=(on_closed,), name="interaction", daemon=True,
        )
        self._thread.start()

    def _converse(self, on_closed: Callable[[], None]) -> None:
        handle = None
        self.turns = 0
        log.info("Interaction started")
        try:
            # Each interaction is a fresh conversation
            self._llm.clear_history()
            self._say(self._greeting)
            handle = self._source.start()

            while self.turns < self._max_turns and not self._cancel.is_set():
                pcm = self._vad.record_until_silence(self._chunks(handle), self._idle_timeout)
                if not pcm:
                    log.info("No speech for %.1fs, closing interaction", self._idle_timeout)
                    break
                self.turns += 1
                text = self._stt.transcribe(pcm)
                log.info("Heard (%.1fs): %r", pcm_seconds(pcm), text)
                if not text or not text.strip():
                    continue

                try:
                    reply = self._llm.respond(text)
                except RemoteError:
                    log.exception("Remote LLM failed (non-fatal)")
                    reply = APOLOGY
                log.info("Reply: %r", reply)
                self._say(reply)
                # Anything captured while we were talking is our own voice
                handle.drain()
            else:
                if self.turns >= self._max_turns:
                    log.warning("Max turns (%d) reached, closing interaction", self._max_turns)
        except (DeviceUnavailable, DeviceLost) as e:
            log.error("Interaction lost the microphone: %s", e)
            self.report_failure(e)
        except Exception:
            log.exception("Interaction failed")
        finally:
            if handle is not None:
                self._source.stop(handle)
            log.info("Interaction ended after %d turns", self.turns)
            on_closed()

    def _chunks(self, handle: AudioHandle) -> Iterator[bytes]:
        """Yield microphone chunks; b"" on a quiet poll keeps the VAD clock ticking."""
        while not self._cancel.is_set():
            chunk = handle.read(timeout=0.1)
            yield chunk if chunk is not None else b""

    def _say(self, text: str) -> None:
        try:
            self._source.play(self._tts.synthesize(text))
        except Exception:
            log.exception("TTS error (non-fatal)")

    def close(self) -> None:
        self._cancel.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)
        self._stt.close()
        self._llm.close()
        self._tts.close()
