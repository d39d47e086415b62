"""Hardware audio backend using sounddevice.

Captures audio from a real microphone and plays back through speakers.
sounddevice (and PortAudio) are not required for local dev.
"""

import logging
import sys

from audio.base import AudioHandle, BaseAudioSource
from errors import DeviceLost, DeviceUnavailable

log = logging.getLogger(__name__)


def _import_sounddevice():
    """Import sounddevice with aarch64 Python 3.11 find_library workaround.

    ctypes.util.find_library is broken on aarch64 Python <3.12.4: the
    ldconfig parser regex doesn't match the AArch64 tag format.
    See: https://github.com/python/cpython/issues/112417
    """
    import ctypes.util
    import platform

    if platform.machine() != "aarch64" or sys.version_info >= (3, 12, 4):
        import sounddevice

        return sounddevice

    _orig = ctypes.util.find_library

    def _patched(name):
        result = _orig(name)
        if result is None and name == "portaudio":
            return "libportaudio.so.2"
        return result

    ctypes.util.find_library = _patched
    try:
        import sounddevice

        return sounddevice
    finally:
        ctypes.util.find_library = _orig


class HardwareAudioSource(BaseAudioSource):
    """Real microphone capture and speaker playback via sounddevice."""

    def __init__(self, config: dict):
        super().__init__(config)
        try:
            self._sd = _import_sounddevice()
        except (ImportError, OSError) as e:
            raise RuntimeError(
                "sounddevice is required for hardware audio mode. "
                "Install it with: pip install sounddevice\n"
                "On Linux, also ensure: sudo apt-get install libportaudio2"
            ) from e
        self._device = self._resolve_device(self._parse_device(self.audio_config.device))

    @staticmethod
    def _parse_device(value):
        """Parse device config: None, integer index, or string name."""
        if value is None or value == "":
            return None
        try:
            return int(value)
        except ValueError:
            return value  # name substring, matched by sounddevice

    def _resolve_device(self, device):
        """Validate the configured input device now, not on first wake cycle."""
        try:
            info = self._sd.query_devices(device, kind="input")
        except (self._sd.PortAudioError, ValueError) as e:
            try:
                available = str(self._sd.query_devices())
            except self._sd.PortAudioError:
                available = "(unable to list devices)"
            raise DeviceUnavailable(
                f"No usable audio input device matching {device!r}: {e}\n"
                f"Available devices:\n{available}\n"
                "Set AUDIO_DEVICE in .env to a device name or index. "
                "Run 'python -m sounddevice' to list devices."
            ) from e

        log.info(
            "HardwareAudioSource initialized: %dHz, %dch, device=%r (%s)",
            self.sample_rate, self.channels, device, info["name"],
        )
        return info["index"] if "index" in info else device

    def _open(self, handle: AudioHandle) -> None:
        def callback(indata, frames, time_info, status):
            if status:
                if status.input_overflow:
                    log.debug("Stream status: %s", status)
                else:
                    log.warning("Stream status: %s", status)
            handle.put(bytes(indata))

        def finished():
            # Fires on our own stop() too; only an unexpected end is a loss
            if not handle.closed:
                handle.mark_lost(DeviceLost(f"Input stream on device {self._device!r} ended"))

        try:
            stream = self._sd.RawInputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=self.audio_config.chunk_samples,
                latency="high",
                callback=callback,
                finished_callback=finished,
                device=self._device,
            )
            stream.start()
        except self._sd.PortAudioError as e:
            raise DeviceUnavailable(f"Could not open input device {self._device!r}: {e}") from e
        handle.native = stream
        log.info("Hardware audio stream started (%dms chunks)", self.audio_config.chunk_ms)

    def _close(self, handle: AudioHandle) -> None:
        stream = handle.native
        if stream is None:
            return
        handle.native = None
        try:
            stream.stop()
        except self._sd.PortAudioError:
            # Device already gone; closing still frees the PortAudio stream
            log.debug("Stream stop failed on lost device", exc_info=True)
        finally:
            stream.close()
        log.info("Hardware audio stream stopped.")

    def play(self, data: bytes) -> None:
        """Play raw PCM data through the speakers."""
        import numpy as np

        audio = np.frombuffer(data, dtype=np.int16)
        if self.channels > 1:
            audio = audio.reshape(-1, self.channels)
        log.info("Playing %d bytes of audio...", len(data))
        self._sd.play(audio, samplerate=self.sample_rate)
        self._sd.wait()

    def close(self) -> None:
        """Stop any active playback/recording."""
        super().close()
        self._sd.stop()
        log.info("HardwareAudioSource closed.")
