"""Optional PCM16 playback through PyAudio."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import PlaybackConfig

# PyAudio is an optional extra
try:
    import pyaudio

    PYAUDIO_AVAILABLE = True
except ImportError:
    PYAUDIO_AVAILABLE = False
    pyaudio = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


class AudioPlayer:
    """
    Writes PCM16 speech to a local output device.

    The device is opened on the first chunk and held until stop(), so
    back-to-back utterances play without reopening it. A muted player
    accepts chunks and drops them without touching PyAudio.

    Example:
        with AudioPlayer(PlaybackConfig(), sample_rate=24000) as player:
            for chunk in engine.synthesize_to_bytes(text):
                player.write(chunk)
    """

    def __init__(
        self,
        config: PlaybackConfig,
        sample_rate: int = 24000,
        channels: int = 1,
    ) -> None:
        """
        Args:
            config: Output device and buffering
            sample_rate: Audio sample rate in Hz
            channels: Number of audio channels

        Raises:
            ImportError: If PyAudio is not installed and playback is not muted
        """
        if not (PYAUDIO_AVAILABLE or config.muted):
            raise ImportError(
                "PyAudio is required for audio playback. "
                "Install with: pip install stream-talk[playback]"
            )
        self.config = config
        self.sample_rate = sample_rate
        self.channels = channels
        self._pa = None
        self._stream = None
        self._lock = threading.Lock()

    @property
    def muted(self) -> bool:
        return self.config.muted

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    def start(self) -> None:
        """Open the output device now rather than on the first write."""
        if self.config.muted:
            return
        with self._lock:
            self._ensure_open()

    def _ensure_open(self) -> None:
        if self._stream is not None:
            return
        pa = pyaudio.PyAudio()
        try:
            self._stream = pa.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                output=True,
                output_device_index=self.config.device_index,
                frames_per_buffer=self.config.frames_per_buffer,
            )
        except Exception:
            pa.terminate()
            raise
        self._pa = pa
        logger.debug(
            "Audio output opened (device=%s, %d Hz)", self.config.device_index, self.sample_rate
        )

    def write(self, chunk: bytes) -> None:
        """Play one chunk; blocks until the device has taken it."""
        if self.config.muted or not chunk:
            return
        with self._lock:
            self._ensure_open()
            self._stream.write(chunk)

    def stop(self) -> None:
        """Close the output device. The next write reopens it."""
        with self._lock:
            stream, pa = self._stream, self._pa
            self._stream = self._pa = None
        if stream is not None:
            stream.stop_stream()
            stream.close()
        if pa is not None:
            pa.terminate()

    def __enter__(self) -> AudioPlayer:
        self.start()
        return self

    def __exit__(self, *args) -> None:
        self.stop()


def is_playback_available() -> bool:
    return PYAUDIO_AVAILABLE


def output_devices() -> list[tuple[int, str]]:
    """Return ``(index, name)`` for every device that can play audio."""
    if not PYAUDIO_AVAILABLE:
        return []

    pa = pyaudio.PyAudio()
    try:
        found = []
        for index in range(pa.get_device_count()):
            info = pa.get_device_info_by_index(index)
            if info.get("maxOutputChannels", 0) > 0:
                found.append((index, str(info.get("name", "?"))))
        return found
    finally:
        pa.terminate()
