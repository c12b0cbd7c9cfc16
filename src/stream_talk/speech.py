"""Speaker capability: queued text-to-speech for stream events."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, get_args

from .audio import AudioPlayer
from .config import PlaybackConfig, SpeakField, SpeechConfig
from .engine import SpeechEngine

if TYPE_CHECKING:
    from .decoder import DecodedEvent

logger = logging.getLogger(__name__)


class Speaker:
    """
    Speaks text on a single background worker.

    speak() only queues the text and returns, so it is safe to call from
    an event loop. Utterances are spoken one at a time in the order they
    were queued.

    Example:
        with Speaker(SpeechConfig(voice="jf_alpha")) as speaker:
            speaker.speak("こんにちは")
            speaker.wait()
    """

    def __init__(
        self,
        config: SpeechConfig | None = None,
        playback_config: PlaybackConfig | None = None,
        *,
        on_chunk: Callable[[bytes], None] | None = None,
        engine: SpeechEngine | None = None,
        player: AudioPlayer | None = None,
    ) -> None:
        """
        Initialize the speaker.

        Args:
            config: Voice and synthesis settings
            playback_config: Local playback settings
            on_chunk: Called with every PCM16 chunk from the worker thread
            engine: Synthesis engine (built from config if not provided)
            player: Audio player (built on initialize() if not provided)
        """
        self.config = config or SpeechConfig()
        self.playback_config = playback_config or PlaybackConfig()
        self._engine = engine or SpeechEngine(self.config)
        self._player = player
        self._on_chunk = on_chunk
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="speaker")
        self._lock = threading.Lock()
        # Bumped by stop(); utterances from an older generation are dropped
        self._generation = 0
        self._last_text: str | None = None
        self._closed = False

    def initialize(self) -> Speaker:
        """
        Load the engine and open the player.

        Returns:
            Self for method chaining
        """
        self._engine.load()
        if self._player is None and not self.playback_config.muted:
            self._player = AudioPlayer(
                self.playback_config,
                sample_rate=self.config.sample_rate,
                channels=self.config.channels,
            )
        return self

    def speak(self, text: str) -> Future | None:
        """
        Queue text to be spoken.

        Args:
            text: Text to speak; blank text is ignored

        Returns:
            Future completing when the utterance is done, or None if ignored

        Raises:
            RuntimeError: If the speaker has been shut down
        """
        if self._closed:
            raise RuntimeError("speaker has been shut down")
        text = text.strip()
        if not text:
            return None
        with self._lock:
            self._last_text = text
            generation = self._generation
        return self._executor.submit(self._talk, text, generation)

    def speak_again(self) -> Future | None:
        """Queue the last spoken text again."""
        if self._last_text is None:
            return None
        return self.speak(self._last_text)

    @property
    def last_text(self) -> str | None:
        return self._last_text

    def stop(self) -> None:
        """Interrupt the current utterance and drop queued ones."""
        with self._lock:
            self._generation += 1

    def wait(self, timeout: float | None = None) -> None:
        """Block until everything queued so far has been spoken."""
        self._executor.submit(lambda: None).result(timeout=timeout)

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _talk(self, text: str, generation: int) -> None:
        if not self._is_current(generation):
            return
        try:
            self.initialize()
            logger.debug("Speaking %r", text)
            for chunk in self._engine.synthesize_to_bytes(text):
                if not self._is_current(generation):
                    logger.debug("Utterance interrupted: %r", text)
                    break
                if self._on_chunk is not None:
                    self._on_chunk(chunk)
                if self._player is not None:
                    self._player.write(chunk)
        except Exception:
            logger.exception("Speech failed for %r", text)
            raise

    def shutdown(self) -> None:
        """Stop speaking and release the worker, engine and player."""
        if self._closed:
            return
        self._closed = True
        self.stop()
        self._executor.shutdown(wait=True)
        if self._player is not None:
            self._player.stop()
        self._engine.shutdown()

    def __enter__(self) -> Speaker:
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()


class SpeechHandler:
    """
    Event handler that speaks one field of each event.

    Args:
        speaker: Speaker owned by the caller
        field: "actor" to speak the user name, "body" to speak the text
    """

    def __init__(self, speaker: Speaker, field: SpeakField = "actor") -> None:
        if field not in get_args(SpeakField):
            raise ValueError(f"field must be 'actor' or 'body', got {field!r}")
        self.speaker = speaker
        self.field = field

    def __call__(self, event: DecodedEvent) -> None:
        self.speaker.speak(getattr(event, self.field))
