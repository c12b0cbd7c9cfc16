"""Kokoro speech-synthesis engine wrapper."""

from __future__ import annotations

import logging
import warnings
from collections.abc import Iterator
from typing import TYPE_CHECKING

import numpy as np
import torch

from .config import SpeechConfig, get_lang_code

if TYPE_CHECKING:
    from kokoro import KPipeline

logger = logging.getLogger(__name__)

KOKORO_REPO_ID = "hexgrad/Kokoro-82M"

warnings.filterwarnings("ignore", message="dropout option adds dropout after all but last")
warnings.filterwarnings("ignore", message="`torch.nn.utils.weight_norm` is deprecated")


class SpeechEngine:
    """
    Turns text into PCM audio with a Kokoro pipeline.

    The pipeline for the configured voice's language is built on first
    use; model weights are downloaded then if they are not cached.

    Example:
        engine = SpeechEngine(SpeechConfig(voice="jf_alpha"))
        for chunk in engine.synthesize_to_bytes("こんにちは"):
            player.write(chunk)
        engine.shutdown()
    """

    def __init__(self, config: SpeechConfig | None = None) -> None:
        self.config = config or SpeechConfig()
        self.lang_code = get_lang_code(self.config.voice)
        self._device = self._detect_device()
        self._pipeline: KPipeline | None = None

    def _detect_device(self) -> str:
        """Auto-detect the best available device."""
        if self.config.device is not None:
            return self.config.device

        if torch.cuda.is_available():  # pragma: no cover
            return "cuda"
        if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():  # pragma: no cover
            return "mps"
        return "cpu"

    def load(self) -> KPipeline:
        """Build the pipeline if needed and return it."""
        if self._pipeline is None:
            from kokoro import KPipeline

            self._pipeline = KPipeline(
                lang_code=self.lang_code,
                repo_id=KOKORO_REPO_ID,
                device=self._device,
            )
            logger.info(
                "Speech engine loaded (voice=%s, device=%s)", self.config.voice, self._device
            )
        return self._pipeline

    def synthesize(self, text: str) -> Iterator[np.ndarray]:
        """
        Synthesize text to audio chunks.

        Args:
            text: Text to speak

        Yields:
            Float32 audio chunks normalized to [-1, 1]
        """
        pipeline = self.load()
        for result in pipeline(text, voice=self.config.voice, speed=self.config.speed):
            if result.audio is not None:
                yield result.audio.cpu().numpy().astype(np.float32, copy=False)

    def synthesize_to_bytes(self, text: str) -> Iterator[bytes]:
        """Synthesize text to PCM16 chunks."""
        for samples in self.synthesize(text):
            yield (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16).tobytes()

    @property
    def device(self) -> str:
        return self._device

    @property
    def is_loaded(self) -> bool:
        return self._pipeline is not None

    def shutdown(self) -> None:
        """Drop the pipeline and clear GPU memory."""
        self._pipeline = None
        if self._device == "cuda":  # pragma: no cover
            torch.cuda.empty_cache()
