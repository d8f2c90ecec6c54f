"""Local phrase transcription using faster-whisper.

Used by ``MicrophoneRecognizer`` when ``speech_engine="whisper"``. The
WhisperModel is loaded lazily and cached at module level to avoid repeated
initialization overhead.
"""

import logging

import numpy as np
from faster_whisper import WhisperModel

from src.core.config import get_settings
from src.core.exceptions import SpeechCapabilityError

logger = logging.getLogger(__name__)

_model_cache: WhisperModel | None = None


def pcm_to_ndarray(pcm_data: bytes) -> np.ndarray:
    """Convert raw 16-bit signed PCM bytes to a float32 array in [-1.0, 1.0].

    Raises:
        ValueError: If data length is not aligned to the 2-byte sample size.
    """
    if len(pcm_data) % 2 != 0:
        raise ValueError(f"PCM data length ({len(pcm_data)}) is not aligned to frame size (2)")
    return np.frombuffer(pcm_data, dtype=np.int16).astype(np.float32) / 32768.0


def is_silent(audio: np.ndarray, threshold: float = 0.01) -> bool:
    """Check if an audio segment is silence based on RMS energy."""
    if len(audio) == 0:
        return True
    rms = np.sqrt(np.mean(audio**2))
    return float(rms) < threshold


class WhisperTranscriber:
    """Transcribes one captured phrase at a time with faster-whisper.

    Args:
        model_size: Whisper model size (tiny, base, small, medium, large-v3).
        language: BCP-47 tag ("en-US") or ISO code ("en"); empty = auto-detect.
        device: Computation device ("cpu" or "cuda").
        compute_type: CTranslate2 compute type ("int8", "float16", etc.).
    """

    def __init__(
        self,
        model_size: str | None = None,
        language: str | None = None,
        device: str = "cpu",
        compute_type: str = "int8",
    ) -> None:
        settings = get_settings()
        self._model_size = model_size or settings.whisper_model
        language = settings.speech_language if language is None else language
        # Whisper expects the bare ISO 639-1 code
        self._language = language.split("-")[0].lower() or None
        self._device = device
        self._compute_type = compute_type

    def _get_model(self) -> WhisperModel:
        """Return the cached WhisperModel, loading it on first use."""
        global _model_cache  # noqa: PLW0603
        if _model_cache is None:
            logger.info(
                "Loading Whisper model: %s (device=%s, compute=%s)",
                self._model_size,
                self._device,
                self._compute_type,
            )
            _model_cache = WhisperModel(
                self._model_size,
                device=self._device,
                compute_type=self._compute_type,
            )
        return _model_cache

    def transcribe_pcm(self, pcm_data: bytes) -> str:
        """Transcribe 16 kHz mono 16-bit PCM. Runs on the caller's thread.

        Returns:
            The phrase text, or "" for silence.

        Raises:
            SpeechCapabilityError: If the model fails.
        """
        audio = pcm_to_ndarray(pcm_data)
        if is_silent(audio):
            return ""

        try:
            segments_iter, _info = self._get_model().transcribe(
                audio,
                language=self._language,
                beam_size=1,
                vad_filter=False,
            )
            # Materialize the generator on this thread (CTranslate2 is not
            # safe to iterate across threads).
            segments = list(segments_iter)
        except Exception as exc:
            raise SpeechCapabilityError(f"Whisper transcription failed: {exc}") from exc

        return " ".join(seg.text.strip() for seg in segments if seg.text.strip())
