"""Microphone recognizer built on the SpeechRecognition package.

``Recognizer.listen_in_background`` captures phrases on a daemon thread.
Each phrase is recognized (Google Web Speech API or local faster-whisper)
and appended as a final result; every event carries all results so far,
so consumers replace their transcript instead of appending deltas.
"""

import logging
import threading
from collections.abc import Callable

import speech_recognition as sr

from src.core.config import Settings, get_settings
from src.core.exceptions import RecognizerAlreadyActiveError, SpeechCapabilityError
from src.core.models import RecognitionAlternative, RecognitionEvent, RecognitionResult
from src.services.speech.base import BaseRecognizer, ErrorCallback, EventCallback

logger = logging.getLogger(__name__)


class MicrophoneRecognizer(BaseRecognizer):
    """Continuous recognizer reading the default input device.

    Args:
        engine: "google" (free web API) or "whisper" (local model).
        language: BCP-47 language tag, e.g. "en-US".
        phrase_time_limit: Max seconds of audio captured per phrase.
        settings: Optional Settings instance (defaults to get_settings()).
    """

    def __init__(
        self,
        engine: str | None = None,
        language: str | None = None,
        phrase_time_limit: float | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._engine = engine or self._settings.speech_engine
        self._language = language or self._settings.speech_language
        self._phrase_time_limit = phrase_time_limit or self._settings.phrase_time_limit
        if self._engine not in ("google", "whisper"):
            raise ValueError(f"Unknown speech engine: {self._engine}")

        self._recognizer = sr.Recognizer()
        self._lock = threading.Lock()
        self._results: list[RecognitionResult] = []
        self._stop_listening: Callable[..., None] | None = None
        self._on_event: EventCallback | None = None
        self._on_error: ErrorCallback | None = None
        self._available: bool | None = None
        self._whisper = None

    def is_available(self) -> bool:
        """True when PyAudio is installed and at least one input device exists."""
        if self._available is None:
            try:
                sr.Microphone.get_pyaudio()
                self._available = bool(sr.Microphone.list_microphone_names())
            except (AttributeError, OSError) as exc:
                logger.warning("Microphone capture unavailable: %s", exc)
                self._available = False
        return self._available

    def start(self, on_event: EventCallback, on_error: ErrorCallback | None = None) -> None:
        if self._stop_listening is not None:
            raise RecognizerAlreadyActiveError()
        if not self.is_available():
            raise SpeechCapabilityError("No microphone available")

        try:
            microphone = sr.Microphone()
            with microphone as source:
                self._recognizer.adjust_for_ambient_noise(source, duration=0.5)
        except (AttributeError, OSError) as exc:
            raise SpeechCapabilityError(f"Failed to open microphone: {exc}") from exc

        with self._lock:
            self._results = []
        self._on_event = on_event
        self._on_error = on_error
        self._stop_listening = self._recognizer.listen_in_background(
            microphone,
            self._handle_audio,
            phrase_time_limit=self._phrase_time_limit,
        )
        logger.info("Listening (engine=%s, language=%s)", self._engine, self._language)

    def stop(self) -> None:
        if self._stop_listening is None:
            return
        self._stop_listening(wait_for_stop=False)
        self._stop_listening = None
        logger.info("Stopped listening")

    def _recognize(self, audio: sr.AudioData) -> str:
        if self._engine == "whisper":
            if self._whisper is None:
                from src.services.speech.whisper import WhisperTranscriber

                self._whisper = WhisperTranscriber(language=self._language)
            pcm = audio.get_raw_data(convert_rate=16000, convert_width=2)
            return self._whisper.transcribe_pcm(pcm)
        return self._recognizer.recognize_google(audio, language=self._language)

    def _handle_audio(self, _recognizer: sr.Recognizer, audio: sr.AudioData) -> None:
        """Background-thread callback for each captured phrase."""
        try:
            text = self._recognize(audio).strip()
        except sr.UnknownValueError:
            logger.debug("Could not understand audio")
            return
        except sr.RequestError as exc:
            self._report(SpeechCapabilityError(f"Speech API request failed: {exc}"))
            return
        except SpeechCapabilityError as exc:
            self._report(exc)
            return

        if not text:
            return

        with self._lock:
            # Later phrases carry a leading space so results concatenate cleanly
            transcript = f" {text}" if self._results else text
            self._results.append(
                RecognitionResult(
                    alternatives=(RecognitionAlternative(transcript=transcript),),
                    is_final=True,
                )
            )
            event = RecognitionEvent(results=tuple(self._results))

        if self._on_event is not None:
            self._on_event(event)

    def _report(self, error: SpeechCapabilityError) -> None:
        logger.warning("Recognition error: %s", error.detail)
        if self._on_error is not None:
            self._on_error(error)
