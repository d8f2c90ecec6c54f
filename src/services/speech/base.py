"""
Abstract base class for speech recognizers.

The transcription session depends only on this interface: a presence check,
start/stop, and events carrying ordered results whose top alternatives are
concatenated into the transcript.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable

from src.core.exceptions import SpeechCapabilityError
from src.core.models import RecognitionEvent

EventCallback = Callable[[RecognitionEvent], None]
ErrorCallback = Callable[[SpeechCapabilityError], None]


class BaseRecognizer(ABC):
    """Interface that every continuous speech recognizer must implement.

    Callbacks may be invoked from a worker thread owned by the recognizer.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """Return True when the capability exists on this machine."""

    @abstractmethod
    def start(self, on_event: EventCallback, on_error: ErrorCallback | None = None) -> None:
        """Begin continuous capture.

        Args:
            on_event: Called with every known result each time one changes.
            on_error: Called for recognition failures that do not end capture.

        Raises:
            RecognizerAlreadyActiveError: If capture is already running.
            SpeechCapabilityError: If capture cannot begin.
        """

    @abstractmethod
    def stop(self) -> None:
        """End capture. Calling it while stopped does nothing."""


class UnavailableRecognizer(BaseRecognizer):
    """Stand-in used when speech capture is disabled or unsupported."""

    def is_available(self) -> bool:
        return False

    def start(self, on_event: EventCallback, on_error: ErrorCallback | None = None) -> None:
        raise SpeechCapabilityError()

    def stop(self) -> None:
        return None
