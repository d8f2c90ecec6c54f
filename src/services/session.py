"""Transcription session: live speech-to-text capture.

Owns the Stopped/Listening lifecycle and the transcript buffer. Recognizer
callbacks may arrive on a worker thread, so they are queued and applied in
delivery order by ``sync()`` on the thread that renders the page.

Usage::

    session = TranscriptionSession(create_recognizer("microphone"))
    session.start()
    ...
    session.sync()
    print(session.text)
"""

import logging
import queue

from src.core.exceptions import RecognizerAlreadyActiveError, SpeechCapabilityError
from src.core.models import ListeningState, RecognitionEvent
from src.services.speech.base import BaseRecognizer

logger = logging.getLogger(__name__)


class TranscriptionSession:
    """Manages one page's speech capture and transcript buffer.

    Args:
        recognizer: Speech capability. An unavailable recognizer turns
            ``start()``/``stop()`` into silent no-ops.
    """

    def __init__(self, recognizer: BaseRecognizer) -> None:
        self._recognizer = recognizer
        self._state = ListeningState.stopped
        self._text = ""
        self._events: queue.SimpleQueue[RecognitionEvent] = queue.SimpleQueue()
        self._errors: queue.SimpleQueue[SpeechCapabilityError] = queue.SimpleQueue()
        self._last_error: str | None = None
        # Results delivered before the last clear(); hidden from the transcript
        self._seen_results = 0
        self._hidden_results = 0

    # -- accessors ---------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def state(self) -> ListeningState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return self._state is ListeningState.listening

    @property
    def is_available(self) -> bool:
        return self._recognizer.is_available()

    @property
    def last_error(self) -> str | None:
        """Detail of the most recent non-fatal recognition error, if any."""
        return self._last_error

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        """Begin capture. Idempotent; a no-op without a speech capability."""
        if self.is_listening:
            return
        if not self._recognizer.is_available():
            logger.debug("Speech recognition unavailable; start ignored")
            return

        try:
            self._recognizer.start(self.handle_event, self.handle_error)
        except RecognizerAlreadyActiveError:
            # The engine is already capturing for us; treat as listening.
            logger.debug("Recognizer already started")
        except SpeechCapabilityError as exc:
            logger.warning("Could not start speech recognition: %s", exc.detail)
            return
        else:
            # A fresh recognizer run numbers its results from zero
            self._seen_results = 0
            self._hidden_results = 0

        self._state = ListeningState.listening
        logger.info("Transcription session listening")

    def stop(self) -> None:
        """End capture. Pending events already delivered are still applied."""
        if not self.is_listening:
            return
        self._recognizer.stop()
        self._state = ListeningState.stopped
        logger.info("Transcription session stopped")

    def toggle(self) -> None:
        if self.is_listening:
            self.stop()
        else:
            self.start()

    def clear(self) -> None:
        """Empty the transcript without interrupting capture.

        Results already recognized stay hidden when later events repeat them.
        """
        self.sync()
        self._hidden_results = self._seen_results
        self._text = ""

    def close(self) -> None:
        """Release the recognizer on page teardown."""
        self.stop()

    # -- recognizer callbacks ---------------------------------------------

    def handle_event(self, event: RecognitionEvent) -> None:
        """Queue a recognition event (safe to call from any thread)."""
        self._events.put(event)

    def handle_error(self, error: SpeechCapabilityError) -> None:
        """Queue a non-fatal recognition error (safe to call from any thread)."""
        self._errors.put(error)

    def sync(self) -> str:
        """Apply queued events in delivery order and return the transcript.

        Each event holds the full transcript, so the last one wins.
        """
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                break
            self._seen_results = len(event.results)
            if self._hidden_results:
                visible = event.results[self._hidden_results :]
                self._text = "".join(r.transcript for r in visible).lstrip()
            else:
                self._text = event.transcript

        while True:
            try:
                error = self._errors.get_nowait()
            except queue.Empty:
                break
            self._last_error = error.detail

        return self._text
