"""Shared pytest fixtures for the Story Visualizer test suite.

Provides fake speech recognizers, a mock image generator, a controllable
clock and test settings, so no microphone, network or model is needed.
"""

from unittest.mock import AsyncMock

import pytest

from src.core.config import Settings
from src.core.exceptions import RecognizerAlreadyActiveError
from src.core.models import RecognitionAlternative, RecognitionEvent, RecognitionResult
from src.services.speech.base import BaseRecognizer

# ---------------------------------------------------------------------------
# Settings / time
# ---------------------------------------------------------------------------


@pytest.fixture
def settings():
    """Settings with defaults that keep tests fast (no fallback delay)."""
    return Settings(
        _env_file=None,
        openai_api_key="sk-test-key",
        fallback_delay_seconds=0.0,
    )


class FakeClock:
    """Callable clock returning a controllable epoch time."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_sleep():
    """Async mock replacing ``asyncio.sleep`` in the fallback path."""
    return AsyncMock()


# ---------------------------------------------------------------------------
# Image generator
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_generator():
    """Create a mock image provider for unit testing.

    Returns:
        AsyncMock: A configured provider implementing BaseImageGenerator
        whose ``generate`` returns a fixed URL.
    """
    from src.services.imagegen.base import BaseImageGenerator

    generator = AsyncMock(spec=BaseImageGenerator)
    generator.is_configured.return_value = True
    generator.generate.return_value = "https://images.example.com/story.png"
    return generator


# ---------------------------------------------------------------------------
# Speech recognizer
# ---------------------------------------------------------------------------


class FakeRecognizer(BaseRecognizer):
    """In-memory recognizer; tests push events with ``emit``.

    Mimics engines that reject a second ``start`` while capturing.
    """

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.active = False
        self.start_calls = 0
        self.stop_calls = 0
        self.on_event = None
        self.on_error = None

    def is_available(self) -> bool:
        return self.available

    def start(self, on_event, on_error=None) -> None:
        self.start_calls += 1
        if self.active:
            raise RecognizerAlreadyActiveError()
        self.active = True
        self.on_event = on_event
        self.on_error = on_error

    def stop(self) -> None:
        self.stop_calls += 1
        self.active = False

    def emit(self, *transcripts: str, is_final: bool = True) -> None:
        """Deliver one event whose results carry ``transcripts`` in order."""
        results = tuple(
            RecognitionResult(
                alternatives=(RecognitionAlternative(transcript=t),),
                is_final=is_final,
            )
            for t in transcripts
        )
        self.on_event(RecognitionEvent(results=results))


@pytest.fixture
def fake_recognizer():
    return FakeRecognizer()


@pytest.fixture
def missing_recognizer():
    """A recognizer reporting that no speech capability exists."""
    return FakeRecognizer(available=False)
