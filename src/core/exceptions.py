"""
Story Visualizer exception hierarchy.

All application-specific exceptions inherit from StoryVisualizerError.
None of them reach the page: the transcription session and the
visualization pipeline absorb them and turn them into state.
"""

from datetime import UTC, datetime


class StoryVisualizerError(Exception):
    """Base exception for all Story Visualizer errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "STORY_VISUALIZER_ERROR",
    ) -> None:
        self.detail = detail
        self.code = code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class SpeechCapabilityError(StoryVisualizerError):
    """Raised when the speech recognizer cannot capture or recognize audio."""

    def __init__(self, detail: str = "Speech recognition is unavailable") -> None:
        super().__init__(detail=detail, code="SPEECH_CAPABILITY_ERROR")


class RecognizerAlreadyActiveError(StoryVisualizerError):
    """Raised when a recognizer is started while it is already listening."""

    def __init__(self) -> None:
        super().__init__(
            detail="Speech recognition has already started",
            code="RECOGNIZER_ALREADY_ACTIVE",
        )


class ImageGenerationError(StoryVisualizerError):
    """Raised when the remote image service rejects or fails a request.

    Attributes:
        status_code: HTTP status reported by the service, if any.
    """

    def __init__(
        self,
        detail: str = "Image generation failed",
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(detail=detail, code="IMAGE_GENERATION_ERROR")
