"""
Pydantic v2 models and enums shared by the services and the UI.

Speech: RecognitionAlternative, RecognitionResult, RecognitionEvent
Images: ImageReference, Placeholder
Outcome: StatusMessage, GenerationOutcome
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------


class ListeningState(StrEnum):
    """Lifecycle of a transcription session."""

    stopped = "stopped"
    listening = "listening"


class GenerationState(StrEnum):
    """Whether an image request is in flight."""

    idle = "idle"
    loading = "loading"


class GenerationStatus(StrEnum):
    """How a ``request_generation`` call ended."""

    generated = "generated"
    fallback = "fallback"
    empty_input = "empty_input"
    rate_limited = "rate_limited"
    busy = "busy"


class RemoteErrorKind(StrEnum):
    """Classification of image service failures, used for messaging only."""

    billing_limit = "billing_limit"
    quota_exceeded = "quota_exceeded"
    rate_limited = "rate_limited"
    other = "other"


class MessageKind(StrEnum):
    """Origin of an ephemeral status message."""

    local = "local"
    remote = "remote"


class ImageSource(StrEnum):
    """Where an image reference came from."""

    remote = "remote"
    fallback = "fallback"


# ---------------------------------------------------------------------------
# Speech recognition
# ---------------------------------------------------------------------------


class RecognitionAlternative(BaseModel):
    """One candidate transcript for a recognized utterance."""

    model_config = ConfigDict(frozen=True)

    transcript: str
    confidence: float = 0.0


class RecognitionResult(BaseModel):
    """A recognized utterance with alternatives ordered best-first."""

    model_config = ConfigDict(frozen=True)

    alternatives: tuple[RecognitionAlternative, ...] = ()
    is_final: bool = False

    @property
    def transcript(self) -> str:
        """Top alternative's transcript, or "" when there are none."""
        return self.alternatives[0].transcript if self.alternatives else ""


class RecognitionEvent(BaseModel):
    """Everything the recognizer knows so far, in utterance order."""

    model_config = ConfigDict(frozen=True)

    results: tuple[RecognitionResult, ...] = ()

    @property
    def transcript(self) -> str:
        return "".join(result.transcript for result in self.results)


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


class ImageReference(BaseModel):
    """An entry of the image history. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    uri: str
    created_at: datetime
    source: ImageSource = ImageSource.remote
    theme: str | None = None


class Placeholder(BaseModel):
    """Output of the local placeholder generator."""

    model_config = ConfigDict(frozen=True)

    theme: str
    color: str
    word: str
    uri: str


# ---------------------------------------------------------------------------
# Pipeline outcome
# ---------------------------------------------------------------------------


class StatusMessage(BaseModel):
    """A user-visible message that disappears at ``expires_at`` (epoch seconds)."""

    model_config = ConfigDict(frozen=True)

    text: str
    kind: MessageKind
    expires_at: float

    def is_visible(self, now: float) -> bool:
        return now < self.expires_at


class GenerationOutcome(BaseModel):
    """Result of ``VisualizationPipeline.request_generation``.

    ``retry_after`` is set for ``rate_limited``; ``error_kind`` is set when a
    remote failure was absorbed by the fallback path.
    """

    model_config = ConfigDict(frozen=True)

    status: GenerationStatus
    image: ImageReference | None = None
    retry_after: int | None = None
    error_kind: RemoteErrorKind | None = None
    message: str | None = None
