"""Visualization pipeline: story text in, displayed image out.

Gates requests (blank text, single-flight, cooldown), calls the remote image
service once, and falls back to the local placeholder generator whenever the
service is unconfigured or fails. Nothing raised by the service reaches the
caller: every accepted request ends with an image appended to the history
and the pipeline back in ``idle``.

Usage::

    pipeline = VisualizationPipeline(create_image_generator("openai"))
    outcome = await pipeline.request_generation(session.text)
    pipeline.navigate("prev")
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from src.core import state as transitions
from src.core.config import Settings, get_settings
from src.core.exceptions import ImageGenerationError
from src.core.models import (
    GenerationOutcome,
    GenerationStatus,
    ImageReference,
    ImageSource,
    MessageKind,
    RemoteErrorKind,
)
from src.core.state import Direction, VisualizerState
from src.services.imagegen.base import BaseImageGenerator
from src.services.imagegen.placeholder import build_placeholder

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = "Generate a beautiful, artistic image based on this story excerpt: {excerpt}"

REMOTE_ERROR_MESSAGES: dict[RemoteErrorKind, str] = {
    RemoteErrorKind.billing_limit: "OpenAI billing limit reached. Using demo images.",
    RemoteErrorKind.quota_exceeded: "OpenAI quota exceeded. Using demo images.",
    RemoteErrorKind.rate_limited: "Rate limit reached. Using demo images. Try again in a minute.",
    RemoteErrorKind.other: "API error. Using demo images.",
}


def classify_generation_error(exc: Exception) -> RemoteErrorKind:
    """Map an image service failure to a user-facing category."""
    message = str(exc)
    status_code = getattr(exc, "status_code", None)
    if "Billing hard limit" in message:
        return RemoteErrorKind.billing_limit
    if "quota" in message:
        return RemoteErrorKind.quota_exceeded
    if status_code == 429 or "Too Many Requests" in message:
        return RemoteErrorKind.rate_limited
    return RemoteErrorKind.other


def build_prompt(text: str, excerpt_chars: int) -> str:
    """Wrap the trailing ``excerpt_chars`` characters of ``text`` in the prompt."""
    return PROMPT_TEMPLATE.format(excerpt=text[-excerpt_chars:])


class VisualizationPipeline:
    """Turns transcript text into a navigable history of images.

    Args:
        generator: Remote image service, or None to always use placeholders.
        settings: Optional Settings instance (defaults to get_settings()).
        clock: Returns epoch seconds; injectable for tests.
        sleep: Awaitable delay used by the fallback path.
    """

    def __init__(
        self,
        generator: BaseImageGenerator | None,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._generator = generator
        self._settings = settings or get_settings()
        self._clock = clock
        self._sleep = sleep
        self._state = VisualizerState()

    # -- accessors ---------------------------------------------------------

    @property
    def state(self) -> VisualizerState:
        return self._state

    @property
    def history(self) -> tuple[ImageReference, ...]:
        return self._state.history

    @property
    def cursor(self) -> int:
        return self._state.cursor

    @property
    def current_image(self) -> ImageReference | None:
        return self._state.current_image

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def using_fallback(self) -> bool:
        return self._state.using_fallback

    @property
    def remote_enabled(self) -> bool:
        """True when requests go to the remote service before any fallback."""
        return self._generator is not None and self._generator.is_configured()

    def message(self, now: float | None = None) -> str | None:
        """Visible status message. Messages expire on their own."""
        return transitions.visible_message(self._state, self._clock() if now is None else now)

    def cooldown_remaining(self) -> int:
        return transitions.cooldown_remaining(
            self._state, self._clock(), self._settings.generation_cooldown_seconds
        )

    # -- generation --------------------------------------------------------

    async def request_generation(self, text: str) -> GenerationOutcome:
        """Request an image for ``text``. Never raises.

        Returns:
            GenerationOutcome describing whether the request was rejected
            locally, served by the remote service, or served by the fallback.
        """
        if not text.strip():
            return GenerationOutcome(status=GenerationStatus.empty_input)

        if self._state.is_loading:
            logger.debug("Generation already in flight; request dropped")
            return GenerationOutcome(status=GenerationStatus.busy)

        now = self._clock()
        remaining = transitions.cooldown_remaining(
            self._state, now, self._settings.generation_cooldown_seconds
        )
        if remaining > 0:
            message = f"Please wait {remaining} seconds before generating another image"
            self._state = transitions.post_message(
                self._state,
                message,
                MessageKind.local,
                now,
                self._settings.local_message_seconds,
            )
            return GenerationOutcome(
                status=GenerationStatus.rate_limited,
                retry_after=remaining,
                message=message,
            )

        self._state = transitions.accept_generation(self._state, now)
        try:
            return await self._generate(text)
        finally:
            # Loading must clear even if the coroutine was cancelled mid-request
            if self._state.is_loading:
                self._state = transitions.release_generation(self._state)

    async def _generate(self, text: str) -> GenerationOutcome:
        error_kind: RemoteErrorKind | None = None
        message: str | None = None

        if self.remote_enabled:
            prompt = build_prompt(text, self._settings.prompt_excerpt_chars)
            try:
                uri = await self._generator.generate(prompt)
            except ImageGenerationError as exc:
                logger.error("Image generation failed: %s", exc.detail)
                error_kind = classify_generation_error(exc)
            except Exception as exc:
                logger.exception("Unexpected image generation error")
                error_kind = classify_generation_error(exc)
            else:
                image = ImageReference(
                    uri=uri,
                    created_at=datetime.now(UTC),
                    source=ImageSource.remote,
                )
                self._state = transitions.complete_generation(self._state, image)
                return GenerationOutcome(status=GenerationStatus.generated, image=image)

            message = REMOTE_ERROR_MESSAGES[error_kind]
            self._state = transitions.post_message(
                self._state,
                message,
                MessageKind.remote,
                self._clock(),
                self._settings.remote_message_seconds,
            )

        logger.info("Using fallback image generation")
        await self._sleep(self._settings.fallback_delay_seconds)

        placeholder = build_placeholder(
            text,
            self._clock(),
            base_url=self._settings.placeholder_base_url,
            size=self._settings.placeholder_size,
        )
        image = ImageReference(
            uri=placeholder.uri,
            created_at=datetime.now(UTC),
            source=ImageSource.fallback,
            theme=placeholder.theme,
        )
        self._state = transitions.complete_generation(self._state, image)
        return GenerationOutcome(
            status=GenerationStatus.fallback,
            image=image,
            error_kind=error_kind,
            message=message,
        )

    # -- history -----------------------------------------------------------

    def navigate(self, direction: Direction) -> None:
        self._state = transitions.navigate(self._state, direction)

    def select_index(self, index: int) -> None:
        self._state = transitions.select_index(self._state, index)

    def clear(self) -> None:
        self._state = transitions.clear(self._state)
