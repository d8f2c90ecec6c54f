"""
OpenAI image provider implementation.

Uses the OpenAI Python SDK (``openai.AsyncOpenAI``) to call the Images API.
Every SDK exception is translated to ``ImageGenerationError`` carrying the
HTTP status and the service's message, which the pipeline classifies.
"""

import logging

from openai import APIConnectionError, APIStatusError, AsyncOpenAI, OpenAIError

from src.core.config import API_KEY_PLACEHOLDER, get_settings
from src.core.exceptions import ImageGenerationError
from src.services.imagegen.base import BaseImageGenerator

logger = logging.getLogger(__name__)


class OpenAIImageGenerator(BaseImageGenerator):
    """DALL-E image provider. Issues exactly one request per ``generate`` call.

    A fresh client is opened per call; pooled connections are bound to the
    event loop that created them.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        size: str | None = None,
        base_url: str | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.openai_api_key
        self._model = model or settings.image_model
        self._size = size or settings.image_size
        self._base_url = base_url or settings.openai_base_url or None

    def is_configured(self) -> bool:
        return bool(self._api_key) and self._api_key != API_KEY_PLACEHOLDER

    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate one image and return its URL."""
        if not self.is_configured():
            raise ImageGenerationError("OpenAI API key is not configured")

        try:
            async with AsyncOpenAI(api_key=self._api_key, base_url=self._base_url) as client:
                response = await client.images.generate(
                    model=kwargs.get("model", self._model),
                    size=kwargs.get("size", self._size),
                    prompt=prompt,
                    n=1,
                )
        except APIStatusError as exc:
            logger.warning("OpenAI API error (%s): %s", exc.status_code, exc.message)
            raise ImageGenerationError(
                detail=exc.message, status_code=exc.status_code
            ) from exc
        except APIConnectionError as exc:
            logger.warning("OpenAI API connection error: %s", exc)
            raise ImageGenerationError(f"Failed to connect to OpenAI API: {exc}") from exc
        except OpenAIError as exc:
            logger.error("Unexpected OpenAI API error: %s", exc)
            raise ImageGenerationError(f"OpenAI API error: {exc}") from exc

        if not response.data or not response.data[0].url:
            raise ImageGenerationError("OpenAI API returned no image URL")
        return response.data[0].url
