"""
Abstract base class for image-generation providers.

All image services (OpenAI, etc.) must implement this interface, so the
visualization pipeline can be exercised with fakes and swap vendors freely.
"""

from abc import ABC, abstractmethod


class BaseImageGenerator(ABC):
    """Interface that every image-generation provider must implement."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the provider has the credentials it needs.

        An unconfigured provider is never called; the pipeline goes straight
        to the local placeholder instead.
        """

    @abstractmethod
    async def generate(self, prompt: str, **kwargs) -> str:
        """Generate a single image for ``prompt``.

        Args:
            prompt: Instruction sent to the model.
            **kwargs: Provider-specific options (size, model, etc.).

        Returns:
            URI of the generated image.

        Raises:
            ImageGenerationError: If the service rejects or fails the request.
        """
