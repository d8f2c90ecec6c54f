"""
Image generation module - text-to-image abstraction layer.

Factory function for creating image generators based on provider configuration.
"""

from .base import BaseImageGenerator

__all__ = ["BaseImageGenerator", "create_image_generator"]


def create_image_generator(provider: str, **kwargs) -> BaseImageGenerator:
    """
    Factory function to create an image generator based on provider.

    Args:
        provider: Image provider name ("openai")
        **kwargs: Provider-specific configuration

    Returns:
        BaseImageGenerator implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "openai":
        from .openai_images import OpenAIImageGenerator

        return OpenAIImageGenerator(**kwargs)
    else:
        raise ValueError(f"Unknown image provider: {provider}")
