"""
Speech module - continuous speech recognition abstraction layer.

Factory function for creating recognizers based on provider configuration.
"""

from .base import BaseRecognizer, UnavailableRecognizer

__all__ = ["BaseRecognizer", "UnavailableRecognizer", "create_recognizer"]


def create_recognizer(provider: str, **kwargs) -> BaseRecognizer:
    """
    Factory function to create a recognizer based on provider.

    Args:
        provider: Speech provider name ("microphone", "none")
        **kwargs: Provider-specific configuration

    Returns:
        BaseRecognizer implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "microphone":
        from .microphone import MicrophoneRecognizer

        return MicrophoneRecognizer(**kwargs)
    elif provider == "none":
        return UnavailableRecognizer()
    else:
        raise ValueError(f"Unknown speech provider: {provider}")
