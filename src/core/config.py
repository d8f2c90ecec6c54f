"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

# Value shipped in .env.example; treated the same as an empty key.
API_KEY_PLACEHOLDER = "your_openai_api_key_here"


class Settings(BaseSettings):
    """Story Visualizer settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        openai_api_key: Key for the image-generation service. Empty means
            every request goes straight to the local placeholder generator.
        generation_cooldown_seconds: Minimum gap between accepted requests.
        speech_provider: Speech capability ("microphone" or "none").
        speech_engine: Recognizer used per phrase ("google" or "whisper").
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Image generation ---
    image_provider: str = "openai"
    openai_api_key: str = ""
    openai_base_url: str = ""  # Empty = SDK default (or OPENAI_BASE_URL)
    image_model: str = "dall-e-3"
    image_size: str = "1024x1024"
    prompt_excerpt_chars: int = 200  # Trailing characters of the transcript sent as prompt

    # --- Rate limiting & fallback ---
    generation_cooldown_seconds: float = 60.0
    fallback_delay_seconds: float = 2.0  # Simulated latency of the placeholder path
    local_message_seconds: float = 3.0  # Lifetime of the "please wait" message
    remote_message_seconds: float = 5.0  # Lifetime of remote error messages

    # --- Placeholder images ---
    placeholder_base_url: str = "https://placehold.co"
    placeholder_size: str = "400x400"

    # --- Speech recognition ---
    speech_provider: str = "microphone"  # "none" disables capture entirely
    speech_engine: str = "google"  # "google" web API or "whisper" (local faster-whisper)
    speech_language: str = "en-US"
    whisper_model: str = "base"  # Model size: tiny, base, small, medium, large-v3
    phrase_time_limit: float = 5.0  # Max seconds of audio per recognized phrase

    # --- Application ---
    auto_generate_seconds: int = 0  # 0 = manual trigger only
    log_level: str = "INFO"  # Python logging level


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
