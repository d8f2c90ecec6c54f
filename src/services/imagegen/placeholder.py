"""Local placeholder image generator.

Used whenever the remote image service is unconfigured or fails. Picks a
theme by trigger keyword, then builds a placeholder URL colored for that
theme. The freshness token (epoch milliseconds) selects the caption word and
is embedded in the URL, so similar text still yields distinct images.
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

from src.core.config import get_settings
from src.core.models import Placeholder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Theme:
    """A placeholder theme: when it applies and how it looks."""

    name: str
    color: str
    triggers: tuple[str, ...]
    words: tuple[str, ...]


# Checked in order; the first theme with a trigger in the text wins.
THEMES: tuple[Theme, ...] = (
    Theme(
        name="nature",
        color="10b981",
        triggers=("forest", "tree", "nature"),
        words=("forest", "mountain", "ocean", "sunset", "meadow"),
    ),
    Theme(
        name="fantasy",
        color="8b5cf6",
        triggers=("magic", "dragon", "castle"),
        words=("castle", "dragon", "magic", "wizard", "kingdom"),
    ),
    Theme(
        name="adventure",
        color="f59e0b",
        triggers=("journey", "adventure", "travel"),
        words=("journey", "quest", "exploration", "discovery", "travel"),
    ),
    Theme(
        name="emotions",
        color="ec4899",
        triggers=("love", "happy", "joy"),
        words=("joy", "love", "friendship", "hope", "courage"),
    ),
    Theme(
        name="mystery",
        color="6366f1",
        triggers=("dark", "night", "mystery"),
        words=("night", "shadow", "secret", "mysterious", "dark"),
    ),
)

# Nothing matched: nature's words on a neutral blue.
DEFAULT_THEME = Theme(
    name="nature",
    color="3b82f6",
    triggers=(),
    words=THEMES[0].words,
)


def match_theme(text: str) -> Theme:
    """Return the first theme whose trigger occurs in ``text`` (case-insensitive)."""
    lowered = text.lower()
    for theme in THEMES:
        if any(trigger in lowered for trigger in theme.triggers):
            return theme
    return DEFAULT_THEME


def build_placeholder(
    text: str,
    now: float,
    base_url: str | None = None,
    size: str | None = None,
) -> Placeholder:
    """Build a placeholder image for ``text``.

    Args:
        text: Story text used for theme matching.
        now: Current time in epoch seconds; the freshness token.
        base_url: Placeholder service root (defaults to settings).
        size: ``WIDTHxHEIGHT`` (defaults to settings).

    Returns:
        Placeholder with the matched theme, its color, the caption word and
        the final URI.
    """
    if base_url is None or size is None:
        settings = get_settings()
        base_url = base_url or settings.placeholder_base_url
        size = size or settings.placeholder_size
    base_url = base_url.rstrip("/")

    theme = match_theme(text)
    token = int(now * 1000)
    word = theme.words[token % len(theme.words)]
    query = urlencode({"text": word, "t": token})
    uri = f"{base_url}/{size}/{theme.color}/ffffff/png?{query}"

    logger.debug("Placeholder theme=%s word=%s", theme.name, word)
    return Placeholder(theme=theme.name, color=theme.color, word=word, uri=uri)
