"""Visualizer state and its pure transition functions.

Every function takes a ``VisualizerState`` and returns a new one; nothing
here performs I/O or reads the clock. ``VisualizationPipeline`` owns the
current value and threads time in explicitly, which keeps the cooldown and
single-flight rules testable on their own.

Invariants:
    * ``cursor == -1`` iff ``history`` is empty
    * otherwise ``0 <= cursor < len(history)``
    * ``generation`` is ``loading`` for at most one accepted request
"""

import math
from dataclasses import dataclass, replace
from typing import Literal

from src.core.models import (
    GenerationState,
    ImageReference,
    ImageSource,
    MessageKind,
    StatusMessage,
)

Direction = Literal["prev", "next"]


@dataclass(frozen=True)
class VisualizerState:
    """Snapshot of everything the visualization card renders."""

    history: tuple[ImageReference, ...] = ()
    cursor: int = -1
    generation: GenerationState = GenerationState.idle
    using_fallback: bool = False
    last_generation_at: float | None = None
    message: StatusMessage | None = None

    @property
    def is_loading(self) -> bool:
        return self.generation is GenerationState.loading

    @property
    def current_image(self) -> ImageReference | None:
        if self.cursor < 0:
            return None
        return self.history[self.cursor]


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------


def cooldown_remaining(state: VisualizerState, now: float, cooldown: float) -> int:
    """Whole seconds left before another request is accepted (0 = ready).

    Rounds up, so a request 59.2 s after the last one reports 1 second.
    """
    if state.last_generation_at is None:
        return 0
    elapsed = now - state.last_generation_at
    if elapsed >= cooldown:
        return 0
    return math.ceil(cooldown - elapsed)


def accept_generation(state: VisualizerState, now: float) -> VisualizerState:
    """Enter ``loading`` and stamp the cooldown window at acceptance time.

    The stamp is kept even if the request later fails, so failed attempts
    count against the window too.
    """
    return replace(
        state,
        generation=GenerationState.loading,
        last_generation_at=now,
        message=None,
    )


def complete_generation(
    state: VisualizerState, image: ImageReference
) -> VisualizerState:
    """Append ``image``, point the cursor at it and return to ``idle``."""
    history = (*state.history, image)
    return replace(
        state,
        history=history,
        cursor=len(history) - 1,
        generation=GenerationState.idle,
        using_fallback=image.source is ImageSource.fallback,
    )


def release_generation(state: VisualizerState) -> VisualizerState:
    """Return to ``idle`` without touching the history."""
    return replace(state, generation=GenerationState.idle)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def post_message(
    state: VisualizerState,
    text: str,
    kind: MessageKind,
    now: float,
    ttl: float,
) -> VisualizerState:
    message = StatusMessage(text=text, kind=kind, expires_at=now + ttl)
    return replace(state, message=message)


def visible_message(state: VisualizerState, now: float) -> str | None:
    """Text of the current message, or None once it has expired."""
    if state.message is None or not state.message.is_visible(now):
        return None
    return state.message.text


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


def navigate(state: VisualizerState, direction: Direction) -> VisualizerState:
    """Move the cursor one step, staying inside the history."""
    if direction == "prev" and state.cursor > 0:
        return replace(state, cursor=state.cursor - 1)
    if direction == "next" and state.cursor < len(state.history) - 1:
        return replace(state, cursor=state.cursor + 1)
    return state


def select_index(state: VisualizerState, index: int) -> VisualizerState:
    if 0 <= index < len(state.history):
        return replace(state, cursor=index)
    return state


def clear(state: VisualizerState) -> VisualizerState:
    """Drop the history, the fallback flag and any message.

    The cooldown window survives a clear.
    """
    return VisualizerState(last_generation_at=state.last_generation_at)
