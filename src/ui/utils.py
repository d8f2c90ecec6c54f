"""UI utility functions.

Services live in ``st.session_state`` so each browser tab keeps its own
transcript and image history across Streamlit reruns.
"""

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

import streamlit as st

from src.core.config import get_settings
from src.services.imagegen import create_image_generator
from src.services.pipeline import VisualizationPipeline
from src.services.session import TranscriptionSession
from src.services.speech import UnavailableRecognizer, create_recognizer

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_session() -> TranscriptionSession:
    """Return this tab's transcription session, creating it on first use."""
    if "transcription_session" not in st.session_state:
        settings = get_settings()
        try:
            recognizer = create_recognizer(settings.speech_provider)
        except ValueError:
            logger.exception("Invalid speech provider; speech capture disabled")
            recognizer = UnavailableRecognizer()
        st.session_state.transcription_session = TranscriptionSession(recognizer)
    return st.session_state.transcription_session


def get_pipeline() -> VisualizationPipeline:
    """Return this tab's visualization pipeline, creating it on first use."""
    if "visualization_pipeline" not in st.session_state:
        settings = get_settings()
        try:
            generator = create_image_generator(settings.image_provider)
        except ValueError:
            logger.exception("Invalid image provider; using placeholder images only")
            generator = None
        st.session_state.visualization_pipeline = VisualizationPipeline(generator)
    return st.session_state.visualization_pipeline


def clear_all() -> None:
    """Reset transcript and image history together."""
    get_session().clear()
    get_pipeline().clear()


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Drive a coroutine to completion from a (synchronous) Streamlit script."""
    return asyncio.run(coro)
