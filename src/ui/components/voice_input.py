"""
Voice input card: recording controls, status message and live transcript.

The transcript box is a fragment that polls the session once per second
while listening, so new speech appears without a full page rerun.
"""

import logging
import time

import streamlit as st

from src.core.config import get_settings
from src.core.models import GenerationStatus
from src.ui.utils import clear_all, get_pipeline, get_session, run_async

logger = logging.getLogger(__name__)

_EMPTY_HINT = "Start speaking to see your story appear here..."


def render_voice_input() -> None:
    """Render the full voice input card."""
    session = get_session()
    session.sync()

    with st.container(border=True):
        st.subheader(":material/mic: Voice Input")
        _render_controls()
        _render_status()
        _render_generate_button()
        _render_transcript()


def _render_controls() -> None:
    session = get_session()

    col1, col2 = st.columns([5, 1])
    with col1:
        if session.is_listening:
            label, icon, kind = "Stop Recording", ":material/mic_off:", "secondary"
        else:
            label, icon, kind = "Start Recording", ":material/mic:", "primary"
        if st.button(label, icon=icon, type=kind, width="stretch"):
            session.toggle()
            if not session.is_available:
                st.toast("Speech recognition is not available on this machine.")
            st.rerun()
    with col2:
        if st.button(":material/close:", help="Clear text and images", width="stretch"):
            clear_all()
            st.rerun()


@st.fragment(run_every=1.0)
def _render_status() -> None:
    """Ephemeral status message; re-checked every second so it expires on screen."""
    message = get_pipeline().message()
    if message:
        st.warning(message)

    error = get_session().last_error
    if error and get_session().is_listening:
        st.caption(f":material/error: {error}")


def _render_generate_button() -> None:
    session = get_session()
    pipeline = get_pipeline()

    if not session.text:
        return

    label = "Generating..." if pipeline.is_loading else "Generate Image"
    if st.button(
        label,
        icon=":material/auto_fix_high:",
        type="primary",
        disabled=pipeline.is_loading,
        width="stretch",
    ):
        _generate(session.text)


def _generate(text: str) -> None:
    """Run one generation request behind a spinner and report local rejections."""
    pipeline = get_pipeline()
    with st.spinner("Creating your visualization... This may take a moment"):
        outcome = run_async(pipeline.request_generation(text))

    if outcome.status is GenerationStatus.empty_input:
        st.info("Please speak some text first!")
        return
    if outcome.status in (GenerationStatus.generated, GenerationStatus.fallback):
        st.rerun()


def _render_transcript() -> None:
    session = get_session()
    run_every = 1.0 if session.is_listening else None

    @st.fragment(run_every=run_every)
    def _transcript_box() -> None:
        previous = session.text
        text = session.sync()
        if bool(previous) != bool(text):
            # The generate button appears/disappears with the text
            st.rerun(scope="app")

        if session.is_listening:
            st.markdown(
                '<span class="recording-badge">Recording</span>',
                unsafe_allow_html=True,
            )
        with st.container(height=220, border=True):
            if text:
                st.write(text)
            else:
                st.caption(f"*{_EMPTY_HINT}*")

        _maybe_auto_generate(text)

    _transcript_box()


def _maybe_auto_generate(text: str) -> None:
    """Auto-visualize mode: request an image on a fixed interval while there is text."""
    interval = get_settings().auto_generate_seconds
    pipeline = get_pipeline()
    if interval <= 0 or not text.strip() or pipeline.is_loading:
        return

    last = pipeline.state.last_generation_at
    if pipeline.cooldown_remaining() > 0:
        return
    if last is not None and time.time() - last < interval:
        return

    outcome = run_async(pipeline.request_generation(text))
    logger.debug("Auto-generation finished: %s", outcome.status)
    if outcome.status in (GenerationStatus.generated, GenerationStatus.fallback):
        st.rerun(scope="app")
