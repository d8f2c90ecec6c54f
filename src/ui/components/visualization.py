"""
Visualization card: current image, history navigation and thumbnails.
"""

import streamlit as st

from src.ui.utils import get_pipeline

INITIAL_IMAGE_URL = "https://placehold.co/400x400"


def render_visualization(thumbnail_columns: int = 4) -> None:
    """Render the generated image card for this tab's pipeline.

    Args:
        thumbnail_columns: Thumbnails per row in the history grid.
    """
    pipeline = get_pipeline()

    with st.container(border=True):
        col1, col2 = st.columns([4, 1])
        with col1:
            st.subheader(":material/image: Generated Visualization")
        with col2:
            if pipeline.using_fallback:
                st.markdown(
                    '<span class="demo-badge">Demo Mode</span>',
                    unsafe_allow_html=True,
                )

        current = pipeline.current_image
        st.image(
            current.uri if current else INITIAL_IMAGE_URL,
            caption="Generated story visualization",
            width="stretch",
        )

        if pipeline.history:
            _render_navigation()
            _render_thumbnails(thumbnail_columns)


def _render_navigation() -> None:
    pipeline = get_pipeline()
    cursor = pipeline.cursor
    total = len(pipeline.history)

    prev_col, counter_col, next_col = st.columns([1, 2, 1])
    with prev_col:
        if st.button(":material/chevron_left:", key="nav_prev", disabled=cursor <= 0):
            pipeline.navigate("prev")
            st.rerun()
    with counter_col:
        st.markdown(
            f'<p class="image-counter">{cursor + 1} of {total}</p>',
            unsafe_allow_html=True,
        )
    with next_col:
        if st.button(":material/chevron_right:", key="nav_next", disabled=cursor >= total - 1):
            pipeline.navigate("next")
            st.rerun()


def _render_thumbnails(columns: int) -> None:
    pipeline = get_pipeline()
    history = pipeline.history

    for row_start in range(0, len(history), columns):
        cols = st.columns(columns)
        for offset, col in enumerate(cols):
            index = row_start + offset
            if index >= len(history):
                break
            with col:
                st.image(history[index].uri, width="stretch")
                selected = index == pipeline.cursor
                if st.button(
                    f"{index + 1}",
                    key=f"thumb_{index}",
                    type="primary" if selected else "secondary",
                    width="stretch",
                ):
                    pipeline.select_index(index)
                    st.rerun()
