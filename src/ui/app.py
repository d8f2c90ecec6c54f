"""
Story Visualizer Streamlit UI: main entry point.

Run with: ``streamlit run src/ui/app.py``
"""

# ---------------------------------------------------------------------------
# Ensure project root is on sys.path so ``from src.xxx`` imports work.
# Streamlit replaces sys.path[0] with the script directory (src/ui/),
# which removes the project root needed for absolute ``src.*`` imports.
# ---------------------------------------------------------------------------
import sys  # noqa: E402
from pathlib import Path  # noqa: E402

_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import logging  # noqa: E402

import streamlit as st  # noqa: E402

from src.core.config import get_settings  # noqa: E402
from src.ui.components.visualization import render_visualization  # noqa: E402
from src.ui.components.voice_input import render_voice_input  # noqa: E402
from src.ui.utils import get_pipeline, get_session  # noqa: E402

# ---------------------------------------------------------------------------
# Page config (must be first Streamlit call)
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Story Visualizer",
    page_icon="✨",
    layout="wide",
)

_settings = get_settings()
logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# ---------------------------------------------------------------------------
# Load custom CSS
# ---------------------------------------------------------------------------
_css_path = Path(__file__).parent / "assets" / "styles.css"
if _css_path.exists():
    st.html(f"<style>{_css_path.read_text()}</style>")

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
with st.sidebar:
    st.title("✨ Story Visualizer")
    st.caption("Speak your story and watch it come to life")
    st.divider()

    if get_session().is_available:
        st.success(f"Speech: {_settings.speech_engine} ({_settings.speech_language})")
    else:
        st.error("Speech: no microphone available")

    if not get_pipeline().remote_enabled:
        st.warning("Images: demo placeholders")
    else:
        st.success(f"Images: {_settings.image_model}")

    if _settings.auto_generate_seconds > 0:
        st.info(f"Auto-visualize every {_settings.auto_generate_seconds}s")

# ---------------------------------------------------------------------------
# Header
# ---------------------------------------------------------------------------
st.markdown(
    '<div class="hero"><div class="hero-icon">✨</div>'
    "<h1>Story Visualizer</h1>"
    "<p>Speak your story and watch it come to life</p></div>",
    unsafe_allow_html=True,
)

left, right = st.columns(2, gap="large")
with left:
    render_voice_input()
with right:
    render_visualization()
