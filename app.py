import logging
from contextlib import contextmanager
from typing import Any, Dict, List

import streamlit as st

from microbiome.data import DashboardData, load_dashboard_data, sample_ids
from microbiome.errors import DatasetLoadError, RecordNotFoundError
from microbiome.metrics_metadata import compute_metadata
from microbiome.metrics_sample import compute_sample
from microbiome.normalize import FEATURES, feature_label
from microbiome.selection import TOP_N_DEFAULT, TOP_N_MAX, normalize_selection

logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-text {font-size: 0.95rem;color: #374151;line-height: 1.6;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_info_card(rows: List[Dict[str, Any]]):
    lines = "<br />".join(f"{row['label']} : {row['value']}" for row in rows)
    st.markdown(f"<span class='card-text'>{lines}</span>", unsafe_allow_html=True)


@st.cache_resource(show_spinner="Loading samples dataset...")
def get_dashboard_data() -> DashboardData:
    return load_dashboard_data()


# ---------- UI setup ----------
st.set_page_config(page_title="Navel Biodiversity Dashboard", layout="wide")
inject_base_styles()
st.title("Belly Button Biodiversity")
st.caption("Bacterial species found in volunteers' navel samples, with their demographic metadata.")

try:
    data = get_dashboard_data()
except DatasetLoadError as exc:
    logger.exception("dataset load failed")
    st.error(f"Could not load the samples dataset: {exc}")
    st.stop()

samples = sample_ids(data)
if not samples:
    st.error("The samples dataset has no volunteers.")
    st.stop()

# ----- Sidebar: selectors -----
with st.sidebar:
    st.markdown("### Volunteer")
    selected_sample = st.selectbox("Sample", options=samples, index=0)
    st.markdown("---")
    st.markdown("### Demographics")
    selected_feature = st.selectbox("Metadata feature", options=FEATURES, index=0, format_func=feature_label)
    with st.expander("Advanced settings", expanded=False):
        top_n = st.slider("Top N species", min_value=1, max_value=TOP_N_MAX, value=TOP_N_DEFAULT, step=1)

selection = normalize_selection(
    {"sample_id": selected_sample, "feature": selected_feature, "top_n": top_n},
    available_samples=samples,
)


# ----- Page renderers -----
def render_sample_section():
    try:
        payload = compute_sample(selection, data)
    except RecordNotFoundError as exc:
        st.warning(str(exc))
        return

    cols = st.columns([1, 2])
    with cols[0]:
        with card(f"Volunteer {payload['sample_id']}"):
            render_info_card(payload["info_card"])
        with card(payload["gauge"]["title"]):
            st.vega_lite_chart(payload["charts"]["gauge"], use_container_width=True)
    with cols[1]:
        with card(payload["top_species"]["title"]):
            if not payload["top_species"]["x"]:
                st.info("No species recorded for this sample.")
            else:
                st.vega_lite_chart(payload["charts"]["top_species"], use_container_width=True)

    with card(payload["bubble"]["title"]):
        st.vega_lite_chart(payload["charts"]["bubble"], use_container_width=True)


def render_metadata_section():
    payload = compute_metadata(selection, data)
    with card(payload["title"]):
        st.vega_lite_chart(payload["charts"]["distribution"], use_container_width=True)
        if payload["unknown"]:
            st.caption(f"{payload['unknown']} of {payload['volunteers']} volunteers have an unknown {payload['x_title'].lower()}.")


render_sample_section()
render_metadata_section()
