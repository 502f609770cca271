# SafeGuard AI: Streamlit dashboard
# Run with: streamlit run safeguard/dashboard.py

import html
import logging
from datetime import datetime

import streamlit as st

from safeguard.charts import radar_figure, ranking_figure
from safeguard.client import ModerationClient
from safeguard.config import load_settings
from safeguard.models import AnalysisResult
from safeguard.presentation import (
    RING_CIRCUMFERENCE,
    badge_for,
    build_export,
    ring_color,
    ring_dash_offset,
    severity_percent,
)
from safeguard.state import ACCEPTED_IMAGE_TYPES, AnalysisState

settings = load_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

st.set_page_config(page_title="SafeGuard AI", page_icon="🛡️", layout="wide")

st.markdown("""
<style>
.block-container { padding-top: 1.2rem; }
.stButton button, .stDownloadButton button { border-radius: 16px; font-weight: 800; }
.sg-chip { display: inline-block; padding: 6px 14px; margin: 0 8px 8px 0; border-radius: 12px;
           background: #fff1f2; color: #e11d48; border: 1px solid #ffe4e6; font-size: 12px; font-weight: 800; }
.sg-badge { display: inline-flex; gap: 8px; padding: 8px 20px; border-radius: 999px;
            font-size: 12px; font-weight: 800; border: 1px solid; }
.sg-lang { display: inline-block; padding: 8px 16px; margin-left: 8px; border-radius: 999px;
           background: #0f172a; color: #fff; font-size: 10px; font-weight: 800; text-transform: uppercase; }
.sg-label { font-size: 10px; font-weight: 800; color: #94a3b8; text-transform: uppercase; letter-spacing: .2em; }
</style>
""", unsafe_allow_html=True)


# ---- session state ---------------------------------------------------------
def _state() -> AnalysisState:
    if "analysis" not in st.session_state:
        st.session_state["analysis"] = AnalysisState()
    return st.session_state["analysis"]


def _ensure(key: str, default):
    if key not in st.session_state:
        st.session_state[key] = default


_ensure("text_input", "")
_ensure("uploader_gen", 0)
_ensure("pending_content", None)

state = _state()


def _uploader_key() -> str:
    # A new key resets the file_uploader widget
    return f"image_upload_{st.session_state['uploader_gen']}"


# ---- callbacks -------------------------------------------------------------
def on_text_change():
    _state().text_input = st.session_state["text_input"]


def on_upload():
    upload = st.session_state.get(_uploader_key())
    if upload is not None:
        _state().attach_image(upload.getvalue(), upload.type)


def on_remove_image():
    _state().remove_image()
    st.session_state["uploader_gen"] += 1


def on_clear():
    _state().clear()
    st.session_state["text_input"] = ""
    st.session_state["pending_content"] = None
    st.session_state["uploader_gen"] += 1


def on_scan():
    _state().text_input = st.session_state["text_input"]
    st.session_state["pending_content"] = _state().begin_analysis()


# ---- rendering helpers -----------------------------------------------------
def render_ring(score: float):
    st.markdown(f"""
<div style="position:relative;width:176px;height:176px;">
  <svg width="176" height="176" style="transform:rotate(-90deg)">
    <circle cx="88" cy="88" r="76" stroke="#F1F5F9" stroke-width="16" fill="none"/>
    <circle cx="88" cy="88" r="76" stroke="{ring_color(score)}" stroke-width="16" fill="none"
            stroke-linecap="round" stroke-dasharray="{RING_CIRCUMFERENCE}"
            stroke-dashoffset="{ring_dash_offset(score)}"/>
  </svg>
  <div style="position:absolute;inset:0;display:flex;flex-direction:column;align-items:center;justify-content:center;">
    <span style="font-size:36px;font-weight:900;color:#0f172a;">{severity_percent(score)}</span>
    <span class="sg-label">Severity</span>
  </div>
</div>
""", unsafe_allow_html=True)


def render_verdict(result: AnalysisResult):
    badge = badge_for(result.recommendation)
    st.markdown(
        f'<span class="sg-badge" style="background:{badge.background};color:{badge.foreground};'
        f'border-color:{badge.border};">{badge.icon} {badge.label}</span>'
        f'<span class="sg-lang">🌐 {html.escape(str(result.detected_language))}</span>',
        unsafe_allow_html=True,
    )
    st.markdown(f"### *“{html.escape(str(result.reasoning))}”*")


def render_exports(result: AnalysisResult):
    col_json, col_text = st.columns(2)
    json_report = build_export(result, "json")
    text_report = build_export(result, "text")
    col_json.download_button(
        "🗂️ JSON Dataset", data=json_report.content, file_name=json_report.filename,
        mime=json_report.mime_type, use_container_width=True, key="export_json",
    )
    col_text.download_button(
        "📄 Summary Report", data=text_report.content, file_name=text_report.filename,
        mime=text_report.mime_type, use_container_width=True, key="export_text",
    )


def render_result(result: AnalysisResult):
    with st.container(border=True):
        ring_col, verdict_col = st.columns([1, 2])
        with ring_col:
            render_ring(result.overall_score)
        with verdict_col:
            render_verdict(result)
        render_exports(result)

    radar_col, ranking_col = st.columns(2)
    with radar_col:
        st.pyplot(radar_figure(result.metrics))
    with ranking_col:
        st.pyplot(ranking_figure(result.metrics))

    if result.flagged_phrases:
        with st.container(border=True):
            st.markdown('<p class="sg-label">Identified Violation Tokens</p>', unsafe_allow_html=True)
            chips = "".join(
                f'<span class="sg-chip">{html.escape(str(token))}</span>'
                for token in result.flagged_phrases
            )
            st.markdown(chips, unsafe_allow_html=True)


# ---- header ----------------------------------------------------------------
title_col, clear_col = st.columns([12, 1])
with title_col:
    st.title("🛡️ SafeGuard AI")
    st.caption("AUTOMATED CONTENT GOVERNANCE")
with clear_col:
    st.button("🗑️", help="Clear workspace", on_click=on_clear, key="clear_btn")

input_col, results_col = st.columns([5, 7], gap="large")

# ---- input processor -------------------------------------------------------
with input_col:
    with st.container(border=True):
        st.markdown('<p class="sg-label">⌨️ Input Processor</p>', unsafe_allow_html=True)
        st.text_area(
            "Content",
            key="text_input",
            height=220,
            placeholder="Paste content for analysis (social posts, messages, etc.)...",
            label_visibility="collapsed",
            on_change=on_text_change,
        )

        if not state.image_preview:
            st.file_uploader(
                "Attach Visual Evidence",
                type=ACCEPTED_IMAGE_TYPES,
                key=_uploader_key(),
                on_change=on_upload,
            )
        else:
            st.markdown(
                f'<img src="{state.image_preview}" alt="Upload Preview" '
                f'style="width:100%;max-height:192px;object-fit:cover;border-radius:24px;"/>',
                unsafe_allow_html=True,
            )
            st.button("✖ Remove image", on_click=on_remove_image, key="remove_image_btn")

        if state.error:
            st.error(state.error, icon="ℹ️")

        st.button(
            "⏳ Processing Nuance..." if state.is_analyzing else "🧠 Initiate Safety Scan",
            type="primary",
            disabled=not state.can_submit,
            on_click=on_scan,
            use_container_width=True,
            key="scan_btn",
        )

# ---- results ---------------------------------------------------------------
with results_col:
    # Taken out before sending so an interrupted run never resubmits it
    pending = st.session_state["pending_content"]
    st.session_state["pending_content"] = None
    if pending is not None:
        logger.info(f"Submitting scan to {settings.api_url}")
        try:
            with st.spinner("Decoding Intent... Running Global Moderation Logic"):
                with ModerationClient(settings.api_url) as client:
                    state.resolve(client, pending)
        finally:
            if state.is_analyzing:
                # Interrupted before the request went out
                st.session_state["pending_content"] = pending
        st.rerun()
    elif state.result is not None:
        render_result(state.result)
    else:
        with st.container(border=True):
            st.markdown("#### READY FOR ANALYSIS")
            st.caption(
                "SafeGuard AI is on standby. Submit text or imagery to perform a deep-level safety audit."
            )

# ---- footer ----------------------------------------------------------------
st.divider()
st.caption(
    f"SafeGuard AI © {datetime.now().year} · Compliance Engine v2.4.0 · 🟢 System Operational"
)
