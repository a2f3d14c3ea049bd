#!/usr/bin/env python3
"""
Streamlit UI for the Bulk QR Card Generator
"""

import os
import tempfile
import time
import traceback
from pathlib import Path

import streamlit as st

from config import (
    PREVIEW_COLUMNS_DESKTOP,
    PREVIEW_COLUMNS_MOBILE,
    PREVIEW_COUNT,
    PREVIEW_WIDTH_DESKTOP,
    PREVIEW_WIDTH_MOBILE,
)
from data_loaders import DataFrameAttendeeSource, FirestoreAttendeeSource, load_attendees_dataframe
from errors import BatchError

_UI_DIR = Path(__file__).resolve().parent

# Startup timing (logged to stdout for Streamlit Cloud logs)
_UI_T0 = time.perf_counter()
def _ui_log(msg: str) -> None:
    print(f"[ui] +{time.perf_counter() - _UI_T0:.3f}s {msg}", flush=True)

_ui_log("ui.py start")

st.set_page_config(
    page_title="Bulk QR Generator",
    page_icon="🔳",
    layout="centered",
)

st.markdown(
    """
<style>
  button, input, textarea, select {
    border-radius: 10px !important;
  }
  .main .block-container {
    max-width: 980px;
    padding-top: 1rem;
    padding-bottom: 2.5rem;
  }
</style>
""",
    unsafe_allow_html=True,
)

st.title("Bulk QR Generator")
st.caption("Generate a QR card for every attendee of an event and download them as one ZIP.")

with st.sidebar:
    mobile_mode = st.checkbox("Compact layout (mobile)", value=False)
_ui_log("rendered header")

if "source" not in st.session_state:
    st.session_state.source = None
if "source_label" not in st.session_state:
    st.session_state.source_label = ""
if "mark_path" not in st.session_state:
    st.session_state.mark_path = None
if "generated" not in st.session_state:
    # {"zip_bytes": bytes, "zip_name": str, "count": int, "previews": [...], "failures": [...]}
    st.session_state.generated = None
if "_last_error" not in st.session_state:
    st.session_state._last_error = None


def _write_temp(uploaded, prefix: str, suffix: str, key: str) -> str:
    """Write an upload to a secure temp file (ignore user-provided filename)."""
    prev = st.session_state.get(key)
    if prev and os.path.exists(prev):
        try:
            os.remove(prev)
        except OSError:
            pass
    with tempfile.NamedTemporaryFile(prefix=prefix, suffix=suffix, delete=False) as tmp:
        tmp.write(uploaded.getbuffer())
        st.session_state[key] = tmp.name
    return tmp.name


# --- Data source ---
st.markdown("### Attendees")
data_source = st.radio("Data source", ["Firestore", "Upload file (Excel/CSV)"], horizontal=True)

if data_source == "Firestore":
    try:
        secrets_fs = dict(st.secrets.get("firestore", {}))
    except Exception:
        secrets_fs = {}
    with st.form("firestore_form", clear_on_submit=False):
        c1, c2 = st.columns([1, 1])
        with c1:
            fs_project = st.text_input("Project ID", value=secrets_fs.get("project_id", ""))
        with c2:
            fs_tenant = st.text_input("Tenant ID", value=secrets_fs.get("tenant_id", ""))
        if secrets_fs.get("api_key") or secrets_fs.get("id_token"):
            st.caption("Using Firestore credentials from Streamlit Secrets.")
            fs_key = secrets_fs.get("api_key", "")
        else:
            fs_key = st.text_input("Web API key", value="", type="password")
        use_fs = st.form_submit_button("Use Firestore")
    if use_fs:
        if not fs_project.strip() or not fs_tenant.strip():
            st.warning("Project ID and Tenant ID are required.")
        else:
            st.session_state.source = FirestoreAttendeeSource(
                fs_project.strip(),
                fs_tenant.strip(),
                api_key=fs_key or None,
                id_token=secrets_fs.get("id_token") or None,
            )
            st.session_state.source_label = f"Firestore tenant `{fs_tenant.strip()}`"
            st.session_state.generated = None
else:
    with st.form("upload_form", clear_on_submit=False):
        data_file = st.file_uploader(
            "Upload attendees (Excel or CSV)",
            type=["csv", "xlsx"],
            help="Needs an ID column; Name, Event ID and Status are used when present.",
        )
        load_uploaded = st.form_submit_button("📥 Load uploaded file")
    if load_uploaded:
        if data_file is None:
            st.warning("Please upload a file first.")
        else:
            try:
                suffix = ".xlsx" if str(data_file.name).lower().endswith(".xlsx") else ".csv"
                path = _write_temp(data_file, "attendees_", suffix, "_tmp_data_path")
                df = load_attendees_dataframe(path)
                st.session_state.source = DataFrameAttendeeSource(df)
                st.session_state.source_label = f"`{data_file.name}`"
                st.session_state.generated = None
                stats = df.attrs.get("load_stats", {})
                st.success(
                    f"Loaded **{stats.get('loaded_rows', len(df))}** attendees from **{data_file.name}** "
                    f"(source rows: {stats.get('source_rows')}, "
                    f"skipped missing id: {stats.get('skipped_missing_id', 0)}, "
                    f"dropped duplicate id: {stats.get('dropped_duplicate_id', 0)})."
                )
            except (BatchError, ValueError, ImportError, OSError) as e:
                st.error(f"Error reading {data_file.name}: {e}")

# --- Logo ---
with st.expander("Logo (optional)", expanded=False):
    mark_file = st.file_uploader("Upload logo", type=["png", "jpg", "jpeg"])
    if mark_file is not None:
        st.session_state.mark_path = _write_temp(mark_file, "logo_", ".png", "_tmp_mark_path")
        st.success("Logo uploaded")
if st.session_state.mark_path is None:
    for name in ("logo.png", "logo.jpeg", "logo.jpg"):
        p = _UI_DIR / "input" / name
        if p.exists():
            st.session_state.mark_path = str(p)
            break

# --- Event ---
source = st.session_state.source
event_id = ""
if source is not None:
    st.caption(f"Attendees from {st.session_state.source_label}")
    known_events = source.event_ids() if isinstance(source, DataFrameAttendeeSource) else []
    if known_events:
        event_id = st.selectbox("Event", known_events)
    else:
        event_id = st.text_input("Event ID", value="").strip()

st.markdown("---")
st.header("Bulk QR Generator")

if source is None:
    st.info("👆 Choose a data source above first.")
elif not event_id:
    st.info("No event selected. Please select an event to generate QR codes for its users.")
elif st.session_state.mark_path is None:
    st.info("👆 Please upload a logo above (no default logo found in `input/`).")
else:
    keep_going = st.checkbox("Skip attendees that fail (default: stop on first error)", value=False)
    st.caption("Click the button below to generate QR codes for all users and download as a zip file.")
    if st.button("Generate & Download All QR Codes", type="primary", use_container_width=True):
        st.session_state.generated = None
        st.session_state._last_error = None
        progress_bar = st.progress(0)
        status_text = st.empty()

        def _progress(done, total, record):
            progress_bar.progress(done / total)
            status_text.text(f"Prepared {done}/{total}: {record.display_name}")

        with st.spinner("Generating..."):
            try:
                # Import rendering code only when needed (improves Streamlit Cloud startup)
                from app import generate_batch

                result = generate_batch(
                    event_id,
                    source,
                    st.session_state.mark_path,
                    abort_on_first_error=not keep_going,
                    on_progress=_progress,
                    keep_previews=PREVIEW_COUNT,
                )
                if result.nothing_to_generate:
                    st.warning("No users found for the selected event.")
                else:
                    st.session_state.generated = {
                        "zip_bytes": result.archive_bytes,
                        "zip_name": result.archive_name,
                        "count": result.success_count,
                        "previews": [(c.filename, c.image_bytes) for c in result.previews],
                        "failures": result.failures,
                    }
            except BatchError as e:
                st.error(f"Failed to generate QR codes. {e}")
            except Exception as e:
                st.session_state._last_error = traceback.format_exc()
                st.error(f"Unexpected error during generation: {e}")
            finally:
                progress_bar.empty()
                status_text.empty()

    if st.session_state._last_error:
        with st.expander("Show error details", expanded=False):
            st.code(st.session_state._last_error)

    gen = st.session_state.generated
    if gen is not None:
        st.success(f"Successfully generated {gen['count']} QR codes.")
        if gen["failures"]:
            st.warning(f"Skipped {len(gen['failures'])} attendee(s): " + ", ".join(rid for rid, _ in gen["failures"]))
        st.download_button(
            "⬇️ Download ZIP",
            data=gen["zip_bytes"],
            file_name=gen["zip_name"],
            mime="application/zip",
            key="dl_zip",
        )
        if gen["previews"]:
            st.markdown("### Previews")
            columns_per_row = PREVIEW_COLUMNS_MOBILE if mobile_mode else PREVIEW_COLUMNS_DESKTOP
            preview_width = PREVIEW_WIDTH_MOBILE if mobile_mode else PREVIEW_WIDTH_DESKTOP
            items = gen["previews"]
            for start in range(0, len(items), columns_per_row):
                cols = st.columns(columns_per_row)
                for c, (filename, png) in enumerate(items[start : start + columns_per_row]):
                    with cols[c]:
                        st.image(png, width=preview_width)
                        st.caption(filename)

_ui_log("rendered page")
