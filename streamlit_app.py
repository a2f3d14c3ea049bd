"""
Streamlit Cloud entrypoint for the Bulk QR Generator page.

`streamlit run streamlit_app.py` executes ui.py as a script; the batch
pipeline itself is only imported when the generate button is pressed.
"""

import runpy
import sys
import time
from pathlib import Path

_T0 = time.perf_counter()


def _log(msg: str) -> None:
    print(f"[startup] +{time.perf_counter() - _T0:.3f}s {msg}", flush=True)


import streamlit as st

_APP_DIR = Path(__file__).resolve().parent
if str(_APP_DIR) not in sys.path:
    sys.path.insert(0, str(_APP_DIR))

try:
    # Run the local ui.py by path (avoid name collisions with any installed "ui" package).
    runpy.run_path(str(_APP_DIR / "ui.py"), run_name="bulk_qr_ui")
    _log("ui.py rendered")
except Exception as e:
    # A failing import would otherwise leave a blank page on Streamlit Cloud.
    st.error("App failed to start. See details below.")
    st.exception(e)
    _log(f"startup failed: {type(e).__name__}")
