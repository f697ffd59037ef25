"""Environment detection utilities for local vs. Streamlit Cloud."""

import os


def get_app_url() -> str:
    """Return the app's public base URL, used to build shareable invoice links.

    On Streamlit Cloud: reads FOLIO_APP_URL env var (e.g. "https://folio.streamlit.app")
    Locally: falls back to "http://localhost:8501"
    """
    return os.environ.get("FOLIO_APP_URL", "http://localhost:8501").rstrip("/")
