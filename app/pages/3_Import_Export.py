"""
Import / Export Page

Download the collection as JSON, or merge records from a JSON file.
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import streamlit as st

from beforeafter.config import load_settings
from beforeafter.storage.database import RecordDatabase
from beforeafter.storage.exchange import (
    RecordImportError,
    default_export_filename,
    parse_records,
    records_to_json,
)

# Configuration
ROOT = Path(__file__).parent.parent.parent
settings = load_settings()
DB_PATH = ROOT / settings.database

st.set_page_config(page_title="Import / Export", page_icon="💾", layout="wide")

st.title("Import / Export")


@st.cache_resource
def get_database():
    """Initialize database connection."""
    return RecordDatabase(str(DB_PATH))


db = get_database()

st.header("Export")
records = db.list_all()
st.download_button(
    f"Download {len(records)} record(s)",
    data=records_to_json(records),
    file_name=default_export_filename(),
    mime="application/json",
    disabled=not records,
)

st.header("Import")
uploaded = st.file_uploader("JSON file", type=["json"])
if uploaded is not None and st.button("Import", type="primary"):
    try:
        result = parse_records(uploaded.getvalue().decode("utf-8"))
    except (RecordImportError, UnicodeDecodeError) as e:
        st.error(f"Import failed: {e}")
        st.stop()

    if result.skipped:
        st.warning(f"{result.skipped} invalid record(s) skipped")
    added = db.merge_records(result.records)
    st.success(f"Imported {added} new record(s)")
