"""
Before/After Records - Streamlit App

Root page: browse, search, sort and delete saved records.
"""
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import streamlit as st

from beforeafter.config import load_settings
from beforeafter.core.models import SortOrder
from beforeafter.storage.database import RecordDatabase

# Configuration
ROOT = Path(__file__).parent.parent
settings = load_settings()
DB_PATH = ROOT / settings.database

st.set_page_config(
    page_title="Before/After Records",
    page_icon="🖼️",
    layout="wide"
)

st.title("Before/After Records")

st.markdown("""
Record before/after image sets and see how much changed.

- **New Record**: upload before/after images; a change score is computed on save
- **Compare**: reveal before and after with a slider
- **Import / Export**: move the collection in and out as JSON

Use the sidebar to navigate between pages.
""")


@st.cache_resource
def get_database():
    """Initialize database connection."""
    return RecordDatabase(str(DB_PATH))


db = get_database()

col1, col2 = st.columns([3, 1])
with col1:
    search_term = st.text_input("Search by title", placeholder="Search by title...")
with col2:
    sort_label = st.selectbox("Sort", ["Newest first", "Oldest first"])
sort_order = SortOrder.NEWEST_FIRST if sort_label == "Newest first" else SortOrder.OLDEST_FIRST

records = db.search(search_term.strip(), sort_order)
st.metric("Records", len(records))

if not records:
    st.info("No saved records.")

for record in records:
    score = f" | change {record.change_score}%" if record.change_score is not None else ""
    with st.expander(f"{record.title} | {record.date}{score}"):
        columns = st.columns(2)
        with columns[0]:
            st.caption("Before")
            if record.before:
                st.image(record.before[0], use_container_width=True)
        with columns[1]:
            st.caption("After")
            if record.after:
                st.image(record.after[0], use_container_width=True)
            else:
                st.text("[No after image]")

        st.caption(f"Id: {record.id} | {len(record.before)} before, {len(record.after)} after")
        if st.button("Delete", key=f"delete_{record.id}", type="secondary"):
            db.delete_by_id(record.id)
            st.success(f"Deleted {record.title}")
            st.rerun()
