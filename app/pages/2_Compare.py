"""
Compare Page

Reveal the before image over the after image with a slider, and edit title/date.
"""
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import streamlit as st

from beforeafter.config import load_settings
from beforeafter.core.errors import ImageProcessingError, RecordValidationError
from beforeafter.core.reveal import compose_reveal_from_urls
from beforeafter.storage.database import RecordDatabase

# Configuration
ROOT = Path(__file__).parent.parent.parent
settings = load_settings()
DB_PATH = ROOT / settings.database

st.set_page_config(page_title="Compare", page_icon="🔍", layout="wide")

st.title("Compare Before / After")


@st.cache_resource
def get_database():
    """Initialize database connection."""
    return RecordDatabase(str(DB_PATH))


db = get_database()
records = db.list_all()

if not records:
    st.info("No saved records. Add one on the New Record page.")
    st.stop()

labels = {f"{r.title} ({r.date})": r.id for r in records}
choice = st.selectbox("Record", list(labels))
record = db.get_by_id(labels[choice])

if record.change_score is not None:
    st.metric("Change score", f"{record.change_score}%")

pair = 0
if len(record.before) > 1:
    pair = st.radio("Pair", list(range(len(record.before))),
                    format_func=lambda i: f"#{i + 1}", horizontal=True)

after = record.after[pair] if pair < len(record.after) else None
if after is None:
    st.caption("BEFORE (no after image)")
    st.image(record.before[pair], use_container_width=True)
else:
    position = st.slider("Reveal before", 0, 100, 50, format="%d%%")
    try:
        st.image(compose_reveal_from_urls(record.before[pair], after, position),
                 caption="Before | After", use_container_width=True)
    except ImageProcessingError as e:
        st.error(f"Could not render images: {e}")

st.divider()
st.subheader("Edit")
with st.form("edit_record"):
    new_title = st.text_input("Title", value=record.title)
    current = record.record_date or date.today()
    new_date = st.date_input("Date", value=current)
    if st.form_submit_button("Save changes"):
        try:
            db.update_record(record.id, title=new_title, date=new_date.isoformat())
        except RecordValidationError as e:
            st.error(str(e))
        else:
            st.success("Record updated")
            st.rerun()
