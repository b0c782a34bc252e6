"""
New Record Page

Upload before/after images; they are normalized and scored when the record is saved.
"""
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import streamlit as st

from beforeafter.config import load_settings
from beforeafter.core.errors import ImageProcessingError, RecordValidationError
from beforeafter.core.models import RawImageInput
from beforeafter.core.pipeline import RecordPipeline
from beforeafter.storage.database import RecordDatabase

# Configuration
ROOT = Path(__file__).parent.parent.parent
settings = load_settings()
DB_PATH = ROOT / settings.database

st.set_page_config(page_title="New Record", page_icon="📤", layout="wide")

st.title("New Record")


@st.cache_resource
def get_database():
    """Initialize database connection."""
    return RecordDatabase(str(DB_PATH))


def to_inputs(uploaded_files) -> list[RawImageInput]:
    return [
        RawImageInput(
            data=f.getvalue(),
            media_type=f.type or "application/octet-stream",
            size=f.size,
            name=f.name,
        )
        for f in uploaded_files or []
    ]


count_hint = f"{settings.min_image_count}-{settings.max_image_count}"

with st.form("new_record"):
    title = st.text_input("Title", placeholder="Enter a title for this record")
    record_date = st.date_input("Date", value=date.today())
    before_files = st.file_uploader(
        f"Before images ({count_hint})",
        type=["jpg", "jpeg", "png", "gif", "bmp", "webp", "tiff"],
        accept_multiple_files=True,
    )
    after_files = st.file_uploader(
        f"After images (up to {settings.max_image_count}, same order as before)",
        type=["jpg", "jpeg", "png", "gif", "bmp", "webp", "tiff"],
        accept_multiple_files=True,
    )
    submitted = st.form_submit_button("Save", type="primary")

if submitted:
    pipeline = RecordPipeline.from_settings(settings)
    try:
        with st.spinner("Processing images..."):
            record = pipeline.create_record(
                title,
                to_inputs(before_files),
                to_inputs(after_files),
                record_date=record_date.isoformat(),
            )
    except RecordValidationError as e:
        st.error(str(e))
        st.stop()
    except ImageProcessingError as e:
        st.error(f"Error while processing images: {e}")
        st.stop()

    get_database().add_record(record)
    st.success(f"Saved: {record.title}")
    if record.change_score is not None:
        st.metric("Change score", f"{record.change_score}%")

    cols = st.columns(max(len(record.before), 1))
    for col, image in zip(cols, record.before):
        col.image(image, caption="Before", use_container_width=True)
    if record.after:
        cols = st.columns(len(record.after))
        for col, image in zip(cols, record.after):
            col.image(image, caption="After", use_container_width=True)
