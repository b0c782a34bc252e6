"""JSON export and import of record collections.

The file format is a JSON array of records in their dict form (camelCase
keys, ``changeScore`` omitted when absent), so collections saved by earlier
versions load unchanged.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Optional

from ..core.models import BeforeAfterRecord

logger = logging.getLogger(__name__)

AUTO_SAVE_FILENAME = "before-after-records-auto.json"


class RecordImportError(Exception):
    """Raised when a file cannot be imported as a record collection."""
    pass


@dataclass
class ImportResult:
    """Records read from a file and how many entries were skipped."""

    records: list[BeforeAfterRecord] = field(default_factory=list)
    skipped: int = 0


def default_export_filename(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"before-after-records-{day.isoformat()}.json"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_image_list(value: Any) -> bool:
    return isinstance(value, list) and all(
        isinstance(img, str) and img.startswith("data:image/") for img in value
    )


def is_valid_record(item: Any) -> bool:
    """Check that a decoded JSON value has the shape of a record.

    Before and after lists may differ in length; unpaired before images
    score 0 and extra after images are ignored.
    """
    if not isinstance(item, dict):
        return False
    if not all(isinstance(item.get(key), str) for key in ("id", "title", "date")):
        return False
    if not (_is_number(item.get("createdAt")) and _is_number(item.get("updatedAt"))):
        return False
    score = item.get("changeScore")
    if score is not None and not (_is_number(score) and 0 <= score <= 100):
        return False
    images = item.get("images")
    if not isinstance(images, dict):
        return False
    return _is_image_list(images.get("before")) and _is_image_list(images.get("after"))


def records_to_json(records: Iterable[BeforeAfterRecord]) -> str:
    return json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)


def export_records(records: Iterable[BeforeAfterRecord], path: str | Path) -> Path:
    """Write records to a JSON file. Returns the path written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(records_to_json(records), encoding="utf-8")
    return path


def parse_records(text: str) -> ImportResult:
    """Parse a JSON record collection, keeping only valid records.

    Raises:
        RecordImportError: Not JSON, not an array, or no valid record at all
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RecordImportError(f"could not parse JSON: {e}") from e

    if not isinstance(data, list):
        raise RecordImportError("invalid data format: expected a JSON array of records")

    records = [BeforeAfterRecord.from_dict(item) for item in data if is_valid_record(item)]
    if not records:
        raise RecordImportError("no valid records found")

    skipped = len(data) - len(records)
    if skipped:
        logger.warning("Skipped %d invalid record(s)", skipped)
    return ImportResult(records=records, skipped=skipped)


def import_records(path: str | Path) -> ImportResult:
    """Read a JSON record collection from a file."""
    path = Path(path)
    if path.suffix.lower() != ".json":
        raise RecordImportError(f"{path.name} is not a JSON file")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RecordImportError(f"could not read {path}: {e}") from e
    return parse_records(text)


class AutoSaveTarget:
    """File the whole collection is rewritten to after every change.

    Callers hold this handle explicitly; nothing is written while it is
    disabled.
    """

    def __init__(self, path: str | Path = AUTO_SAVE_FILENAME, enabled: bool = True):
        self.path = Path(path)
        self.enabled = enabled

    def save(self, records: Iterable[BeforeAfterRecord]) -> bool:
        """Write the collection. Returns False if disabled or the write failed."""
        if not self.enabled:
            return False
        try:
            export_records(records, self.path)
        except OSError as e:
            logger.warning("Auto-save to %s failed: %s", self.path, e)
            return False
        return True
