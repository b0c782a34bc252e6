"""Storage layers - SQLite records and JSON import/export."""

from .database import RecordDatabase
from .exchange import (
    AutoSaveTarget,
    ImportResult,
    RecordImportError,
    export_records,
    import_records,
    is_valid_record,
    parse_records,
)

__all__ = [
    "RecordDatabase",
    "AutoSaveTarget",
    "ImportResult",
    "RecordImportError",
    "export_records",
    "import_records",
    "is_valid_record",
    "parse_records",
]
