"""SQLite database layer for before/after records."""

import datetime
import json
import logging
import sqlite3
from pathlib import Path
from typing import Iterable, Optional

from ..core.errors import RecordValidationError
from ..core.models import BeforeAfterRecord, SortOrder, now_millis

logger = logging.getLogger(__name__)

_COLUMNS = "id, title, date, created_at, updated_at, change_score, before_images, after_images"


class RecordDatabase:
    """Manages before/after records in SQLite."""

    def __init__(self, db_path: str | Path = "data/records.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _init_db(self):
        """Create the records table if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    date TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL,
                    change_score INTEGER,
                    before_images TEXT NOT NULL,
                    after_images TEXT NOT NULL
                )
            """)
            conn.commit()

    @staticmethod
    def _record_to_row(record: BeforeAfterRecord) -> tuple:
        return (
            record.id,
            record.title,
            record.date,
            record.created_at,
            record.updated_at,
            record.change_score,
            json.dumps(record.before),
            json.dumps(record.after),
        )

    @staticmethod
    def _row_to_record(row) -> BeforeAfterRecord:
        """Convert a database row to a BeforeAfterRecord."""
        return BeforeAfterRecord(
            id=row[0],
            title=row[1],
            date=row[2],
            created_at=row[3],
            updated_at=row[4],
            change_score=row[5],
            before=json.loads(row[6]),
            after=json.loads(row[7]),
        )

    def add_record(self, record: BeforeAfterRecord) -> None:
        """Insert or replace a record."""
        with self._connect() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO records ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                self._record_to_row(record),
            )
            conn.commit()

    def get_by_id(self, record_id: str) -> Optional[BeforeAfterRecord]:
        """Retrieve a record by its id."""
        with self._connect() as conn:
            cursor = conn.execute(f"SELECT {_COLUMNS} FROM records WHERE id = ?", (record_id,))
            row = cursor.fetchone()
            if row:
                return self._row_to_record(row)
            return None

    def search_by_prefix(self, id_prefix: str) -> list[BeforeAfterRecord]:
        """Find all records whose id starts with the given prefix."""
        escaped = id_prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        with self._connect() as conn:
            cursor = conn.execute(
                f"SELECT {_COLUMNS} FROM records WHERE id LIKE ? ESCAPE '\\' ORDER BY rowid",
                (escaped + "%",)
            )
            return [self._row_to_record(row) for row in cursor.fetchall()]

    def list_all(self) -> list[BeforeAfterRecord]:
        """List all records in insertion order."""
        with self._connect() as conn:
            cursor = conn.execute(f"SELECT {_COLUMNS} FROM records ORDER BY rowid")
            return [self._row_to_record(row) for row in cursor.fetchall()]

    def search(
        self,
        term: str = "",
        sort_order: SortOrder = SortOrder.NEWEST_FIRST,
    ) -> list[BeforeAfterRecord]:
        """Records whose title contains ``term`` (case-insensitive), sorted by date."""
        term = term.lower()
        records = [r for r in self.list_all() if term in r.title.lower()]
        # Unparseable dates sort as the oldest
        records.sort(key=lambda r: (r.record_date is not None, r.record_date or r.date),
                     reverse=(SortOrder(sort_order) == SortOrder.NEWEST_FIRST))
        return records

    def update_record(
        self,
        record_id: str,
        title: Optional[str] = None,
        date: Optional[str] = None,
    ) -> Optional[BeforeAfterRecord]:
        """Change the title and/or date of a record.

        Images and change score are never touched. Returns the updated record,
        or None if no record has this id.
        """
        record = self.get_by_id(record_id)
        if record is None:
            return None
        if title is not None:
            title = title.strip()
            if not title:
                raise RecordValidationError("title is required")
            record.title = title
        if date is not None:
            try:
                datetime.date.fromisoformat(date)
            except ValueError:
                raise RecordValidationError(f"invalid date: {date!r} (expected YYYY-MM-DD)")
            record.date = date
        record.updated_at = max(now_millis(), record.updated_at)
        with self._connect() as conn:
            conn.execute(
                "UPDATE records SET title = ?, date = ?, updated_at = ? WHERE id = ?",
                (record.title, record.date, record.updated_at, record.id),
            )
            conn.commit()
        return record

    def delete_by_id(self, record_id: str) -> bool:
        """Delete a record by its id. Returns True if deleted."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM records WHERE id = ?", (record_id,))
            conn.commit()
            return cursor.rowcount > 0

    def merge_records(self, records: Iterable[BeforeAfterRecord]) -> int:
        """Add records whose id is not stored yet. Returns how many were added."""
        added = 0
        with self._connect() as conn:
            for record in records:
                cursor = conn.execute(
                    f"INSERT OR IGNORE INTO records ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    self._record_to_row(record),
                )
                added += cursor.rowcount
            conn.commit()
        logger.info("Merged %d new record(s) into %s", added, self.db_path)
        return added

    def count(self) -> int:
        """Return the number of records in the database."""
        with self._connect() as conn:
            cursor = conn.execute("SELECT COUNT(*) FROM records")
            return cursor.fetchone()[0]
