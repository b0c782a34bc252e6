"""Data models for image inputs and before/after records."""

import mimetypes
import time
import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional


# Normalized images are stored as data URLs: "data:image/jpeg;base64,..."
NormalizedImage = str


class SortOrder(str, Enum):
    """Record ordering by the record date."""

    NEWEST_FIRST = "newest"
    OLDEST_FIRST = "oldest"


@dataclass
class RawImageInput:
    """Bytes of a user supplied file together with what the caller declared."""

    data: bytes
    media_type: str
    size: Optional[int] = None  # declared byte length, defaults to len(data)
    name: Optional[str] = None

    def __post_init__(self):
        if self.size is None:
            self.size = len(self.data)

    @classmethod
    def from_path(cls, filepath: str | Path) -> "RawImageInput":
        """Read a file and guess its media type from the extension."""
        filepath = Path(filepath)
        media_type, _ = mimetypes.guess_type(str(filepath))
        if media_type is None:
            media_type = "application/octet-stream"
        data = filepath.read_bytes()
        return cls(data=data, media_type=media_type, size=len(data), name=filepath.name)


def now_millis() -> int:
    return int(time.time() * 1000)


def new_record_id() -> str:
    return uuid.uuid4().hex


@dataclass
class BeforeAfterRecord:
    """A titled set of before/after images and its change score."""

    title: str
    date: str  # YYYY-MM-DD
    before: list[NormalizedImage] = field(default_factory=list)
    after: list[NormalizedImage] = field(default_factory=list)
    change_score: Optional[int] = None
    id: str = field(default_factory=new_record_id)
    created_at: int = field(default_factory=now_millis)  # epoch milliseconds
    updated_at: Optional[int] = None

    def __post_init__(self):
        if self.updated_at is None:
            self.updated_at = self.created_at

    @property
    def record_date(self) -> Optional[date]:
        """The record date parsed, or None when it is not an ISO date."""
        try:
            return date.fromisoformat(self.date)
        except ValueError:
            return None

    @property
    def pair_count(self) -> int:
        return len(self.before)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "images": {
                "before": list(self.before),
                "after": list(self.after),
            },
        }
        # An absent score is omitted, never written as null or zero
        if self.change_score is not None:
            data["changeScore"] = self.change_score
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "BeforeAfterRecord":
        images = data.get("images") or {}
        change_score = data.get("changeScore")
        return cls(
            id=data["id"],
            title=data["title"],
            date=data["date"],
            created_at=int(data["createdAt"]),
            updated_at=int(data["updatedAt"]),
            change_score=int(change_score) if change_score is not None else None,
            before=list(images.get("before", [])),
            after=list(images.get("after", [])),
        )
