"""Before/After records - normalize images, score changes, keep records.

Package structure:
    beforeafter/
    ├── cli.py              # Command-line interface
    ├── config.py           # Settings (YAML + environment) and logging
    ├── core/               # Core business logic
    │   ├── models.py       # Data models (RawImageInput, BeforeAfterRecord)
    │   ├── codec.py        # Bitmap codec (Pillow)
    │   ├── normalizer.py   # Resize + JPEG re-encode to data URLs
    │   ├── scorer.py       # Change score between before/after images
    │   ├── pipeline.py     # Concurrent record creation
    │   └── reveal.py       # Before/after split rendering
    └── storage/            # Data persistence
        ├── database.py     # SQLite record storage
        └── exchange.py     # JSON import/export and auto-save
"""

from .core.models import BeforeAfterRecord, RawImageInput, SortOrder
from .core.errors import (
    DecodeFailed,
    EncodeFailed,
    FileTooLarge,
    ImageProcessingError,
    InvalidImageDimensions,
    InvalidInputKind,
    RecordValidationError,
    ScoringFailed,
)
from .core.codec import BitmapCodec, PillowCodec
from .core.normalizer import (
    ImageNormalizer,
    compute_target_size,
    format_image_data_url,
    normalize_image,
    parse_image_data_url,
    DEFAULT_MAX_DIMENSION,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_MAX_FILE_SIZE,
)
from .core.scorer import (
    ChangeScorer,
    calculate_change_score,
    compute_change_score,
    DEFAULT_GRID_SIZE,
)
from .core.pipeline import RecordPipeline
from .storage.database import RecordDatabase
from .storage.exchange import AutoSaveTarget, RecordImportError, export_records, import_records
from .config import Settings, load_settings

__all__ = [
    # Core
    "BeforeAfterRecord",
    "RawImageInput",
    "SortOrder",
    "DecodeFailed",
    "EncodeFailed",
    "FileTooLarge",
    "ImageProcessingError",
    "InvalidImageDimensions",
    "InvalidInputKind",
    "RecordValidationError",
    "ScoringFailed",
    "BitmapCodec",
    "PillowCodec",
    "ImageNormalizer",
    "compute_target_size",
    "format_image_data_url",
    "normalize_image",
    "parse_image_data_url",
    "DEFAULT_MAX_DIMENSION",
    "DEFAULT_JPEG_QUALITY",
    "DEFAULT_MAX_FILE_SIZE",
    "ChangeScorer",
    "calculate_change_score",
    "compute_change_score",
    "DEFAULT_GRID_SIZE",
    "RecordPipeline",
    # Storage
    "RecordDatabase",
    "AutoSaveTarget",
    "RecordImportError",
    "export_records",
    "import_records",
    # Config
    "Settings",
    "load_settings",
]
