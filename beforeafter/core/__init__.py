"""Core business logic - models, normalization and change scoring."""

from .codec import BitmapCodec, PillowCodec
from .errors import (
    DecodeFailed,
    EncodeFailed,
    FileTooLarge,
    ImageProcessingError,
    InvalidImageDimensions,
    InvalidInputKind,
    RecordValidationError,
    ScoringFailed,
)
from .models import BeforeAfterRecord, NormalizedImage, RawImageInput, SortOrder
from .normalizer import ImageNormalizer, compute_target_size, normalize_image
from .pipeline import BatchResult, RecordPipeline
from .reveal import compose_reveal
from .scorer import ChangeScorer, calculate_change_score, compute_change_score

__all__ = [
    "BitmapCodec",
    "PillowCodec",
    "DecodeFailed",
    "EncodeFailed",
    "FileTooLarge",
    "ImageProcessingError",
    "InvalidImageDimensions",
    "InvalidInputKind",
    "RecordValidationError",
    "ScoringFailed",
    "BeforeAfterRecord",
    "NormalizedImage",
    "RawImageInput",
    "SortOrder",
    "ImageNormalizer",
    "compute_target_size",
    "normalize_image",
    "BatchResult",
    "RecordPipeline",
    "compose_reveal",
    "ChangeScorer",
    "calculate_change_score",
    "compute_change_score",
]
