"""Exceptions raised by the normalization, scoring and record layers."""

from typing import Optional


class ImageProcessingError(Exception):
    """Base class for failures while normalizing or scoring an image."""
    pass


class InvalidInputKind(ImageProcessingError):
    """Raised when the input does not declare an image media type."""
    pass


class FileTooLarge(ImageProcessingError):
    """Raised when the input exceeds the configured maximum file size."""

    def __init__(self, size: int, limit: int, name: Optional[str] = None):
        self.size = size
        self.limit = limit
        self.name = name
        label = f"{name}: " if name else ""
        super().__init__(
            f"{label}file is too large ({size} bytes, maximum {limit} bytes)"
        )


class InvalidImageDimensions(ImageProcessingError):
    """Raised when a decoded bitmap has a zero or negative side."""
    pass


class DecodeFailed(ImageProcessingError):
    """Raised when image bytes cannot be decoded into a bitmap."""
    pass


class EncodeFailed(ImageProcessingError):
    """Raised when re-encoding produces no usable output."""
    pass


class ScoringFailed(ImageProcessingError):
    """Raised when a before/after pair cannot be scored.

    ``side`` is ``"before"`` or ``"after"`` when one of the images could not
    be decoded, and ``None`` for failures during the comparison itself.
    """

    def __init__(self, message: str, side: Optional[str] = None):
        self.side = side
        super().__init__(message)


class RecordValidationError(Exception):
    """Raised when record fields or image counts are not acceptable."""
    pass
