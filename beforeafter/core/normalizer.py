"""Image normalization: validate, downscale and re-encode as a JPEG data URL."""

import base64
import binascii
import logging
import math
from typing import Optional

from .codec import BitmapCodec, PillowCodec
from .errors import (
    DecodeFailed,
    EncodeFailed,
    FileTooLarge,
    InvalidImageDimensions,
    InvalidInputKind,
)
from .models import NormalizedImage, RawImageInput

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIMENSION = 800
DEFAULT_JPEG_QUALITY = 0.8
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB

NORMALIZED_MEDIA_TYPE = "image/jpeg"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def compute_target_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Compute the size an image is resized to before encoding.

    The longer side is capped at ``max_dimension`` and the other side is
    scaled by the same factor. Each side is rounded on its own, so the ratio
    can drift by up to one pixel. Images that already fit are left alone,
    including ones smaller than the cap.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        max_dimension: Maximum allowed width or height in pixels

    Returns:
        (new_width, new_height)
    """
    if width > height:
        if width > max_dimension:
            height = round_half_up(height * (max_dimension / width))
            width = max_dimension
    else:
        if height > max_dimension:
            width = round_half_up(width * (max_dimension / height))
            height = max_dimension
    return width, height


def format_image_data_url(payload_base64: str, media_type: str = NORMALIZED_MEDIA_TYPE) -> str:
    """Format base64 image data as a data URL.

    Returns:
        Data URL in format: data:{media_type};base64,{data}
    """
    return f"data:{media_type};base64,{payload_base64}"


def parse_image_data_url(url: str) -> tuple[str, bytes]:
    """Split an image data URL into its media type and decoded bytes.

    Accepts both ``data:image/jpeg;base64,...`` and the bare
    ``image/jpeg;base64,...`` form.

    Raises:
        DecodeFailed: If the string is not a base64 image data URL
    """
    if not isinstance(url, str) or "," not in url:
        raise DecodeFailed("not an image data URL")

    header, payload = url.split(",", 1)
    if header.startswith("data:"):
        header = header[len("data:"):]
    media_type, _, encoding = header.partition(";")
    if not media_type.startswith("image/") or encoding != "base64":
        raise DecodeFailed(f"unsupported data URL header: {header[:40]!r}")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailed(f"invalid base64 payload: {e}") from e
    return media_type, data


class ImageNormalizer:
    """Turns user supplied images into canonical JPEG data URLs."""

    def __init__(
        self,
        max_dimension: int = DEFAULT_MAX_DIMENSION,
        quality: float = DEFAULT_JPEG_QUALITY,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        codec: Optional[BitmapCodec] = None,
    ):
        """Initialize the normalizer.

        Args:
            max_dimension: Longer-side cap in pixels for normalized output
            quality: JPEG quality factor, 0 (lowest) to 1 (highest)
            max_file_size: Inputs larger than this (declared or actual) are rejected
            codec: Bitmap codec to use. Defaults to PillowCodec.
        """
        if max_dimension < 1:
            raise ValueError(f"max_dimension must be positive, got {max_dimension}")
        if not 0.0 <= quality <= 1.0:
            raise ValueError(f"quality must be between 0 and 1, got {quality}")
        self.max_dimension = max_dimension
        self.quality = quality
        self.max_file_size = max_file_size
        self.codec = codec or PillowCodec()

    def validate(self, raw: RawImageInput) -> None:
        """Check the declared media type and the size of an input."""
        if not raw.media_type or not raw.media_type.startswith("image/"):
            raise InvalidInputKind(
                f"{raw.name or 'input'} is not an image (declared {raw.media_type!r})"
            )
        # The buffer itself counts even when it claims to be smaller
        size = max(raw.size, len(raw.data))
        if size > self.max_file_size:
            raise FileTooLarge(size, self.max_file_size, raw.name)

    def normalize(self, raw: RawImageInput) -> NormalizedImage:
        """Normalize one image.

        Raises:
            InvalidInputKind: The input does not declare an image media type
            FileTooLarge: The input is larger than max_file_size
            DecodeFailed: The bytes could not be decoded
            InvalidImageDimensions: The decoded image has an empty side
            EncodeFailed: Encoding produced no output
        """
        self.validate(raw)

        bitmap = self.codec.decode(raw.data)
        width, height = bitmap.size
        if width <= 0 or height <= 0:
            raise InvalidImageDimensions(f"invalid image size {width}x{height}")

        new_width, new_height = compute_target_size(width, height, self.max_dimension)
        if new_width <= 0 or new_height <= 0:
            raise EncodeFailed(
                f"{width}x{height} image would be resized to {new_width}x{new_height}"
            )
        if (new_width, new_height) != (width, height):
            logger.debug("Resizing %s from %dx%d to %dx%d",
                         raw.name or "image", width, height, new_width, new_height)
            bitmap = self.codec.resample(bitmap, new_width, new_height)

        payload = self.codec.encode_lossy(bitmap, self.quality)
        if not payload:
            raise EncodeFailed("encoder returned no data")

        return format_image_data_url(base64.b64encode(payload).decode("ascii"))


def normalize_image(
    raw: RawImageInput,
    max_dimension: int = DEFAULT_MAX_DIMENSION,
    quality: float = DEFAULT_JPEG_QUALITY,
    max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    codec: Optional[BitmapCodec] = None,
) -> NormalizedImage:
    """Normalize one image with the given settings. See ImageNormalizer.normalize."""
    normalizer = ImageNormalizer(max_dimension, quality, max_file_size, codec)
    return normalizer.normalize(raw)
