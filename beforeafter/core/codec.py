"""Bitmap codec used by the normalizer and the scorer.

The normalizer and scorer never touch an imaging library directly; they go
through a ``BitmapCodec``. ``PillowCodec`` is the default implementation.
Every call works on its own image objects, so one codec instance can be
shared between threads.
"""

import io
from typing import Protocol

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import DecodeFailed, EncodeFailed


class BitmapCodec(Protocol):
    """Decode, resample, re-encode and read back raster images."""

    def decode(self, data: bytes) -> Image.Image:
        ...

    def resample(self, bitmap: Image.Image, width: int, height: int) -> Image.Image:
        ...

    def encode_lossy(self, bitmap: Image.Image, quality: float) -> bytes:
        ...

    def read_pixels(self, bitmap: Image.Image) -> np.ndarray:
        ...


def quality_to_jpeg(quality: float) -> int:
    """Map a 0-1 quality factor onto the 1-100 JPEG quality scale."""
    if not 0.0 <= quality <= 1.0:
        raise ValueError(f"quality must be between 0 and 1, got {quality}")
    return max(1, min(100, int(quality * 100 + 0.5)))


def flatten_to_rgb(img: Image.Image) -> Image.Image:
    """Return an RGB image, compositing any transparency over black."""
    if img.mode == "RGB":
        return img
    has_alpha = "A" in img.getbands() or "transparency" in img.info
    if not has_alpha:
        return img.convert("RGB")
    rgba = img.convert("RGBA")
    background = Image.new("RGB", rgba.size, (0, 0, 0))
    background.paste(rgba, mask=rgba.getchannel("A"))
    return background


class PillowCodec:
    """BitmapCodec backed by Pillow."""

    def __init__(self, resample_filter: Image.Resampling = Image.Resampling.LANCZOS):
        self.resample_filter = resample_filter

    def decode(self, data: bytes) -> Image.Image:
        """Decode image bytes, loading pixels eagerly and applying EXIF orientation."""
        if not data:
            raise DecodeFailed("image data is empty")
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
            # Upright as displayed; the JPEG re-encode drops the EXIF tag
            img = ImageOps.exif_transpose(img)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError,
                SyntaxError, EOFError, ValueError) as e:
            raise DecodeFailed(f"could not decode image: {e}") from e
        return img

    def resample(self, bitmap: Image.Image, width: int, height: int) -> Image.Image:
        if bitmap.mode not in ("RGB", "RGBA", "L", "LA"):
            bitmap = bitmap.convert("RGBA")
        return bitmap.resize((width, height), self.resample_filter)

    def encode_lossy(self, bitmap: Image.Image, quality: float) -> bytes:
        jpeg_quality = quality_to_jpeg(quality)
        rgb = flatten_to_rgb(bitmap)
        buffer = io.BytesIO()
        try:
            rgb.save(buffer, format="JPEG", quality=jpeg_quality)
        except (OSError, ValueError) as e:
            raise EncodeFailed(f"could not encode image: {e}") from e
        return buffer.getvalue()

    def read_pixels(self, bitmap: Image.Image) -> np.ndarray:
        """Return an (height, width, 3) uint8 array; alpha is discarded."""
        if bitmap.mode != "RGB":
            bitmap = bitmap.convert("RGB")
        return np.asarray(bitmap, dtype=np.uint8)
