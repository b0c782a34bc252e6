"""
Tests for image normalization (beforeafter/core/normalizer.py)
"""
import base64
import io

import pytest
from PIL import Image

from beforeafter.core.errors import (
    DecodeFailed,
    EncodeFailed,
    FileTooLarge,
    InvalidImageDimensions,
    InvalidInputKind,
)
from beforeafter.core.models import RawImageInput
from beforeafter.core.normalizer import (
    ImageNormalizer,
    compute_target_size,
    format_image_data_url,
    normalize_image,
    parse_image_data_url,
)

from .helpers import decode_data_url, gradient_image, make_image, raw_input


class TestComputeTargetSize:
    """Test compute_target_size"""

    def test_landscape_scaled_to_max(self):
        assert compute_target_size(1600, 900, 800) == (800, 450)

    def test_portrait_scaled_to_max(self):
        assert compute_target_size(900, 1600, 800) == (450, 800)

    def test_square_scaled(self):
        assert compute_target_size(1000, 1000, 800) == (800, 800)

    def test_within_limit_unchanged(self):
        assert compute_target_size(800, 600, 800) == (800, 600)

    def test_small_image_not_upscaled(self):
        assert compute_target_size(10, 20, 800) == (10, 20)

    def test_half_rounds_up(self):
        # 3 * 800 / 1600 = 1.5
        assert compute_target_size(1600, 3, 800) == (800, 2)

    def test_sides_rounded_independently(self):
        # 999 * 800 / 1001 = 798.4 -> 798
        assert compute_target_size(1001, 999, 800) == (800, 798)

    def test_extreme_ratio_rounds_to_zero(self):
        assert compute_target_size(10000, 1, 800) == (800, 0)


class TestDataUrls:
    """Test data URL helpers"""

    def test_format(self):
        assert format_image_data_url("QUJD") == "data:image/jpeg;base64,QUJD"

    def test_parse_round_trip(self):
        media_type, data = parse_image_data_url("data:image/jpeg;base64,QUJD")
        assert media_type == "image/jpeg"
        assert data == b"ABC"

    def test_parse_without_data_prefix(self):
        media_type, data = parse_image_data_url("image/jpeg;base64,QUJD")
        assert media_type == "image/jpeg"
        assert data == b"ABC"

    def test_parse_rejects_non_image(self):
        with pytest.raises(DecodeFailed):
            parse_image_data_url("data:text/plain;base64,QUJD")

    def test_parse_rejects_missing_comma(self):
        with pytest.raises(DecodeFailed):
            parse_image_data_url("data:image/jpeg;base64")

    def test_parse_rejects_bad_base64(self):
        with pytest.raises(DecodeFailed):
            parse_image_data_url("data:image/jpeg;base64,@@@")


class TestNormalize:
    """Test ImageNormalizer.normalize"""

    def test_output_is_jpeg_data_url(self):
        url = normalize_image(raw_input(gradient_image()))
        assert url.startswith("data:image/jpeg;base64,")
        payload = url.split(",", 1)[1]
        assert base64.b64decode(payload, validate=True)[:2] == b"\xff\xd8"

    def test_large_image_resized(self):
        url = normalize_image(raw_input(make_image(1600, 900)), max_dimension=800)
        img = decode_data_url(url)
        assert img.format == "JPEG"
        assert img.size == (800, 450)

    def test_small_image_keeps_size(self):
        url = normalize_image(raw_input(gradient_image(120, 80)))
        assert decode_data_url(url).size == (120, 80)

    def test_longer_side_capped(self):
        url = normalize_image(raw_input(gradient_image(300, 170)), max_dimension=100)
        img = decode_data_url(url)
        assert max(img.size) <= 100
        assert img.size == (100, 57)

    def test_png_photo_round_trip(self):
        raw = raw_input(gradient_image(640, 480))
        url = normalize_image(raw, max_dimension=320)
        img = decode_data_url(url)
        assert img.format == "JPEG"
        assert img.mode == "RGB"
        assert img.size == (320, 240)

    def test_transparent_png_flattened(self):
        img = make_image(20, 20, (255, 0, 0, 0), mode="RGBA")
        decoded = decode_data_url(normalize_image(raw_input(img)))
        assert decoded.mode == "RGB"
        r, g, b = decoded.getpixel((10, 10))
        assert r < 10 and g < 10 and b < 10

    def test_palette_image(self):
        img = gradient_image(50, 50).convert("P")
        assert decode_data_url(normalize_image(raw_input(img))).size == (50, 50)

    def test_quality_affects_size(self):
        raw = raw_input(gradient_image(400, 300))
        low = normalize_image(raw, quality=0.1)
        high = normalize_image(raw, quality=1.0)
        assert len(low) < len(high)

    def test_deterministic(self):
        raw = raw_input(gradient_image())
        assert normalize_image(raw) == normalize_image(raw)

    def test_rejects_non_image_media_type(self):
        raw = raw_input(make_image(), media_type="application/pdf")
        with pytest.raises(InvalidInputKind):
            normalize_image(raw)

    def test_media_type_checked_before_size(self):
        raw = RawImageInput(data=b"x", media_type="text/plain", size=50 * 1024 * 1024)
        with pytest.raises(InvalidInputKind):
            normalize_image(raw)

    def test_rejects_too_large(self):
        raw = raw_input(make_image())
        with pytest.raises(FileTooLarge) as exc_info:
            normalize_image(raw, max_file_size=len(raw.data) - 1)
        assert exc_info.value.limit == len(raw.data) - 1

    def test_declared_size_is_checked(self):
        raw = raw_input(make_image())
        raw.size = 10 * 1024 * 1024 + 1
        with pytest.raises(FileTooLarge):
            normalize_image(raw)

    def test_actual_size_is_checked(self):
        raw = raw_input(make_image())
        raw.size = 1
        with pytest.raises(FileTooLarge) as exc_info:
            normalize_image(raw, max_file_size=len(raw.data) - 1)
        assert exc_info.value.size == len(raw.data)

    def test_exif_orientation_applied(self):
        exif = Image.Exif()
        exif[0x0112] = 6  # rotated 90 degrees clockwise
        buffer = io.BytesIO()
        gradient_image(1600, 900).save(buffer, format="JPEG", exif=exif)
        raw = RawImageInput(data=buffer.getvalue(), media_type="image/jpeg")

        assert decode_data_url(normalize_image(raw)).size == (450, 800)

    def test_size_at_limit_accepted(self):
        raw = raw_input(make_image())
        assert normalize_image(raw, max_file_size=len(raw.data))

    def test_corrupt_bytes(self):
        raw = RawImageInput(data=b"not an image at all", media_type="image/png")
        with pytest.raises(DecodeFailed):
            normalize_image(raw)

    def test_empty_bytes(self):
        with pytest.raises(DecodeFailed):
            normalize_image(RawImageInput(data=b"", media_type="image/png"))

    def test_truncated_png(self):
        data = raw_input(gradient_image()).data
        with pytest.raises(DecodeFailed):
            normalize_image(RawImageInput(data=data[: len(data) // 2], media_type="image/png"))

    def test_side_rounding_to_zero_fails_encode(self):
        raw = raw_input(make_image(2000, 1))
        with pytest.raises(EncodeFailed):
            normalize_image(raw, max_dimension=800)

    def test_invalid_quality(self):
        with pytest.raises(ValueError):
            ImageNormalizer(quality=1.5)

    def test_invalid_max_dimension(self):
        with pytest.raises(ValueError):
            ImageNormalizer(max_dimension=0)


class FakeBitmap:
    size = (0, 10)


class ZeroSizeCodec:
    """Codec whose decoder reports an empty image."""

    def decode(self, data):
        return FakeBitmap()


class EmptyEncodeCodec:
    """Codec whose encoder returns nothing."""

    def decode(self, data):
        return Image.new("RGB", (4, 4))

    def resample(self, bitmap, width, height):
        return bitmap

    def encode_lossy(self, bitmap, quality):
        return b""


class TestCodecSeams:
    """Test failures reported through a custom codec"""

    def test_zero_dimension(self):
        normalizer = ImageNormalizer(codec=ZeroSizeCodec())
        with pytest.raises(InvalidImageDimensions):
            normalizer.normalize(RawImageInput(data=b"x", media_type="image/png"))

    def test_empty_encode(self):
        normalizer = ImageNormalizer(codec=EmptyEncodeCodec())
        with pytest.raises(EncodeFailed):
            normalizer.normalize(RawImageInput(data=b"x", media_type="image/png"))
