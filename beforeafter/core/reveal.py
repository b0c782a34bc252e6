"""Before/after reveal: show the before image up to a slider position."""

from typing import Optional

from PIL import Image

from .codec import PillowCodec, flatten_to_rgb
from .models import NormalizedImage
from .normalizer import parse_image_data_url


def compose_reveal(
    before: Image.Image,
    after: Optional[Image.Image],
    position: float = 50.0,
) -> Image.Image:
    """Composite before and after images split at ``position`` percent.

    Columns left of the split come from the before image, the rest from the
    after image. The result has the before image's size; the after image is
    resized to match. Without an after image the before image is returned.

    Args:
        before: Before image
        after: After image, or None
        position: Split position, 0-100 (clamped)

    Returns:
        RGB image
    """
    before = flatten_to_rgb(before)
    if after is None:
        return before.copy()

    position = max(0.0, min(100.0, float(position)))
    width, height = before.size
    after = flatten_to_rgb(after)
    if after.size != before.size:
        after = after.resize((width, height), Image.Resampling.LANCZOS)

    split = int(width * position / 100 + 0.5)
    result = after.copy()
    if split > 0:
        result.paste(before.crop((0, 0, split, height)), (0, 0))
    return result


def compose_reveal_from_urls(
    before: NormalizedImage,
    after: Optional[NormalizedImage],
    position: float = 50.0,
) -> Image.Image:
    """compose_reveal for stored data URLs."""
    codec = PillowCodec()
    before_img = codec.decode(parse_image_data_url(before)[1])
    after_img = codec.decode(parse_image_data_url(after)[1]) if after else None
    return compose_reveal(before_img, after_img, position)
