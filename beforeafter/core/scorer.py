"""Change score: coarse visual difference between a before and an after image.

Both images are shrunk to a small square grid and the mean absolute RGB
difference is mapped onto 0-100. Identical images score 0 and a black image
against a white one scores 100. Structure finer than the grid is not seen.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from .codec import BitmapCodec, PillowCodec
from .errors import DecodeFailed, ScoringFailed
from .models import NormalizedImage
from .normalizer import parse_image_data_url, round_half_up

logger = logging.getLogger(__name__)

DEFAULT_GRID_SIZE = 64


class ChangeScorer:
    """Computes change scores between normalized images."""

    def __init__(self, grid_size: int = DEFAULT_GRID_SIZE, codec: Optional[BitmapCodec] = None):
        if grid_size < 1:
            raise ValueError(f"grid_size must be positive, got {grid_size}")
        self.grid_size = grid_size
        self.codec = codec or PillowCodec()

    def _grid_pixels(self, image: NormalizedImage, side: str) -> np.ndarray:
        try:
            _media_type, data = parse_image_data_url(image)
            bitmap = self.codec.decode(data)
        except DecodeFailed as e:
            raise ScoringFailed(f"{side} image could not be decoded: {e}", side=side) from e
        grid = self.codec.resample(bitmap, self.grid_size, self.grid_size)
        return self.codec.read_pixels(grid)

    def score(self, before: NormalizedImage, after: NormalizedImage) -> int:
        """Return the change score (0-100) between two images.

        Raises:
            ScoringFailed: If either image cannot be decoded (``side`` names
                which one) or the comparison itself fails
        """
        before_pixels = self._grid_pixels(before, "before")
        after_pixels = self._grid_pixels(after, "after")

        try:
            before_rgb = before_pixels[..., :3].astype(np.int16)
            after_rgb = after_pixels[..., :3].astype(np.int16)
            diff = np.abs(before_rgb - after_rgb)
            pixel_count = self.grid_size * self.grid_size
            # Sum of per-pixel channel means, kept in integers so the order of
            # arguments cannot change the result
            total_diff = int(diff.sum(dtype=np.int64)) / 3
        except ValueError as e:
            raise ScoringFailed(f"could not compare images: {e}") from e

        score = round_half_up(total_diff / pixel_count / 255 * 100)
        logger.debug("Change score on %dx%d grid: %d", self.grid_size, self.grid_size, score)
        return max(0, min(100, score))


def calculate_change_score(
    before: NormalizedImage,
    after: NormalizedImage,
    grid_size: int = DEFAULT_GRID_SIZE,
    codec: Optional[BitmapCodec] = None,
) -> int:
    """Score one before/after pair. See ChangeScorer.score."""
    return ChangeScorer(grid_size, codec).score(before, after)


def aggregate_scores(scores: Sequence[int]) -> Optional[int]:
    """Rounded arithmetic mean of per-pair scores, or None for no pairs."""
    if not scores:
        return None
    return round_half_up(sum(scores) / len(scores))


def compute_change_score(
    before: Sequence[NormalizedImage],
    after: Sequence[NormalizedImage],
    scorer: Optional[ChangeScorer] = None,
) -> Optional[int]:
    """Change score of a whole record, computed pair by pair in order.

    Images pair up by position. A before image without an after image at the
    same index counts as 0. Returns None when there are no after images.
    """
    if not after:
        return None
    scorer = scorer or ChangeScorer()
    scores = []
    for index, before_image in enumerate(before):
        after_image = after[index] if index < len(after) else None
        scores.append(scorer.score(before_image, after_image) if after_image else 0)
    return aggregate_scores(scores)
