"""Record creation: normalize every image, score every pair, aggregate.

Normalizations and pair scores are independent units of work. They are fanned
out over a thread pool and joined before the record is assembled; the first
failure is raised and no record is produced.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Sequence, TypeVar

from tqdm import tqdm

from .errors import RecordValidationError
from .models import BeforeAfterRecord, NormalizedImage, RawImageInput
from .normalizer import ImageNormalizer
from .scorer import ChangeScorer, aggregate_scores

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4
DEFAULT_MIN_IMAGE_COUNT = 1
DEFAULT_MAX_IMAGE_COUNT = 3

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchResult:
    """Outcome of one unit of a batch: a value or the error it raised."""

    index: int
    value: Optional[object] = None
    error: Optional[Exception] = None
    name: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_batch(
    func: Callable[[T], R],
    items: Sequence[T],
    max_workers: int = DEFAULT_MAX_WORKERS,
    desc: Optional[str] = None,
    progress: bool = False,
) -> list[BatchResult]:
    """Run ``func`` over ``items`` concurrently and collect every outcome.

    Results come back in input order whatever order the work finishes in.
    A failing item only fails its own result.
    """
    results: list[BatchResult] = [BatchResult(index=i) for i in range(len(items))]
    if not items:
        return results

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(func, item): i for i, item in enumerate(items)}
        for future in tqdm(as_completed(futures), total=len(futures), desc=desc,
                           disable=not progress, leave=False):
            index = futures[future]
            try:
                results[index].value = future.result()
            except Exception as e:
                results[index].error = e
    return results


def first_error(results: Sequence[BatchResult]) -> Optional[Exception]:
    for result in results:
        if result.error is not None:
            return result.error
    return None


def validate_record_request(
    title: str,
    before_count: int,
    after_count: int,
    min_images: int = DEFAULT_MIN_IMAGE_COUNT,
    max_images: int = DEFAULT_MAX_IMAGE_COUNT,
) -> str:
    """Check title and image counts of a new record. Returns the trimmed title."""
    title = (title or "").strip()
    if not title:
        raise RecordValidationError("title is required")
    if not min_images <= before_count <= max_images:
        raise RecordValidationError(
            f"select between {min_images} and {max_images} before images (got {before_count})"
        )
    if after_count > max_images:
        raise RecordValidationError(
            f"select at most {max_images} after images (got {after_count})"
        )
    return title


class RecordPipeline:
    """Builds new before/after records from raw image inputs."""

    def __init__(
        self,
        normalizer: Optional[ImageNormalizer] = None,
        scorer: Optional[ChangeScorer] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        min_images: int = DEFAULT_MIN_IMAGE_COUNT,
        max_images: int = DEFAULT_MAX_IMAGE_COUNT,
        progress: bool = False,
    ):
        self.normalizer = normalizer or ImageNormalizer()
        self.scorer = scorer or ChangeScorer()
        self.max_workers = max_workers
        self.min_images = min_images
        self.max_images = max_images
        self.progress = progress

    @classmethod
    def from_settings(cls, settings, progress: bool = False) -> "RecordPipeline":
        """Build a pipeline from a Settings object."""
        normalizer = ImageNormalizer(
            max_dimension=settings.max_dimension,
            quality=settings.jpeg_quality,
            max_file_size=settings.max_file_size,
        )
        return cls(
            normalizer=normalizer,
            scorer=ChangeScorer(grid_size=settings.grid_size),
            max_workers=settings.max_workers,
            min_images=settings.min_image_count,
            max_images=settings.max_image_count,
            progress=progress,
        )

    def normalize_batch(self, inputs: Sequence[RawImageInput]) -> list[BatchResult]:
        """Normalize every input; each result carries its image or its error."""
        results = run_batch(self.normalizer.normalize, inputs, self.max_workers,
                            desc="Normalizing", progress=self.progress)
        for result, raw in zip(results, inputs):
            result.name = raw.name
            if not result.ok:
                logger.warning("Could not normalize %s: %s", raw.name or f"image {result.index}",
                               result.error)
        return results

    def normalize_all(self, inputs: Sequence[RawImageInput]) -> list[NormalizedImage]:
        """Normalize every input, raising the first failure."""
        results = self.normalize_batch(inputs)
        error = first_error(results)
        if error is not None:
            raise error
        return [result.value for result in results]

    def score_pairs(
        self,
        before: Sequence[NormalizedImage],
        after: Sequence[NormalizedImage],
    ) -> list[int]:
        """Score each before image against the after image at the same index.

        A before image with no after image scores 0.
        """
        pairs = [(i, after[i]) for i in range(len(before)) if i < len(after) and after[i]]
        results = run_batch(lambda pair: self.scorer.score(before[pair[0]], pair[1]),
                            pairs, self.max_workers, desc="Scoring", progress=self.progress)
        error = first_error(results)
        if error is not None:
            raise error

        scores = [0] * len(before)
        for (index, _), result in zip(pairs, results):
            scores[index] = result.value
        return scores

    def compute_change_score(
        self,
        before: Sequence[NormalizedImage],
        after: Sequence[NormalizedImage],
    ) -> Optional[int]:
        """Aggregate change score of a record, None when there are no after images."""
        if not after:
            return None
        return aggregate_scores(self.score_pairs(before, after))

    def create_record(
        self,
        title: str,
        before_inputs: Sequence[RawImageInput],
        after_inputs: Sequence[RawImageInput],
        record_date: Optional[str] = None,
    ) -> BeforeAfterRecord:
        """Normalize, score and assemble a new record.

        Raises:
            RecordValidationError: Bad title or image counts
            ImageProcessingError: Any image failed to normalize or score
        """
        title = validate_record_request(title, len(before_inputs), len(after_inputs),
                                        self.min_images, self.max_images)
        if record_date is None:
            record_date = date.today().isoformat()
        else:
            try:
                date.fromisoformat(record_date)
            except ValueError:
                raise RecordValidationError(f"invalid date: {record_date!r} (expected YYYY-MM-DD)")

        images = self.normalize_all(list(before_inputs) + list(after_inputs))
        before, after = images[:len(before_inputs)], images[len(before_inputs):]
        change_score = self.compute_change_score(before, after)

        record = BeforeAfterRecord(
            title=title,
            date=record_date,
            before=before,
            after=after,
            change_score=change_score,
        )
        logger.info("Created record %s (%d before, %d after, score=%s)",
                    record.id, len(before), len(after), change_score)
        return record
