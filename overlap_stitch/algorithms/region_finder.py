"""
Windowed overlap search between two images
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from itertools import islice
from typing import List, Optional, Tuple

import numpy as np

from .edges import detect_edges
from ..models.errors import PreconditionError
from ..models.params import Direction, MatchMode, Order, OverlapScore, Position
from ..utils.windows import shift_padding, sliding_windows


logger = logging.getLogger(__name__)

UINT64_MAX = 2 ** 64 - 1

# (score, row index, shift)
Candidate = Tuple[int, int, int]


def pixel_intensity(image: np.ndarray) -> np.ndarray:
    """
    Reduce each pixel to the integer mean of its channels.
    With an even channel count the last channel (alpha) is dropped.
    """
    if image.ndim == 2:
        return image.astype(np.int64)

    channels = image.shape[2]
    if channels % 2 == 0:
        image = image[:, :, :channels - 1]
        channels -= 1

    return image.sum(axis=2, dtype=np.int64) // channels


def window_score(
    rows: np.ndarray,
    reference: np.ndarray,
    window_size: int
) -> int:
    """
    Similarity of two already padded row sets: the summed absolute
    intensity difference inverted against UINT64_MAX, per window row
    """
    dissimilarity = int(np.abs(rows - reference).sum())
    return (UINT64_MAX - dissimilarity) // window_size


def _candidate_key(candidate: Candidate) -> Tuple[int, int, int]:
    # Best score, then the later row, then the smaller shift
    score, row_index, shift = candidate
    return (score, row_index, -shift)


class RegionFinder:
    """
    Searches the offset at which the start of one image best continues
    another
    """

    def __init__(self, num_threads: Optional[int] = None):
        self.num_threads = num_threads

    def find(
        self,
        image_a: np.ndarray,
        image_b: np.ndarray,
        direction: Direction,
        order: Order,
        window_size: int,
        match_mode: MatchMode,
        crop: int = 0,
        skip: Optional[Position] = None
    ) -> OverlapScore:
        """
        Find where `image_b` attaches to `image_a`.

        For unordered pairs the search also runs with the roles swapped;
        that result is marked flipped and wins unless the direct one
        scores strictly higher.
        """
        if window_size < 1:
            raise PreconditionError(f"Window size must be at least 1, got {window_size}")
        if crop < 0:
            raise PreconditionError(f"Crop must be non-negative, got {crop}")

        direct = self._find_ordered(
            image_a, image_b, direction, window_size, match_mode, crop, skip
        )

        if order is Order.ORDERED:
            return direct

        swapped = self._find_ordered(
            image_b, image_a, direction, window_size, match_mode, crop, skip
        ).as_flipped()

        if direct.score > swapped.score:
            return direct
        return swapped

    def _find_ordered(
        self,
        image_a: np.ndarray,
        image_b: np.ndarray,
        direction: Direction,
        window_size: int,
        match_mode: MatchMode,
        crop: int,
        skip: Optional[Position]
    ) -> OverlapScore:
        first, second = image_a, image_b

        # Horizontal search runs over the rows of the rotated images
        if direction is Direction.HORIZONTAL:
            first = np.rot90(first, k=-1)
            second = np.rot90(second, k=-1)

        if match_mode is MatchMode.EDGES:
            first = detect_edges(first)
            second = detect_edges(second)

        row_skip, shift_floor = self._skip_bounds(skip, direction)
        shifts = self._shift_range(first, second, direction, crop, shift_floor)

        score, row_index, shift = self._scan_rows(
            pixel_intensity(first),
            pixel_intensity(second),
            window_size,
            crop,
            row_skip,
            shifts
        )

        if direction is Direction.HORIZONTAL:
            position = Position(x=row_index, y=0)
        else:
            position = Position(x=shift, y=row_index)

        return OverlapScore(score=score, flipped=False, position=position)

    def _skip_bounds(
        self,
        skip: Optional[Position],
        direction: Direction
    ) -> Tuple[int, Optional[int]]:
        """
        First row to consider and lower bound of the shift range
        """
        if skip is None:
            return 0, None
        if direction is Direction.HORIZONTAL:
            return max(skip.x, 0), None
        return max(skip.y, 0), skip.x

    def _shift_range(
        self,
        first: np.ndarray,
        second: np.ndarray,
        direction: Direction,
        crop: int,
        shift_floor: Optional[int]
    ) -> List[int]:
        if direction is not Direction.SIDEWAYS:
            return [0]

        width = max(first.shape[1], second.shape[1])
        start = -(width - 1 - crop)
        if shift_floor is not None and shift_floor > start:
            start = shift_floor
        end = width - crop

        logger.debug(f"Shift range [{start}, {end}] (skip x: {shift_floor})")

        if start > end:
            raise PreconditionError(
                f"Empty horizontal shift range [{start}, {end}] for width {width}"
            )

        return list(range(start, end + 1))

    def _scan_rows(
        self,
        first: np.ndarray,
        second: np.ndarray,
        window_size: int,
        crop: int,
        row_skip: int,
        shifts: List[int]
    ) -> Candidate:
        """
        Score every (window start, shift) pair and return the best one
        """
        reference = second[crop:crop + window_size]
        if reference.shape[0] < window_size:
            raise PreconditionError(
                f"Second image has {max(second.shape[0] - crop, 0)} rows after "
                f"cropping, need at least {window_size}"
            )

        rows = first[:max(first.shape[0] - crop, 0)]
        if rows.shape[0] - row_skip < window_size:
            raise PreconditionError(
                f"First image has {max(rows.shape[0] - row_skip, 0)} rows to "
                f"search after cropping and skipping, need at least {window_size}"
            )

        logger.debug(
            f"Scanning {rows.shape[0] - row_skip - window_size + 1} windows "
            f"from row {row_skip} over {len(shifts)} shift(s)"
        )

        score_shift = partial(
            self._best_for_shift, rows, reference, window_size, row_skip
        )

        if len(shifts) == 1:
            candidates = [score_shift(shifts[0])]
        else:
            with ThreadPoolExecutor(max_workers=self.num_threads) as executor:
                candidates = list(executor.map(score_shift, shifts))

        return max(candidates, key=_candidate_key)

    @staticmethod
    def _best_for_shift(
        rows: np.ndarray,
        reference: np.ndarray,
        window_size: int,
        row_skip: int,
        shift: int
    ) -> Candidate:
        padded_rows, padded_reference = shift_padding(rows, reference, shift)

        best = None
        windows = sliding_windows(
            islice(enumerate(padded_rows), row_skip, None), window_size
        )
        for window in windows:
            row_index = window[0][0]
            block = np.stack([row for _, row in window])
            candidate = (
                window_score(block, padded_reference, window_size),
                row_index,
                shift
            )
            if best is None or _candidate_key(candidate) > _candidate_key(best):
                best = candidate

        return best


def find_region(
    image_a: np.ndarray,
    image_b: np.ndarray,
    direction: Direction,
    order: Order,
    window_size: int,
    match_mode: MatchMode,
    crop: int = 0,
    skip: Optional[Position] = None,
    num_threads: Optional[int] = None
) -> OverlapScore:
    """Convenience wrapper around `RegionFinder.find`"""
    return RegionFinder(num_threads).find(
        image_a, image_b, direction, order, window_size, match_mode, crop, skip
    )
