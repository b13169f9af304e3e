"""
Stitching pipeline deciding which images to merge and in what order
"""

import logging
from collections import deque
from itertools import count
from typing import Deque, List, Optional, Sequence, Tuple

import numpy as np
from tqdm import tqdm

from ..algorithms.region_finder import RegionFinder
from ..models.errors import ConfigurationError
from ..models.image import WorkingImage
from ..models.params import Direction, MatchMode, Order, OverlapScore, Position
from ..utils.canvas import Compositor


logger = logging.getLogger(__name__)


class ImageStitcher:
    """
    Stitches overlapping images into one composite, either folding them in
    input order or greedily merging the best-matching pair first
    """

    def __init__(
        self,
        images: Sequence[np.ndarray],
        order: Order,
        direction: Direction,
        window_size: int,
        match_mode: MatchMode,
        crop: int = 0,
        num_threads: Optional[int] = None,
        show_progress: bool = False
    ):
        if images is None or len(images) < 2:
            raise ConfigurationError("Need at least 2 images to stitch")
        if window_size is None or window_size < 1:
            raise ConfigurationError(f"Window size must be a positive integer, got {window_size}")
        if crop is None or crop < 0:
            raise ConfigurationError(f"Crop must be non-negative, got {crop}")

        self.images = list(images)
        self.order = Order.parse(order)
        self.direction = Direction.parse(direction)
        self.window_size = window_size
        self.match_mode = MatchMode.parse(match_mode)
        self.crop = crop
        self.show_progress = show_progress

        self.region_finder = RegionFinder(num_threads=num_threads)
        self.compositor = Compositor()

    def run(self) -> Tuple[np.ndarray, Deque[Position]]:
        """
        Stitch every image. Returns the composite and one position per merge.
        The input images are consumed.
        """
        if not self.images:
            raise ConfigurationError("Images were already consumed by a previous run")

        logger.info(
            f"Stitching {len(self.images)} images "
            f"({self.order}, {self.direction}, window {self.window_size}, "
            f"{self.match_mode}, crop {self.crop})"
        )

        images, self.images = self.images, []

        if self.order is Order.ORDERED:
            return self._stitch_ordered(images)
        return self._stitch_unordered(images)

    def _progress(self, total: int, desc: str) -> tqdm:
        return tqdm(total=total, desc=desc, disable=not self.show_progress)

    def _stitch_ordered(
        self,
        images: List[np.ndarray]
    ) -> Tuple[np.ndarray, Deque[Position]]:
        positions: Deque[Position] = deque()
        composite = images[0]
        skip: Optional[Position] = None

        with self._progress(len(images) - 1, "Stitching") as progress:
            for index in range(1, len(images)):
                following = images[index]

                region = self.region_finder.find(
                    composite,
                    following,
                    self.direction,
                    Order.ORDERED,
                    self.window_size,
                    self.match_mode,
                    self.crop,
                    skip
                )
                self._log_region(region)

                composite = self.compositor.stitch(
                    composite,
                    following,
                    region.position,
                    region.flipped,
                    self.crop,
                    self.direction
                )
                images[index] = None

                self.add_to_positions_ordered(positions, region.position, region.flipped)
                skip = positions[0]
                progress.update(1)

        return composite, positions

    def _stitch_unordered(
        self,
        images: List[np.ndarray]
    ) -> Tuple[np.ndarray, Deque[Position]]:
        ids = count()
        working: List[WorkingImage] = [
            WorkingImage(next(ids), image) for image in images
        ]
        images.clear()

        tagged: Deque[Tuple[int, Position]] = deque()

        with self._progress(len(working) - 1, "Stitching") as progress:
            while len(working) > 1:
                (i, j), region = self._best_pair(working)
                self._log_region(region)

                # Roles follow the match: a flipped score places i after j
                first, second = working[i], working[j]
                if region.flipped:
                    first, second = second, first

                working = [w for k, w in enumerate(working) if k not in (i, j)]

                merged = WorkingImage(
                    next(ids),
                    self.compositor.stitch(
                        first.pixels,
                        second.pixels,
                        region.position,
                        False,
                        self.crop,
                        self.direction
                    )
                )
                working.append(merged)

                self.add_to_positions_unordered(
                    tagged,
                    region.position,
                    merged.ident,
                    first.ident,
                    second.ident
                )
                progress.update(1)

        return working[0].pixels, deque(position for _, position in tagged)

    def _best_pair(
        self,
        working: List[WorkingImage]
    ) -> Tuple[Tuple[int, int], OverlapScore]:
        """
        Score every pair; the first pair with the highest score wins
        """
        best_pair = (0, 1)
        best_region = OverlapScore()

        for i, image1 in enumerate(working):
            for j in range(i + 1, len(working)):
                region = self.region_finder.find(
                    image1.pixels,
                    working[j].pixels,
                    self.direction,
                    Order.UNORDERED,
                    self.window_size,
                    self.match_mode,
                    self.crop
                )
                logger.debug(
                    f"Pair ({image1.ident}, {working[j].ident}) scored "
                    f"{region.score} at ({region.x}, {region.y})"
                )
                if region.score > best_region.score:
                    best_pair, best_region = (i, j), region

        return best_pair, best_region

    @staticmethod
    def add_to_positions_ordered(
        positions: Deque[Position],
        new_position: Position,
        flipped: bool
    ) -> None:
        """
        Record a merge in the ordered trail. A flipped merge rebases every
        earlier position into the new composite's frame.
        """
        if not positions or not flipped:
            positions.appendleft(new_position)
            return

        for index, position in enumerate(positions):
            positions[index] = position + new_position
        positions.append(new_position)

    @staticmethod
    def add_to_positions_unordered(
        tagged: Deque[Tuple[int, Position]],
        new_position: Position,
        merged_id: int,
        first_id: int,
        second_id: int
    ) -> None:
        """
        Retag records of both merged images to the composite; records of the
        image placed at the offset are moved by it
        """
        for index, (ident, position) in enumerate(tagged):
            if ident not in (first_id, second_id):
                continue
            if ident == second_id:
                position = position + new_position
            tagged[index] = (merged_id, position)

        tagged.appendleft((merged_id, new_position))

    def _log_region(self, region: OverlapScore) -> None:
        logger.info(
            f"Stitch region: x={region.x}, y={region.y}, "
            f"score={region.score}, flipped={region.flipped}"
        )
