"""
Canvas sizing and pairwise compositing
"""

import logging
from typing import Tuple

import numpy as np

from ..models.errors import PreconditionError
from ..models.image import Crop
from ..models.params import Direction, Position


logger = logging.getLogger(__name__)


class Compositor:
    """
    Fuses two images placed at an offset into one new canvas. Overlapping
    pixels take the value of the image drawn second.
    """

    def crop_policy(self, crop: int, direction: Direction, position: Position) -> Crop:
        """
        Margins trimmed from the first image; the second gets the mirror
        """
        if direction is Direction.VERTICAL:
            return Crop(bottom=crop)
        if direction is Direction.HORIZONTAL:
            return Crop(right=crop)

        if position.x < 0:
            return Crop(bottom=crop, right=crop)
        return Crop(bottom=crop, left=crop)

    def stitch(
        self,
        image_a: np.ndarray,
        image_b: np.ndarray,
        position: Position,
        flipped: bool,
        crop: int,
        direction: Direction
    ) -> np.ndarray:
        """
        Crop both images for `direction` and stack them at `position`
        """
        first_crop = self.crop_policy(crop, direction, position)

        part_a = first_crop.apply(image_a)
        part_b = first_crop.reverse().apply(image_b)

        return self.stack_with_overlap(part_a, part_b, position, flipped)

    def compute_canvas_size(
        self,
        top_shape: Tuple[int, ...],
        bottom_shape: Tuple[int, ...],
        position: Position
    ) -> Tuple[int, int]:
        """
        Canvas (height, width) holding both images, never smaller than the
        image drawn first
        """
        top_h, top_w = top_shape[:2]
        bottom_h, bottom_w = bottom_shape[:2]

        if abs(position.y) >= top_h + bottom_h:
            raise PreconditionError(
                f"Vertical offset {position.y} exceeds combined height "
                f"{top_h + bottom_h}"
            )
        if abs(position.x) >= top_w + bottom_w:
            raise PreconditionError(
                f"Horizontal offset {position.x} exceeds combined width "
                f"{top_w + bottom_w}"
            )

        width = bottom_w + position.x if position.x >= 0 else top_w - position.x
        height = bottom_h + position.y if position.y >= 0 else top_h - position.y

        return (max(height, top_h), max(width, top_w))

    def stack_with_overlap(
        self,
        top_image: np.ndarray,
        bottom_image: np.ndarray,
        position: Position,
        flipped: bool
    ) -> np.ndarray:
        """
        Draw the top image, then the bottom image over it
        """
        if flipped:
            top_image, bottom_image = bottom_image, top_image

        height, width = self.compute_canvas_size(
            top_image.shape, bottom_image.shape, position
        )

        canvas = np.zeros(
            (height, width) + top_image.shape[2:],
            dtype=top_image.dtype
        )

        top_x = 0 if position.x >= 0 else -position.x
        top_y = 0 if position.y >= 0 else -position.y
        bottom_x = position.x if position.x >= 0 else 0
        bottom_y = position.y if position.y >= 0 else 0

        top_h, top_w = top_image.shape[:2]
        canvas[top_y:top_y + top_h, top_x:top_x + top_w] = top_image

        # Bottom pixels beyond the canvas are dropped
        visible_h = max(min(bottom_image.shape[0], height - bottom_y), 0)
        visible_w = max(min(bottom_image.shape[1], width - bottom_x), 0)
        canvas[bottom_y:bottom_y + visible_h, bottom_x:bottom_x + visible_w] = (
            bottom_image[:visible_h, :visible_w]
        )

        logger.debug(
            f"Stacked {top_w}x{top_h} and {bottom_image.shape[1]}x"
            f"{bottom_image.shape[0]} at ({position.x}, {position.y}) "
            f"into {width}x{height}"
        )

        return canvas


def stitch_images(
    image_a: np.ndarray,
    image_b: np.ndarray,
    position: Position,
    flipped: bool,
    crop: int,
    direction: Direction
) -> np.ndarray:
    """Convenience wrapper around `Compositor.stitch`"""
    return Compositor().stitch(image_a, image_b, position, flipped, crop, direction)
