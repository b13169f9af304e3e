#######################################################
# Unit tests for ../utils/canvas
#######################################################

import numpy as np
import pytest

from overlap_stitch.models.errors import PreconditionError
from overlap_stitch.models.image import Crop
from overlap_stitch.models.params import Direction, Position
from overlap_stitch.utils.canvas import Compositor, stitch_images

RED = (255, 0, 0)
BLUE = (0, 0, 255)


def test_overlap_takes_bottom_image(solid_image):
    top = solid_image(10, 10, RED)
    bottom = solid_image(10, 10, BLUE)

    result = stitch_images(top, bottom, Position(0, 6), False, 0, Direction.VERTICAL)

    assert result.shape == (16, 10, 4)
    assert np.all(result[:6, :, :3] == RED)
    assert np.all(result[6:, :, :3] == BLUE)


def test_flipped_swaps_drawing_order(solid_image):
    top = solid_image(10, 10, RED)
    bottom = solid_image(10, 10, BLUE)

    result = stitch_images(top, bottom, Position(0, 6), True, 0, Direction.VERTICAL)

    assert np.all(result[:6, :, :3] == BLUE)
    assert np.all(result[6:, :, :3] == RED)


def test_negative_offset_moves_top_image(solid_image):
    top = solid_image(10, 10, RED)
    bottom = solid_image(10, 10, BLUE)

    result = stitch_images(top, bottom, Position(0, -4), False, 0, Direction.VERTICAL)

    assert result.shape == (14, 10, 4)
    assert np.all(result[:10, :, :3] == BLUE)
    assert np.all(result[10:, :, :3] == RED)


def test_horizontal_offset_widens_canvas(solid_image):
    top = solid_image(10, 10, RED)
    bottom = solid_image(10, 10, BLUE)

    result = stitch_images(top, bottom, Position(7, 0), False, 0, Direction.HORIZONTAL)

    assert result.shape == (10, 17, 4)
    assert np.all(result[:, :7, :3] == RED)
    assert np.all(result[:, 7:, :3] == BLUE)


def test_uncovered_pixels_are_transparent(solid_image):
    top = solid_image(10, 10, RED)
    bottom = solid_image(10, 10, BLUE)

    result = stitch_images(top, bottom, Position(3, 4), False, 0, Direction.SIDEWAYS)

    assert result.shape == (14, 13, 4)
    # Right of the top image, above the bottom one
    assert np.all(result[:4, 10:] == 0)
    assert np.all(result[10:, :3] == 0)


@pytest.mark.parametrize(
    ("bottom_shape", "position"),
    [
        ((4, 4), Position(0, 0)),
        ((4, 4), Position(2, 3)),
        ((10, 10), Position(-5, -5)),
        ((3, 12), Position(1, -2)),
        ((12, 3), Position(-9, 12)),
    ],
)
def test_canvas_never_shrinks_below_top_image(solid_image, bottom_shape, position):
    top = solid_image(10, 10, RED)
    bottom = solid_image(*bottom_shape, BLUE)

    result = stitch_images(top, bottom, position, False, 0, Direction.SIDEWAYS)

    assert result.shape[0] >= 10
    assert result.shape[1] >= 10


@pytest.mark.parametrize("position", [Position(0, 20), Position(0, -20), Position(25, 0)])
def test_offset_beyond_combined_extent_is_fatal(solid_image, position):
    top = solid_image(10, 10, RED)
    bottom = solid_image(10, 10, BLUE)

    with pytest.raises(PreconditionError):
        stitch_images(top, bottom, position, False, 0, Direction.VERTICAL)


def test_vertical_crop_trims_both_sides_of_the_seam(solid_image):
    top = solid_image(10, 10, RED)
    bottom = solid_image(10, 10, BLUE)

    result = stitch_images(top, bottom, Position(0, 6), False, 2, Direction.VERTICAL)

    # 8 rows of each image remain
    assert result.shape == (14, 10, 4)


@pytest.mark.parametrize(
    ("direction", "position", "first", "second"),
    [
        (Direction.VERTICAL, Position(0, 5), Crop(bottom=1), Crop(top=1)),
        (Direction.HORIZONTAL, Position(5, 0), Crop(right=1), Crop(left=1)),
        (Direction.SIDEWAYS, Position(-3, 5), Crop(bottom=1, right=1), Crop(top=1, left=1)),
        (Direction.SIDEWAYS, Position(3, 5), Crop(bottom=1, left=1), Crop(top=1, right=1)),
    ],
)
def test_crop_policy_is_mirrored(direction, position, first, second):
    policy = Compositor().crop_policy(1, direction, position)

    assert policy == first
    assert policy.reverse() == second


def test_sideways_crop_trims_symmetrically(solid_image):
    top = solid_image(10, 10, RED)
    bottom = solid_image(10, 10, BLUE)

    result = stitch_images(top, bottom, Position(3, 5), False, 1, Direction.SIDEWAYS)

    # Both parts are 9x9 after the mirrored trim
    assert result.shape == (14, 12, 4)


def test_inputs_are_not_modified(solid_image):
    top = solid_image(10, 10, RED)
    bottom = solid_image(10, 10, BLUE)

    stitch_images(top, bottom, Position(0, 6), False, 2, Direction.VERTICAL)

    assert np.all(top[:, :, :3] == RED)
    assert np.all(bottom[:, :, :3] == BLUE)
