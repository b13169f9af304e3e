#######################################################
# Unit tests for ../core/pipeline
#######################################################

from collections import deque

import numpy as np
import pytest

from overlap_stitch.core.pipeline import ImageStitcher
from overlap_stitch.models.errors import ConfigurationError, PreconditionError
from overlap_stitch.models.params import Direction, MatchMode, Order, Position

RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)


def test_ordered_solid_strips(solid_image):
    images = [solid_image(10, 10, color) for color in (RED, GREEN, BLUE)]

    stitcher = ImageStitcher(
        images, Order.ORDERED, Direction.VERTICAL, 2, MatchMode.NORMAL, crop=0
    )
    composite, positions = stitcher.run()

    assert composite.shape == (26, 10, 4)
    assert list(positions) == [Position(0, 16), Position(0, 8)]
    assert np.all(composite[:8, :, :3] == RED)
    assert np.all(composite[8:16, :, :3] == GREEN)
    assert np.all(composite[16:, :, :3] == BLUE)


def test_ordered_vertical_rebuilds_source(textured_image):
    base = textured_image(100, 20)
    strips = [base[0:40], base[20:60], base[40:80], base[60:100]]

    composite, positions = ImageStitcher(
        strips, Order.ORDERED, Direction.VERTICAL, 4, MatchMode.NORMAL
    ).run()

    np.testing.assert_array_equal(composite, base)
    assert list(positions) == [Position(0, 60), Position(0, 40), Position(0, 20)]


def test_ordered_horizontal_rebuilds_source(textured_image):
    base = textured_image(20, 100)
    strips = [base[:, 0:40], base[:, 20:60], base[:, 40:80], base[:, 60:100]]

    composite, positions = ImageStitcher(
        strips, Order.ORDERED, Direction.HORIZONTAL, 4, MatchMode.NORMAL
    ).run()

    np.testing.assert_array_equal(composite, base)
    assert list(positions) == [Position(60, 0), Position(40, 0), Position(20, 0)]


def test_ordered_sideways_rebuilds_source(textured_image):
    base = textured_image(60, 35)
    base[:, :5, :3] = 0
    base[:, 30:, :3] = 0
    left, right = base[0:40, 0:30], base[20:60, 5:35]

    composite, positions = ImageStitcher(
        [left, right], Order.ORDERED, Direction.SIDEWAYS, 4, MatchMode.NORMAL
    ).run()

    expected = np.zeros_like(base)
    expected[0:40, 0:30] = left
    expected[20:60, 5:35] = right

    assert list(positions) == [Position(5, 20)]
    np.testing.assert_array_equal(composite, expected)


def test_ordered_with_crop(textured_image):
    base = textured_image(65, 20)

    composite, positions = ImageStitcher(
        [base[:40], base[25:]], Order.ORDERED, Direction.VERTICAL, 4, MatchMode.NORMAL, crop=2
    ).run()

    assert list(positions) == [Position(0, 27)]
    np.testing.assert_array_equal(composite, base)


def test_unordered_merges_best_pairs_first(textured_image):
    base = textured_image(100, 20)
    s0, s1, s2, s3 = base[0:40], base[20:60], base[40:80], base[60:100]

    composite, positions = ImageStitcher(
        [s2, s0, s3, s1], Order.UNORDERED, Direction.VERTICAL, 4, MatchMode.NORMAL
    ).run()

    np.testing.assert_array_equal(composite, base)
    assert list(positions) == [Position(0, 40), Position(0, 20), Position(0, 60)]


@pytest.mark.parametrize("count", [2, 3, 5])
def test_unordered_performs_n_minus_one_merges(textured_image, count):
    images = [textured_image(12, 8, seed=seed) for seed in range(count)]

    composite, positions = ImageStitcher(
        images, Order.UNORDERED, Direction.VERTICAL, 3, MatchMode.EDGES
    ).run()

    assert len(positions) == count - 1
    assert composite.ndim == 3 and composite.shape[2] == 4


def test_run_consumes_images(solid_image):
    stitcher = ImageStitcher(
        [solid_image(6, 6, RED), solid_image(6, 6, BLUE)],
        Order.ORDERED,
        Direction.VERTICAL,
        2,
        MatchMode.NORMAL
    )
    stitcher.run()

    with pytest.raises(ConfigurationError):
        stitcher.run()


def test_precondition_error_aborts_run(solid_image):
    images = [solid_image(10, 10, RED), solid_image(3, 10, BLUE)]

    stitcher = ImageStitcher(images, Order.ORDERED, Direction.VERTICAL, 4, MatchMode.NORMAL)

    with pytest.raises(PreconditionError):
        stitcher.run()


@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"images": []}, "at least 2"),
        ({"window_size": 0}, "Window size"),
        ({"crop": -1}, "Crop"),
    ],
)
def test_invalid_construction(solid_image, kwargs, message):
    params = {
        "images": [solid_image(6, 6, RED), solid_image(6, 6, BLUE)],
        "order": Order.ORDERED,
        "direction": Direction.VERTICAL,
        "window_size": 2,
        "match_mode": MatchMode.NORMAL,
    }
    params.update(kwargs)

    with pytest.raises(ConfigurationError, match=message):
        ImageStitcher(**params)


def test_accepts_option_tokens(solid_image):
    stitcher = ImageStitcher(
        [solid_image(6, 6, RED), solid_image(6, 6, BLUE)], "u", "Sideways", 2, "n"
    )

    assert stitcher.order is Order.UNORDERED
    assert stitcher.direction is Direction.SIDEWAYS
    assert stitcher.match_mode is MatchMode.NORMAL


def test_ordered_positions_prepend_when_not_flipped():
    positions = deque([Position(0, 5)])

    ImageStitcher.add_to_positions_ordered(positions, Position(1, 9), False)

    assert list(positions) == [Position(1, 9), Position(0, 5)]


def test_ordered_positions_rebase_when_flipped():
    positions = deque([Position(0, 5), Position(2, 3)])

    ImageStitcher.add_to_positions_ordered(positions, Position(1, 10), True)

    assert list(positions) == [Position(1, 15), Position(3, 13), Position(1, 10)]


def test_first_ordered_position_is_recorded_even_when_flipped():
    positions = deque()

    ImageStitcher.add_to_positions_ordered(positions, Position(0, 4), True)

    assert list(positions) == [Position(0, 4)]


def test_unordered_bookkeeping_retags_and_moves_second_image():
    tagged = deque([(1, Position(0, 3)), (2, Position(0, 7)), (9, Position(4, 4))])

    ImageStitcher.add_to_positions_unordered(
        tagged, Position(0, 10), merged_id=11, first_id=1, second_id=2
    )

    assert list(tagged) == [
        (11, Position(0, 10)),
        (11, Position(0, 3)),
        (11, Position(0, 17)),
        (9, Position(4, 4)),
    ]
