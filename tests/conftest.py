import numpy as np
import pytest


def _solid(height, width, rgb):
    image = np.empty((height, width, 4), dtype=np.uint8)
    image[:, :, :3] = rgb
    image[:, :, 3] = 255
    return image


def _textured(height, width, seed=42):
    rng = np.random.default_rng(seed=seed)
    image = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    image[:, :, 3] = 255
    return image


@pytest.fixture
def solid_image():
    return _solid


@pytest.fixture
def textured_image():
    return _textured
