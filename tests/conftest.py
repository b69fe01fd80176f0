import numpy as np
import pytest


@pytest.fixture
def four_points():
    return np.array(
        [
            [0, 0, 0, 255],
            [10, 10, 10, 255],
            [250, 250, 250, 255],
            [255, 255, 255, 255],
        ],
        dtype=np.uint8,
    )


@pytest.fixture
def random_rgba():
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(48, 64, 4), dtype=np.uint8)


@pytest.fixture
def split_rgba():
    """Left half red, right half blue, fully opaque."""
    img = np.zeros((300, 400, 4), dtype=np.uint8)
    img[..., 3] = 255
    img[:, :200, 0] = 220
    img[:, 200:, 2] = 200
    return img
