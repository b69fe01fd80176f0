import numpy as np
import pytest
from PIL import Image

from kpalette.core_types import InvalidInput
from kpalette.dataset import extract_dataset, rescale_dimensions, resize_raster


def test_rescale_square_budget_keeps_size():
    assert rescale_dimensions(100, 100, 10000) == (100, 100)


def test_rescale_wide_image():
    assert rescale_dimensions(400, 200, 5000) == (100, 50)


@pytest.mark.parametrize(
    "w,h,budget",
    [(1920, 1080, 50_000), (1080, 1920, 50_000), (640, 480, 10_000), (3000, 1000, 2_000), (777, 333, 4321)],
)
def test_rescale_respects_budget_and_aspect(w, h, budget):
    new_w, new_h = rescale_dimensions(w, h, budget)
    assert new_w * new_h <= budget
    assert new_w / new_h == pytest.approx(w / h, rel=0.05)


def test_rescale_rejects_zero_height():
    with pytest.raises(InvalidInput):
        rescale_dimensions(10, 0, 100)


def test_extract_without_resize_is_row_major(random_rgba):
    ds = extract_dataset(random_rgba, pixel_budget=0)
    assert ds.shape == (48 * 64, 4)
    np.testing.assert_array_equal(ds[1], random_rgba[0, 1])
    np.testing.assert_array_equal(ds[64], random_rgba[1, 0])


def test_extract_under_budget_keeps_all_pixels(random_rgba):
    ds = extract_dataset(random_rgba, pixel_budget=48 * 64)
    assert ds.shape == (48 * 64, 4)


def test_extract_downsamples_over_budget():
    img = np.full((200, 300, 4), 128, dtype=np.uint8)
    img[..., 3] = 255
    ds = extract_dataset(img, pixel_budget=10_000)
    assert ds.shape == (122 * 81, 4)
    assert ds.dtype == np.uint8
    assert np.all(ds[:, :3] == 128)
    assert np.all(ds[:, 3] == 255)


def test_extract_is_repeatable(random_rgba):
    a = extract_dataset(random_rgba, pixel_budget=500)
    b = extract_dataset(random_rgba, pixel_budget=500)
    np.testing.assert_array_equal(a, b)


def test_extract_accepts_pil_image():
    im = Image.new("RGB", (20, 10), (1, 2, 3))
    ds = extract_dataset(im, pixel_budget=0)
    assert ds.shape == (200, 4)
    assert ds[0].tolist() == [1, 2, 3, 255]


def test_extract_grayscale_has_one_channel():
    img = np.arange(60, dtype=np.uint8).reshape(6, 10)
    ds = extract_dataset(img, pixel_budget=0)
    assert ds.shape == (60, 1)


def test_resize_keeps_dtype_for_uint16():
    img = np.full((40, 60, 3), 40000, dtype=np.uint16)
    out = resize_raster(img, 30, 20)
    assert out.shape == (20, 30, 3)
    assert out.dtype == np.uint16
    assert np.all(out == 40000)


def test_resize_rejects_unknown_filter(random_rgba):
    with pytest.raises(InvalidInput):
        resize_raster(random_rgba, 10, 10, resample="sinc")
