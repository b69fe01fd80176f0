import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
from PIL import Image

from kpalette.core_types import InvalidInput, QuantizeCancelled
from kpalette.pipeline import QuantizeConfig, run_quantize, submit_quantize


def test_full_resolution_output_from_downsampled_palette(split_rgba):
    outcome = run_quantize(split_rgba, QuantizeConfig(k=2, pixel_budget=10_000))
    assert outcome.image.shape == split_rgba.shape
    assert 0 < outcome.dataset_size <= 10_000
    colours = np.unique(outcome.image.reshape(-1, 4), axis=0)
    assert len(colours) == 2
    # each half maps to a single colour
    assert len(np.unique(outcome.image[:, :200].reshape(-1, 4), axis=0)) == 1
    assert len(np.unique(outcome.image[:, 200:].reshape(-1, 4), axis=0)) == 1


def test_pil_image_input():
    im = Image.new("RGB", (30, 20), (10, 200, 30))
    outcome = run_quantize(im, QuantizeConfig(k=2))
    assert outcome.image.shape == (20, 30, 4)
    assert outcome.clustering.k == 2
    assert np.all(outcome.image == [10, 200, 30, 255])


def test_submitted_job_matches_direct_run(random_rgba):
    config = QuantizeConfig(k=4, pixel_budget=1000)
    direct = run_quantize(random_rgba, config)
    with ThreadPoolExecutor(max_workers=1) as ex:
        fut = submit_quantize(ex, random_rgba, config)
        outcome = fut.result()
    np.testing.assert_array_equal(outcome.image, direct.image)
    np.testing.assert_array_equal(outcome.clustering.palette, direct.clustering.palette)
    assert outcome.total_secs >= 0.0


def test_cancelled_job_raises(random_rgba):
    ev = threading.Event()
    ev.set()
    with ThreadPoolExecutor(max_workers=1) as ex:
        fut = submit_quantize(ex, random_rgba, QuantizeConfig(k=3), cancel=ev)
        with pytest.raises(QuantizeCancelled):
            fut.result()


@pytest.mark.parametrize(
    "config",
    [
        QuantizeConfig(k=0),
        QuantizeConfig(max_iterations=0),
        QuantizeConfig(resample="sinc"),
        QuantizeConfig(workers=0),
    ],
)
def test_bad_config_rejected_up_front(random_rgba, config):
    with ThreadPoolExecutor(max_workers=1) as ex:
        with pytest.raises(InvalidInput):
            submit_quantize(ex, random_rgba, config)
