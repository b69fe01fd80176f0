import numpy as np
import pytest

from kpalette.core_types import InvalidInput
from kpalette.nearest import nearest_indices, nearest_neighbor


def test_picks_closest_candidate():
    cands = np.array([[0, 0, 0], [100, 100, 100], [255, 255, 255]])
    assert nearest_neighbor([90, 110, 95], cands) == 1
    assert nearest_neighbor([250, 250, 250], cands) == 2


def test_tie_goes_to_lowest_index():
    cands = np.array([[0.0, 0.0], [2.0, 0.0], [1.0, 1.0], [1.0, -1.0]])
    # (1, 0) is at squared distance 1 from all four
    assert nearest_neighbor([1.0, 0.0], cands) == 0
    assert nearest_neighbor([1.0, 0.0], cands[::-1]) == 0
    assert nearest_indices(np.array([[1.0, 0.0]]), cands).tolist() == [0]


def test_duplicate_candidates_resolve_to_first():
    cands = np.array([[5, 5, 5, 255], [5, 5, 5, 255]])
    assert nearest_neighbor([5, 5, 5, 255], cands) == 0


def test_batched_matches_scalar():
    rng = np.random.default_rng(3)
    pts = rng.integers(0, 256, size=(500, 4)).astype(np.float64)
    cands = rng.uniform(0, 255, size=(7, 4))
    batched = nearest_indices(pts, cands, chunk_rows=64)
    assert batched.tolist() == [nearest_neighbor(p, cands) for p in pts]


def test_threaded_matches_serial():
    rng = np.random.default_rng(4)
    pts = rng.uniform(0, 255, size=(10_000, 3))
    cands = rng.uniform(0, 255, size=(12, 3))
    serial = nearest_indices(pts, cands, workers=1)
    threaded = nearest_indices(pts, cands, workers=4)
    np.testing.assert_array_equal(serial, threaded)


def test_empty_points_return_empty():
    out = nearest_indices(np.zeros((0, 4)), np.zeros((2, 4)))
    assert out.shape == (0,)


def test_channel_mismatch_rejected():
    with pytest.raises(InvalidInput):
        nearest_neighbor([1, 2, 3], np.zeros((2, 4)))
    with pytest.raises(InvalidInput):
        nearest_indices(np.zeros((3, 3)), np.zeros((2, 4)))


def test_no_candidates_rejected():
    with pytest.raises(InvalidInput):
        nearest_neighbor([1, 2, 3], np.zeros((0, 3)))
