import threading

import numpy as np
import pytest

from kpalette.core_types import InvalidInput, QuantizeCancelled
from kpalette.clustering import centroid, cluster, kmeans
from kpalette.nearest import nearest_indices


def test_two_clusters_on_four_points(four_points):
    result = kmeans(four_points, 2, seed=0)
    assert result.converged
    assert result.iterations == 2
    np.testing.assert_array_equal(
        result.palette, [[5, 5, 5, 255], [252.5, 252.5, 252.5, 255]]
    )
    assert result.labels.tolist() == [0, 0, 1, 1]


def test_cluster_returns_palette(four_points):
    palette = cluster(four_points, 2)
    assert palette.shape == (2, 4)
    assert palette.dtype == np.float64
    assert not palette.flags.writeable


@pytest.mark.parametrize("k", [1, 2, 5, 11, 24])
def test_palette_has_k_rows_and_dataset_channels(k):
    data = np.random.default_rng(k).integers(0, 256, size=(400, 4))
    palette = cluster(data, k)
    assert palette.shape == (k, 4)


def test_same_input_same_palette(random_rgba):
    data = random_rgba.reshape(-1, 4)
    a = kmeans(data, 6, seed=0)
    b = kmeans(data, 6, seed=0)
    np.testing.assert_array_equal(a.palette, b.palette)
    assert a.iterations == b.iterations


def test_assignment_is_nearest_at_convergence():
    data = np.random.default_rng(7).integers(0, 256, size=(300, 4))
    result = kmeans(data, 6)
    assert result.converged
    nearest = nearest_indices(data, result.palette)
    np.testing.assert_array_equal(result.labels, nearest)


def test_empty_cluster_is_reseeded_from_dataset():
    # Seed 0 draws indices 0, 2, 2: every initial centroid is (0, 0).
    data = np.array([[0, 0], [0, 0], [0, 0], [100, 100]])
    result = kmeans(data, 3, seed=0)
    assert result.converged
    assert result.iterations == 3
    assert result.reseeded == (1,)
    np.testing.assert_array_equal(result.palette, [[0, 0], [0, 0], [100, 100]])
    # duplicate centroids: ties go to row 0, so row 1 owns no points
    assert result.labels.tolist() == [0, 0, 0, 2]
    np.testing.assert_array_equal(result.labels, nearest_indices(data, result.palette))


def test_single_cluster_is_dataset_mean():
    data = np.array([[0], [10], [20]])
    result = kmeans(data, 1)
    assert result.converged
    np.testing.assert_array_equal(result.palette, [[10.0]])


def test_k_larger_than_dataset_is_clamped(capsys):
    data = np.array([[0, 0, 0], [50, 50, 50], [200, 200, 200]])
    result = kmeans(data, 5)
    assert result.k == 3
    assert result.palette.shape == (3, 3)
    assert "[warn]" in capsys.readouterr().out


def test_iteration_cap_returns_last_palette(four_points, capsys):
    result = kmeans(four_points, 2, max_iterations=1)
    assert not result.converged
    assert result.degraded
    assert result.iterations == 1
    np.testing.assert_array_equal(
        result.palette, [[5, 5, 5, 255], [252.5, 252.5, 252.5, 255]]
    )
    assert "iteration cap" in capsys.readouterr().out


def test_threaded_assignment_gives_same_palette():
    data = np.random.default_rng(11).integers(0, 256, size=(5000, 3))
    serial = kmeans(data, 4, workers=1)
    threaded = kmeans(data, 4, workers=3)
    np.testing.assert_array_equal(serial.palette, threaded.palette)


def test_cancel_before_first_iteration(four_points):
    ev = threading.Event()
    ev.set()
    with pytest.raises(QuantizeCancelled):
        kmeans(four_points, 2, cancel=ev)


@pytest.mark.parametrize(
    "data,k",
    [
        (np.zeros((0, 4)), 2),
        (np.zeros((4, 4)), 0),
        (np.zeros(4), 1),
        (np.array([[0.0, 1.0], [np.nan, 2.0]]), 1),
        (np.array([[0.0, 1.0], [np.inf, 2.0]]), 1),
    ],
)
def test_invalid_input(data, k):
    with pytest.raises(InvalidInput):
        kmeans(data, k)


def test_invalid_max_iterations(four_points):
    with pytest.raises(InvalidInput):
        kmeans(four_points, 2, max_iterations=0)


def test_centroid_is_running_mean():
    np.testing.assert_array_equal(centroid([[0, 4], [10, 6], [20, 8]]), [10.0, 6.0])
    assert centroid(np.zeros((0, 3))).size == 0


def test_debug_trace(four_points, capsys):
    kmeans(four_points, 2, debug=True)
    out = capsys.readouterr().out
    assert "[debug] [kmeans]" in out
    assert "converged" in out
