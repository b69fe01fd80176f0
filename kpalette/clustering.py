# kpalette/clustering.py
from __future__ import annotations

"""
Seeded k-means (Lloyd's iteration) over a pixel dataset.

- Initial centroids are k seeded draws from the dataset (duplicates allowed).
- Assignment uses the batched nearest search (threaded when workers > 1).
- Means are folded point by point in dataset order, so the float rounding and
  therefore the exact-equality convergence test are reproducible.
- Empty clusters are re-seeded with a fresh draw, in cluster order.
- A hard iteration cap stops oscillating runs; the last centroids are returned.
"""

import threading
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .constants import DEFAULT_K, DEFAULT_SEED, MAX_ITERATIONS
from .core_types import (
    Centroid,
    Dataset,
    InvalidInput,
    KMeansResult,
    Palette,
    QuantizeCancelled,
    assert_dataset,
    assert_finite,
)
from .nearest import nearest_indices
from .rng import SeededRandom
from .utils import debug_log, print_config_line, warn


def _running_means(
    rows: Sequence[Sequence[float]], labels: Sequence[int], k: int, channels: int
) -> Tuple[List[List[float]], List[int]]:
    """Per-cluster incremental means: m += (p - m) / n, in row order."""
    means = [[0.0] * channels for _ in range(k)]
    counts = [0] * k
    for row, lab in zip(rows, labels):
        n = counts[lab] + 1
        counts[lab] = n
        m = means[lab]
        for j in range(channels):
            m[j] += (row[j] - m[j]) / n
    return means, counts


def centroid(points: np.ndarray) -> Centroid:
    """Coordinate-wise running mean of points, folded in order."""
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[0] == 0:
        return np.zeros((0,), dtype=np.float64)
    means, _ = _running_means(pts.tolist(), [0] * pts.shape[0], 1, pts.shape[1])
    return np.array(means[0], dtype=np.float64)


def _effective_k(k: int, n_points: int) -> int:
    if isinstance(k, bool) or int(k) != k:
        raise InvalidInput(f"k must be an integer, got {k!r}")
    k = int(k)
    if k < 1:
        raise InvalidInput(f"k must be >= 1, got {k}")
    if k > n_points:
        warn(f"k={k} exceeds dataset size {n_points}; clamping k to {n_points}")
        return n_points
    return k


def kmeans(
    dataset: Dataset,
    k: int = DEFAULT_K,
    *,
    seed: int = DEFAULT_SEED,
    max_iterations: int = MAX_ITERATIONS,
    workers: int = 1,
    cancel: Optional[threading.Event] = None,
    debug: bool = False,
) -> KMeansResult:
    """
    Cluster dataset rows into k centroids.

    Args:
      dataset        : (N, C) numeric, N >= 1, finite
      k              : clusters; clamped to N
      seed           : seed for this run's own generator
      max_iterations : hard cap on Lloyd iterations (>= 1)
      workers        : threads for the assignment step
      cancel         : checked before each iteration
      debug          : per-iteration trace

    Returns:
      KMeansResult. `labels` is the assignment made in the last iteration.
      When converged, that assignment was made against the returned palette.
    """
    data = assert_dataset(dataset).astype(np.float64, copy=False)
    n_points, channels = data.shape
    k = _effective_k(k, n_points)
    if max_iterations < 1:
        raise InvalidInput(f"max_iterations must be >= 1, got {max_iterations}")

    if debug:
        print_config_line(
            "kmeans",
            [
                ("Points", int(n_points)),
                ("Channels", int(channels)),
                ("K", k),
                ("Seed", int(seed)),
                ("Max iter", int(max_iterations)),
                ("Workers", int(workers)),
            ],
            debug=True,
        )

    rng = SeededRandom(seed)
    centroids = np.array([data[rng.index(n_points)] for _ in range(k)], dtype=np.float64)
    rows = data.tolist()

    labels = np.zeros((n_points,), dtype=np.int64)
    reseeded: List[int] = []
    converged = False
    iterations = 0
    while iterations < max_iterations:
        if cancel is not None and cancel.is_set():
            raise QuantizeCancelled(f"cancelled after {iterations} iterations")
        iterations += 1

        labels = nearest_indices(data, centroids, workers=workers)
        means, counts = _running_means(rows, labels.tolist(), k, channels)

        updated = np.empty_like(centroids)
        reseeded = []
        for i in range(k):
            if counts[i] > 0:
                updated[i] = means[i]
            else:
                updated[i] = data[rng.index(n_points)]
                reseeded.append(i)
        assert_finite(updated, "centroids")

        converged = bool(np.array_equal(updated, centroids))
        if debug:
            moved = int(np.count_nonzero(np.any(updated != centroids, axis=1)))
            debug_log(
                f"iter {iterations}  moved={moved}/{k}  empty={len(reseeded)}"
                + ("  converged" if converged else "")
            )
        centroids = updated
        if converged:
            break

    if not converged:
        warn(
            f"k-means stopped at the iteration cap ({max_iterations}) without converging; "
            "returning the last palette"
        )

    centroids.setflags(write=False)
    labels.setflags(write=False)
    return KMeansResult(
        palette=centroids,
        labels=labels,
        iterations=iterations,
        converged=converged,
        reseeded=tuple(reseeded),
        k=k,
        seed=int(seed),
    )


def cluster(dataset: Dataset, k: int = DEFAULT_K, **kwargs) -> Palette:
    """Palette of k centroids for dataset; see kmeans() for keyword options."""
    return kmeans(dataset, k, **kwargs).palette


__all__ = ["centroid", "kmeans", "cluster"]
