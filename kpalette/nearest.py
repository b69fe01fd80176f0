# kpalette/nearest.py
from __future__ import annotations

"""
Nearest-neighbour search by squared Euclidean distance.

Both forms add channel squares in channel order, so a batched lookup returns
exactly what the scalar form returns for every row. Ties go to the lowest
candidate index (np.argmin keeps the first minimum).
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from .constants import NEAREST_CHUNK_ELEMENTS, PARALLEL_MIN_POINTS
from .core_types import InvalidInput, Pixel
from .utils import split_rows_into_parts


def _squared_distances(points: np.ndarray, candidates: np.ndarray) -> np.ndarray:
    """(n, C) x (k, C) -> (n, k) float64 squared distances."""
    dist = np.zeros((points.shape[0], candidates.shape[0]), dtype=np.float64)
    for c in range(points.shape[1]):
        diff = points[:, c, None] - candidates[None, :, c]
        dist += diff * diff
    return dist


def _check_shapes(points: np.ndarray, candidates: np.ndarray) -> None:
    if candidates.ndim != 2 or candidates.shape[0] == 0:
        raise InvalidInput("nearest search needs at least one candidate")
    if points.shape[-1] != candidates.shape[1]:
        raise InvalidInput(
            f"channel mismatch: point has {points.shape[-1]}, "
            f"candidates have {candidates.shape[1]}"
        )


def nearest_neighbor(point: Pixel, candidates: np.ndarray) -> int:
    """Index of the candidate closest to point."""
    p = np.asarray(point, dtype=np.float64).reshape(1, -1)
    cand = np.asarray(candidates, dtype=np.float64)
    _check_shapes(p, cand)
    return int(np.argmin(_squared_distances(p, cand)[0]))


def _nearest_block(points: np.ndarray, candidates: np.ndarray, chunk_rows: int) -> np.ndarray:
    out = np.empty(points.shape[0], dtype=np.int64)
    for start in range(0, points.shape[0], chunk_rows):
        stop = min(start + chunk_rows, points.shape[0])
        dist = _squared_distances(points[start:stop], candidates)
        out[start:stop] = np.argmin(dist, axis=1)
    return out


def nearest_indices(
    points: np.ndarray,
    candidates: np.ndarray,
    *,
    workers: int = 1,
    chunk_rows: Optional[int] = None,
) -> np.ndarray:
    """
    Nearest candidate index for every row of points.

    Args:
      points     : (N, C) numeric
      candidates : (k, C) numeric, read-only for the duration of the call
      workers    : threads; row spans are searched independently
      chunk_rows : rows per distance block; default keeps blocks near
                   NEAREST_CHUNK_ELEMENTS cells

    Returns:
      int64 [N]
    """
    pts = np.asarray(points, dtype=np.float64)
    cand = np.asarray(candidates, dtype=np.float64)
    if pts.ndim != 2:
        raise InvalidInput(f"points must be 2-D (N, C), got shape {pts.shape}")
    _check_shapes(pts, cand)

    n = pts.shape[0]
    if n == 0:
        return np.zeros((0,), dtype=np.int64)
    if chunk_rows is None:
        chunk_rows = max(1, NEAREST_CHUNK_ELEMENTS // cand.shape[0])

    if workers <= 1 or n < PARALLEL_MIN_POINTS:
        return _nearest_block(pts, cand, chunk_rows)

    out = np.empty(n, dtype=np.int64)
    spans = split_rows_into_parts(n, workers)
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futs = {
            ex.submit(_nearest_block, pts[s:e], cand, chunk_rows): (s, e)
            for s, e in spans
        }
        for fu, (s, e) in futs.items():
            out[s:e] = fu.result()
    return out


__all__ = ["nearest_neighbor", "nearest_indices"]
