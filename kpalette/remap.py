# kpalette/remap.py
from __future__ import annotations

"""
Full-resolution remap of an image onto a palette.

The palette is usually computed on a downsampled dataset and applied here to
the original pixels. Integer rasters are reduced to their unique colours
first, each unique colour is searched once, and the result is expanded back.
Integer rasters are searched against the rounded palette, so quantize() is
idempotent on its own output.
"""

from typing import Tuple

import numpy as np

from .core_types import Palette, Raster, as_raster_3d, assert_finite, assert_palette
from .nearest import nearest_indices


def palette_in_domain(palette: Palette, dtype: np.dtype) -> np.ndarray:
    """Palette rows rounded half-to-even and clamped to dtype's sample range."""
    pal = np.asarray(palette, dtype=np.float64)
    if dtype.kind in "iu":
        info = np.iinfo(dtype)
        return np.clip(np.rint(pal), info.min, info.max).astype(dtype)
    return pal.astype(dtype)


def _unique_colours_with_inverse(flat: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Unique rows and the inverse index that rebuilds flat.

    uint8 rows of up to 8 channels are packed into one uint64 key, which is
    much faster than np.unique(axis=0) on large images.
    """
    n, channels = flat.shape
    if flat.dtype == np.uint8 and channels <= 8:
        keys = np.zeros(n, dtype=np.uint64)
        for c in range(channels):
            keys |= flat[:, c].astype(np.uint64) << np.uint64(8 * c)
        _, first_idx, inverse = np.unique(keys, return_index=True, return_inverse=True)
        return flat[first_idx], inverse.reshape(-1)
    uniques, inverse = np.unique(flat, axis=0, return_inverse=True)
    return uniques, inverse.reshape(-1)


def quantize(original: Raster, palette: Palette, *, workers: int = 1) -> Raster:
    """
    Replace every pixel with its nearest palette entry.

    Args:
      original : (H, W, C) or (H, W) raster; not modified
      palette  : (k, C) centroids, usually from kmeans() on this image
      workers  : threads for the nearest search

    Returns:
      New raster with the input's shape and dtype.
    """
    src = np.asarray(original)
    arr = as_raster_3d(src)
    H, W, C = arr.shape
    pal = assert_palette(palette, C)
    assert_finite(arr, "image")
    values = palette_in_domain(pal, arr.dtype)

    flat = np.ascontiguousarray(arr).reshape(-1, C)
    if flat.shape[0] == 0:
        return src.copy()

    if arr.dtype.kind in "biu":
        # Match against the values actually written, so a second pass is a no-op.
        uniques, inverse = _unique_colours_with_inverse(flat)
        idx = nearest_indices(uniques, values.astype(np.float64), workers=workers)[inverse]
    else:
        idx = nearest_indices(flat, pal, workers=workers)

    return values[idx].reshape(src.shape)


__all__ = ["palette_in_domain", "quantize"]
