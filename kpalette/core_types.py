from __future__ import annotations

"""
Core type aliases, error types, result value objects, and validation helpers.
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

# Basic aliases

Pixel = NDArray[np.generic]  # (C,)
Dataset = NDArray[np.generic]  # (N, C), row-major decode order
Centroid = NDArray[np.float64]  # (C,)
Palette = NDArray[np.float64]  # (k, C), assignment order
Raster = NDArray[np.generic]  # (H, W, C) or (H, W)
Labels = NDArray[np.int64]  # (N,) cluster index per dataset row

# Errors


class KPaletteError(Exception):
    """Base class for errors raised by kpalette."""


class InvalidInput(KPaletteError, ValueError):
    """Input that clustering or quantization cannot work with."""


class DecodeError(KPaletteError):
    """Source image could not be decoded."""


class QuantizeCancelled(KPaletteError):
    """Cancel event observed between iterations."""


# Value objects


@dataclass(frozen=True)
class KMeansResult:
    """Final centroids plus the bookkeeping from the last iteration."""

    palette: Palette
    labels: Labels
    iterations: int
    converged: bool
    reseeded: Tuple[int, ...]  # clusters re-seeded in the last iteration
    k: int  # effective k after clamping
    seed: int

    @property
    def degraded(self) -> bool:
        """True when the iteration cap was hit before convergence."""
        return not self.converged


# Validation helpers


def as_raster_3d(image: np.ndarray) -> Raster:
    """Return image as (H, W, C); a 2-D array becomes a single channel."""
    arr = np.asarray(image)
    if arr.ndim == 2:
        arr = arr[..., None]
    if arr.ndim != 3:
        raise InvalidInput(f"expected (H,W) or (H,W,C) raster, got shape {arr.shape}")
    if arr.shape[2] < 1:
        raise InvalidInput("raster has no channels")
    return arr


def assert_finite(values: np.ndarray, what: str) -> None:
    """Raise InvalidInput if any sample is NaN or infinite."""
    if values.dtype.kind in "fc" and not np.all(np.isfinite(values)):
        raise InvalidInput(f"{what} contains non-finite samples")


def assert_dataset(dataset: np.ndarray) -> Dataset:
    """Validate a non-empty, finite (N, C) dataset."""
    arr = np.asarray(dataset)
    if arr.ndim != 2:
        raise InvalidInput(f"dataset must be 2-D (N, C), got shape {arr.shape}")
    if arr.shape[0] == 0:
        raise InvalidInput("dataset is empty")
    if arr.shape[1] == 0:
        raise InvalidInput("dataset points have no channels")
    if arr.dtype.kind not in "biuf":
        raise InvalidInput(f"dataset must be numeric, got dtype {arr.dtype}")
    assert_finite(arr, "dataset")
    return arr


def assert_palette(palette: np.ndarray, channels: int) -> Palette:
    """Validate a non-empty, finite (k, C) palette matching the channel count."""
    arr = np.asarray(palette, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[0] == 0:
        raise InvalidInput(f"palette must be a non-empty (k, C) array, got {arr.shape}")
    if arr.shape[1] != channels:
        raise InvalidInput(
            f"palette has {arr.shape[1]} channels, raster has {channels}"
        )
    assert_finite(arr, "palette")
    return arr


__all__ = [
    # aliases
    "Pixel",
    "Dataset",
    "Centroid",
    "Palette",
    "Raster",
    "Labels",
    # errors
    "KPaletteError",
    "InvalidInput",
    "DecodeError",
    "QuantizeCancelled",
    # value objects
    "KMeansResult",
    # helpers
    "as_raster_3d",
    "assert_finite",
    "assert_dataset",
    "assert_palette",
]
