# kpalette/dataset.py
from __future__ import annotations

"""
Dataset extraction: optional downsample to a pixel budget, then flatten.

Exports:
- rescale_dimensions(w, h, pixels) -> (w', h')
- resize_raster(raster, width, height, resample="bilinear") -> Raster
- extract_dataset(image, pixel_budget=MAX_K_MEANS_PIXELS, *, resample="bilinear") -> Dataset

Notes:
- Dataset rows follow row-major decode order. Seeded index draws refer to this
  order, so the same image and budget always give the same rows.
"""

import math
from typing import Tuple, Union

import numpy as np
from PIL import Image

from .constants import DEFAULT_RESAMPLE, MAX_K_MEANS_PIXELS
from .core_types import Dataset, InvalidInput, Raster, as_raster_3d
from .utils import pillow_resample_from_name

ImageLike = Union[np.ndarray, Image.Image]


def rescale_dimensions(width: int, height: int, pixels: int) -> Tuple[int, int]:
    """
    Width and height with about `pixels` pixels and the same aspect ratio.

    Both sides are floored, so w' * h' <= pixels. Each side is at least 1.
    """
    if height <= 0 or width <= 0:
        raise InvalidInput(f"image dimensions must be positive, got {width}x{height}")
    if pixels <= 0:
        raise InvalidInput(f"pixel budget must be positive, got {pixels}")
    aspect_ratio = width / height
    scale = math.sqrt(pixels / aspect_ratio)
    new_w = math.floor(aspect_ratio * scale)
    new_h = math.floor(scale)
    return max(1, new_w), max(1, new_h)


def _restore_dtype(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    if dtype.kind in "iu":
        info = np.iinfo(dtype)
        return np.clip(np.rint(values), info.min, info.max).astype(dtype)
    return values.astype(dtype, copy=False)


def resize_raster(
    raster: np.ndarray,
    width: int,
    height: int,
    resample: str = DEFAULT_RESAMPLE,
) -> Raster:
    """
    Resize an (H, W, C) raster with Pillow.

    uint8 rasters with 1, 3 or 4 channels go through Pillow's L/RGB/RGBA paths
    (RGBA is resampled premultiplied). Anything else is resized one channel at
    a time in float mode and rounded back to the source dtype.
    """
    arr = as_raster_3d(raster)
    res_enum = pillow_resample_from_name(resample)
    H, W, C = arr.shape
    if (W, H) == (width, height):
        return arr

    if arr.dtype == np.uint8 and C in (1, 3, 4):
        src = arr[..., 0] if C == 1 else np.ascontiguousarray(arr)
        im = Image.fromarray(src).resize((width, height), resample=res_enum)
        out = np.array(im, dtype=np.uint8)
        return out[..., None] if C == 1 else out

    planes = []
    for c in range(C):
        plane = Image.fromarray(np.ascontiguousarray(arr[..., c], dtype=np.float32))
        planes.append(np.array(plane.resize((width, height), resample=res_enum)))
    return _restore_dtype(np.stack(planes, axis=-1), arr.dtype)


def image_to_raster(image: ImageLike) -> Raster:
    """PIL images become RGBA uint8 arrays; arrays are returned as (H, W, C)."""
    if isinstance(image, Image.Image):
        return np.array(image.convert("RGBA"), dtype=np.uint8)
    return as_raster_3d(image)


def extract_dataset(
    image: ImageLike,
    pixel_budget: int = MAX_K_MEANS_PIXELS,
    *,
    resample: str = DEFAULT_RESAMPLE,
) -> Dataset:
    """
    Flatten an image into an (N, C) dataset, downsampling first when it has
    more than pixel_budget pixels. pixel_budget <= 0 disables downsampling.
    """
    arr = image_to_raster(image)
    H, W, C = arr.shape
    if H <= 0 or W <= 0:
        raise InvalidInput(f"image dimensions must be positive, got {W}x{H}")

    if pixel_budget > 0 and W * H > pixel_budget:
        new_w, new_h = rescale_dimensions(W, H, pixel_budget)
        arr = resize_raster(arr, new_w, new_h, resample)

    return np.ascontiguousarray(arr).reshape(-1, C)


__all__ = [
    "ImageLike",
    "rescale_dimensions",
    "resize_raster",
    "image_to_raster",
    "extract_dataset",
]
