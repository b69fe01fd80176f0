# kpalette/__init__.py
"""
kpalette package.

Purpose:
  Reduce an image to k representative colours with seeded k-means, then remap
  every pixel of the full-resolution image to its nearest representative.
  See kpalette.cli for the command line.

Public API:
  extract_dataset : image -> (N, C) dataset, downsampled to a pixel budget.
  cluster         : dataset, k -> (k, C) palette.
  kmeans          : same as cluster, returning the full KMeansResult.
  quantize        : original image, palette -> quantized raster.
  run_quantize    : the three steps above as one job (QuantizeConfig).
  image_io        : decode / encode helpers (load_image, encode_png, to_data_url).
  core_types      : aliases, result objects and errors (InvalidInput, DecodeError).

Quick start:
  from kpalette import extract_dataset, cluster, quantize
  from kpalette.image_io import load_image, save_image

  img = load_image(path)
  palette = cluster(extract_dataset(img, 50_000), 8)
  save_image(out_path, quantize(img, palette))
"""

__version__ = "0.1.0"

# Re-export namespaces for convenience.
from . import constants
from . import core_types
from . import image_io
from . import utils

from .core_types import (
    DecodeError,
    InvalidInput,
    KMeansResult,
    KPaletteError,
    QuantizeCancelled,
)
from .dataset import extract_dataset, rescale_dimensions
from .clustering import cluster, kmeans
from .nearest import nearest_indices, nearest_neighbor
from .pipeline import QuantizeConfig, QuantizeOutcome, run_quantize, submit_quantize
from .remap import quantize
from .rng import SeededRandom

__all__ = [
    "__version__",
    "constants",
    "core_types",
    "image_io",
    "utils",
    "DecodeError",
    "InvalidInput",
    "KMeansResult",
    "KPaletteError",
    "QuantizeCancelled",
    "extract_dataset",
    "rescale_dimensions",
    "cluster",
    "kmeans",
    "nearest_indices",
    "nearest_neighbor",
    "QuantizeConfig",
    "QuantizeOutcome",
    "run_quantize",
    "submit_quantize",
    "quantize",
    "SeededRandom",
]
