# kpalette/pipeline.py
from __future__ import annotations

"""
End-to-end job: extract dataset -> k-means -> full-resolution quantize.

Exports:
- QuantizeConfig      : per-run settings with validation
- QuantizeOutcome     : output raster, clustering result, timings
- run_quantize(image, config, *, cancel=None) -> QuantizeOutcome
- submit_quantize(executor, image, config, *, cancel=None) -> Future[QuantizeOutcome]

Notes:
- The quantizer always receives the palette produced by the clustering call
  just before it.
- A submitted job is one pending unit of work; nothing is published until it
  finishes.
"""

import threading
import time
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .constants import (
    DEFAULT_K,
    DEFAULT_RESAMPLE,
    DEFAULT_SEED,
    MAX_ITERATIONS,
    MAX_K_MEANS_PIXELS,
    RESAMPLE_CHOICES,
)
from .core_types import InvalidInput, KMeansResult, Raster
from .dataset import ImageLike, extract_dataset, image_to_raster
from .clustering import kmeans
from .remap import quantize
from .utils import debug_log, format_seconds_compact, key_value_pairs_to_string


@dataclass(frozen=True)
class QuantizeConfig:
    """Settings for one quantization run."""

    k: int = DEFAULT_K
    pixel_budget: int = MAX_K_MEANS_PIXELS  # <= 0 disables downsampling
    seed: int = DEFAULT_SEED
    max_iterations: int = MAX_ITERATIONS
    resample: str = DEFAULT_RESAMPLE
    workers: int = 1
    debug: bool = False

    def validate(self) -> "QuantizeConfig":
        if self.k < 1:
            raise InvalidInput(f"k must be >= 1, got {self.k}")
        if self.max_iterations < 1:
            raise InvalidInput(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.resample not in RESAMPLE_CHOICES:
            raise InvalidInput(
                f"resample must be one of {', '.join(RESAMPLE_CHOICES)}, got {self.resample!r}"
            )
        if self.workers < 1:
            raise InvalidInput(f"workers must be >= 1, got {self.workers}")
        return self


@dataclass(frozen=True)
class QuantizeOutcome:
    """Quantized raster plus what produced it."""

    image: Raster
    clustering: KMeansResult
    dataset_size: int
    extract_secs: float
    cluster_secs: float
    quantize_secs: float

    @property
    def total_secs(self) -> float:
        return self.extract_secs + self.cluster_secs + self.quantize_secs


def run_quantize(
    image: ImageLike,
    config: QuantizeConfig = QuantizeConfig(),
    *,
    cancel: Optional[threading.Event] = None,
) -> QuantizeOutcome:
    """Quantize image to config.k colours."""
    config.validate()
    original = image_to_raster(image)

    t0 = time.perf_counter()
    dataset = extract_dataset(original, config.pixel_budget, resample=config.resample)
    t1 = time.perf_counter()
    result = kmeans(
        dataset,
        config.k,
        seed=config.seed,
        max_iterations=config.max_iterations,
        workers=config.workers,
        cancel=cancel,
        debug=config.debug,
    )
    t2 = time.perf_counter()
    output = quantize(original, result.palette, workers=config.workers)
    t3 = time.perf_counter()

    if config.debug:
        H, W = original.shape[:2]
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Image", f"{W}x{H}"),
                    ("Dataset", int(dataset.shape[0])),
                    ("Iterations", result.iterations),
                    ("Converged", result.converged),
                    ("Extract", format_seconds_compact(t1 - t0)),
                    ("Cluster", format_seconds_compact(t2 - t1)),
                    ("Quantize", format_seconds_compact(t3 - t2)),
                ]
            )
        )

    return QuantizeOutcome(
        image=output,
        clustering=result,
        dataset_size=int(dataset.shape[0]),
        extract_secs=t1 - t0,
        cluster_secs=t2 - t1,
        quantize_secs=t3 - t2,
    )


def submit_quantize(
    executor: Executor,
    image: ImageLike,
    config: QuantizeConfig = QuantizeConfig(),
    *,
    cancel: Optional[threading.Event] = None,
) -> "Future[QuantizeOutcome]":
    """Schedule run_quantize on executor. Config errors surface immediately."""
    config.validate()
    if not isinstance(image, np.ndarray):
        image = image_to_raster(image)
    return executor.submit(run_quantize, image, config, cancel=cancel)


__all__ = ["QuantizeConfig", "QuantizeOutcome", "run_quantize", "submit_quantize"]
