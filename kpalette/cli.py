#!/usr/bin/env python3
"""
kpalette command line.
Reduce image(s) to K colours with seeded k-means and write the quantized PNGs.

Usage:
  kpalette INPUT [--outdir DIR] [-k K] [--pixels P] [--seed S] [--max-iter N]
           [--resample nearest|bilinear|bicubic|lanczos] [--workers N] [--jobs N]
           [--data-url] [--debug]

Input:
  An image file or a folder of images. Any Pillow-readable file is decoded to
  RGBA in sRGB. Alpha is clustered like any other channel.

Output:
  <stem>_k<K>.png next to INPUT, or under --outdir. With --data-url the PNG is
  printed as a data URL instead of written.

Notes:
  Clustering runs on at most --pixels pixels (bilinear downsample); the palette
  is then applied to the full-resolution image.
"""

from __future__ import annotations

import argparse
import io
import os
import re
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from contextlib import redirect_stdout
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .constants import (
    DEFAULT_K,
    DEFAULT_RESAMPLE,
    DEFAULT_SEED,
    IMAGE_EXTS,
    K_CHOICES,
    MAX_ITERATIONS,
    MAX_K_MEANS_PIXELS,
    OUTPUT_SUFFIX,
    RESAMPLE_CHOICES,
)
from .core_types import DecodeError, InvalidInput
from .image_io import load_image, save_image, to_data_url
from .pipeline import QuantizeConfig, run_quantize
from .utils import (
    colour_usage_report,
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_seconds_compact,
    format_total_duration_compact,
    key_value_pairs_to_string,
    log,
    print_banner,
    print_config_line,
)

_OUTPUT_STEM = re.compile(re.escape(OUTPUT_SUFFIX) + r"\d+$")

# CLI args & small helpers


def _default_workers() -> int:
    """Leave a few cores free for the system; returns a sensible worker count."""
    n = os.cpu_count() or 4
    reserve = 1 if n <= 6 else 2 if n <= 12 else 3 if n <= 18 else 4
    return max(1, n - reserve)


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Returns:
      argparse.Namespace with:
        src: Path to image or folder
        outdir: optional Path for outputs
        k: colours in the palette
        pixels: clustering pixel budget (<= 0 disables downsampling)
        seed: generator seed
        max_iter: k-means iteration cap
        resample: downsample filter name
        workers: threads for nearest search
        jobs: files processed in parallel
        data_url: print a data URL instead of writing files
        debug: bool for verbose details
    """
    parser = argparse.ArgumentParser(
        prog="kpalette",
        description="Reduce image(s) to K colours with seeded k-means.",
    )
    parser.add_argument("src", type=Path, help="Input image or folder")
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )
    parser.add_argument(
        "-k",
        "--colours",
        dest="k",
        type=int,
        choices=K_CHOICES,
        default=DEFAULT_K,
        metavar="K",
        help=f"Palette size, one of {', '.join(map(str, K_CHOICES))}.",
    )
    parser.add_argument(
        "--pixels",
        type=int,
        default=MAX_K_MEANS_PIXELS,
        help="Downsample to about this many pixels before clustering. 0 disables.",
    )
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Generator seed")
    parser.add_argument(
        "--max-iter",
        type=int,
        default=MAX_ITERATIONS,
        help="Stop k-means after this many iterations.",
    )
    parser.add_argument(
        "--resample",
        choices=RESAMPLE_CHOICES,
        default=DEFAULT_RESAMPLE,
        help="Downsample filter.",
    )
    parser.add_argument(
        "--workers", type=int, default=_default_workers(), help="Internal threads"
    )
    parser.add_argument("--jobs", type=int, default=2, help="Files processed in parallel")
    parser.add_argument(
        "--data-url", action="store_true", help="Print a PNG data URL instead of writing"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose details")
    args = parser.parse_args(argv)
    if args.max_iter < 1:
        parser.error("--max-iter must be >= 1")
    if args.workers < 1 or args.jobs < 1:
        parser.error("--workers and --jobs must be >= 1")
    return args


def output_path_for(src_path: Path, k: int, outdir: Optional[Path]) -> Path:
    """<stem>_k<K>.png beside the source or in outdir."""
    name = f"{src_path.stem}{OUTPUT_SUFFIX}{k}.png"
    return (outdir / name) if outdir else src_path.with_name(name)


def is_output_artifact(path: Path) -> bool:
    return bool(_OUTPUT_STEM.search(path.stem))


# Per-file processing


def _process_single_image(
    src_path: Path, config: QuantizeConfig, outdir: Optional[Path], data_url: bool
) -> bool:
    """
    Process a single image path end-to-end:
      load -> extract -> cluster -> quantize -> save/print -> report.
    Returns False when the file could not be processed.
    """
    t_start = time.perf_counter()
    if not data_url:
        print_banner(src_path.name)

    try:
        rgba = load_image(src_path)
        t_loaded = time.perf_counter()
        outcome = run_quantize(rgba, config)
    except (DecodeError, InvalidInput) as e:
        error(f"{src_path.name}: {e}")
        return False

    height, width = rgba.shape[:2]
    if config.debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Loaded", f"{width}x{height}"),
                    ("Load time", format_seconds_compact(t_loaded - t_start)),
                ]
            )
        )

    result = outcome.clustering
    if data_url:
        # stdout carries only the URL
        print(to_data_url(outcome.image), flush=True)
        return True

    if outdir is not None:
        outdir.mkdir(parents=True, exist_ok=True)
    written = save_image(output_path_for(src_path, result.k, outdir), outcome.image)
    log(
        f"Wrote {written.name} | size={width}x{height} | k={result.k} | "
        f"dataset={outcome.dataset_size:,}"
    )

    log(
        f"Iterations: {result.iterations:,}"
        + ("" if result.converged else " (iteration cap reached, palette may be rough)")
    )
    log("Palette:")
    for idx, hex_code, count in colour_usage_report(outcome.image, result.palette):
        log(f"  {idx:>2}  {hex_code}: {count:,}")
    log(f"Total time {format_total_duration_compact(time.perf_counter() - t_start)}")
    return True


def _process_one_captured(
    path: Path, config: QuantizeConfig, outdir: Optional[Path], data_url: bool
) -> Tuple[str, bool]:
    """
    Process a single file with stdout capture.

    Runs in a worker process so each file gets its own stdout; the parent
    prints the blocks in input order.
    """
    buf = io.StringIO()
    with redirect_stdout(buf):
        ok = _process_single_image(path, config, outdir, data_url)
    return buf.getvalue(), ok


def _collect_images(folder: Path) -> List[Path]:
    files = [
        p
        for p in folder.iterdir()
        if p.is_file() and p.suffix.lower() in IMAGE_EXTS and not is_output_artifact(p)
    ]
    files.sort(key=lambda p: p.name.lower())
    return files


# Entry point


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point.

    Handles single file or folder. In folder mode --jobs runs files in separate
    processes while preserving readable output ordering.
    Exit status: 0 ok, 1 some file failed, 2 input not found.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    config = QuantizeConfig(
        k=args.k,
        pixel_budget=args.pixels,
        seed=args.seed,
        max_iterations=args.max_iter,
        resample=args.resample,
        workers=args.workers,
        debug=args.debug,
    )
    if not args.data_url:
        print_config_line(
            "run",
            [
                ("K", config.k),
                ("Pixels", config.pixel_budget),
                ("Seed", config.seed),
                ("Workers", config.workers),
                ("Jobs", args.jobs),
            ],
            debug=False,
        )

    src: Path = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2

    if not src.is_dir():
        return 0 if _process_single_image(src, config, args.outdir, args.data_url) else 1

    files = _collect_images(src)
    if args.debug:
        debug_log(key_value_pairs_to_string([("Images", len(files)), ("Jobs", args.jobs)]))

    if args.jobs == 1:
        results = [_process_single_image(p, config, args.outdir, args.data_url) for p in files]
    else:
        with ProcessPoolExecutor(max_workers=args.jobs) as ex:
            futures = [
                ex.submit(_process_one_captured, p, config, args.outdir, args.data_url)
                for p in files
            ]
            blocks = [f.result() for f in futures]
        print("".join(text for text, _ in blocks), end="", flush=True)
        results = [ok for _, ok in blocks]
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
