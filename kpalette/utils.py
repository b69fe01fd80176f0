# kpalette/utils.py
from __future__ import annotations

"""
Shared utilities for kpalette.

Includes time formatting, Pillow filter lookup, row partitioning for the
threaded steps, palette reporting, and tidy logging.
"""

from typing import Any, Iterable, List, Tuple

import numpy as np
from PIL import Image

from .core_types import InvalidInput, Palette, Raster


#  Time formatting


def format_seconds_compact(seconds: float) -> str:
    """Human-friendly seconds: '<ms>ms', '<s>s', or 'Mm Ss'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - 60 * minutes:.1f}s"


def format_total_duration_compact(seconds: float) -> str:
    """Compact total duration: 'Mm Ss', 'Ss.s', or 'ms'."""
    if seconds >= 60.0:
        minutes = int(seconds // 60)
        rem = int(round(seconds - 60 * minutes))
        return f"{minutes}m {rem}s"
    if seconds >= 1.0:
        return f"{seconds:.1f}s"
    return f"{seconds * 1000.0:.1f}ms"


# I/O / image helpers


def pillow_resample_from_name(name: str) -> Image.Resampling:
    """Map a filter name to a Pillow resampling enum."""
    if name == "nearest":
        return Image.Resampling.NEAREST
    if name == "bilinear":
        return Image.Resampling.BILINEAR
    if name == "bicubic":
        return Image.Resampling.BICUBIC
    if name == "lanczos":
        return Image.Resampling.LANCZOS
    raise InvalidInput(f"unknown resample filter: {name!r}")


def split_rows_into_parts(height: int, parts: int) -> List[Tuple[int, int]]:
    """Partition range [0, height) into ~parts contiguous [start, end) row spans."""
    parts = max(1, int(parts))
    step = max(1, (height + parts - 1) // parts)
    return [(start, min(start + step, height)) for start in range(0, height, step)]


# Palette reporting


def palette_to_hex(palette: Palette) -> List[str]:
    """Rounded '#rrggbb' (or '#rrggbbaa' for 4 channels) per palette row."""
    out: List[str] = []
    rows = np.clip(np.rint(np.asarray(palette, dtype=np.float64)), 0, 255).astype(int)
    for row in rows.tolist():
        out.append("#" + "".join(f"{v:02x}" for v in row[:4]))
    return out


def colour_usage_report(
    quantized: Raster, palette: Palette
) -> List[Tuple[int, str, int]]:
    """
    Count output pixels per palette entry.

    Returns a list of (palette_index, hex, count) sorted by count descending.
    Entries that collapsed onto the same rounded colour share their count with
    the first of them.
    """
    arr = np.asarray(quantized)
    channels = 1 if arr.ndim == 2 else arr.shape[-1]
    flat = arr.reshape(-1, channels)
    rounded = np.rint(np.asarray(palette, dtype=np.float64))
    hexes = palette_to_hex(palette)
    report: List[Tuple[int, str, int]] = []
    if flat.shape[0] == 0:
        return [(i, hexes[i], 0) for i in range(len(hexes))]
    uniques, counts = np.unique(flat, axis=0, return_counts=True)
    claimed = np.zeros(uniques.shape[0], dtype=bool)
    for i in range(rounded.shape[0]):
        match = np.all(uniques == rounded[i], axis=1) & ~claimed
        claimed |= match
        report.append((i, hexes[i], int(counts[match].sum())))
    report.sort(key=lambda t: -t[2])
    return report


#  CLI / progress logging


def enable_line_buffered_stdout() -> None:
    """
    Enable line-buffered stdout when supported.
    Helps live progress printing in terminals that expose .reconfigure().
    """
    import sys

    reconfig = getattr(sys.stdout, "reconfigure", None)
    if callable(reconfig):
        reconfig(line_buffering=True, write_through=True)


# Pretty logging


def format_bool_on_off(value: Any) -> str:
    """Pretty boolean: 'on'/'off' for bools; str(value) otherwise."""
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


def format_number_compact(value: Any) -> str:
    """Pretty number: 1_234 style for ints; compact for floats; passthrough otherwise."""
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        text = f"{value:.3f}".rstrip("0").rstrip(".")
        return text
    return str(value)


def key_value_pairs_to_string(
    pairs: Iterable[Tuple[str, Any]], sep: str = "  ", eq: str = ": "
) -> str:
    """
    Format (name, value) pairs as 'Name: value' blocks separated by sep.
    Uses format_bool_on_off / format_number_compact for readability.
    """
    out: List[str] = []
    for name, value in pairs:
        display = (
            format_bool_on_off(value)
            if isinstance(value, bool)
            else format_number_compact(value)
        )
        out.append(f"{name}{eq}{display}")
    return sep.join(out)


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool
) -> None:
    """
    Emit a single human-readable config line, e.g.:
      [kmeans] K: 8  Seed: 0  Max iter: 1,000  Workers: 4
    Routes to debug() when debug=True, else to log().
    """
    line = f"[{section}] {key_value_pairs_to_string(pairs)}"
    (debug_log if debug else log)(line)


def print_banner(title: str) -> None:
    """Section banner."""
    print(f"\n=== {title} ===", flush=True)


def log(message: str) -> None:
    """Plain log line."""
    print(message, flush=True)


def debug_log(message: str) -> None:
    """Debug log line."""
    print(f"[debug] {message}", flush=True)


def warn(message: str) -> None:
    """Warning log line."""
    print(f"[warn] {message}", flush=True)


def error(message: str) -> None:
    """Error log line to stderr."""
    import sys

    print(f"[error] {message}", file=sys.stderr, flush=True)


__all__ = [
    # formatting
    "format_seconds_compact",
    "format_total_duration_compact",
    "format_bool_on_off",
    "format_number_compact",
    # image / partition helpers
    "pillow_resample_from_name",
    "split_rows_into_parts",
    # palette reporting
    "palette_to_hex",
    "colour_usage_report",
    # logging
    "enable_line_buffered_stdout",
    "key_value_pairs_to_string",
    "print_config_line",
    "print_banner",
    "log",
    "debug_log",
    "warn",
    "error",
]
