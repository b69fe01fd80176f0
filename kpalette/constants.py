"""
Global defaults and tunables used across the project.

- Seeded generator constants (PRNG_*)
- Dataset / clustering defaults
- Nearest search chunking
- CLI choices
"""
from __future__ import annotations

from typing import Tuple

# =========================
# Seeded generator
# =========================
# state = (state * MULTIPLIER + INCREMENT) % MODULUS, value = state / MODULUS
PRNG_MULTIPLIER = 9301
PRNG_INCREMENT = 49297
PRNG_MODULUS = 233280
DEFAULT_SEED = 0

# =========================
# Dataset extraction
# =========================
# Clustering runs on at most this many pixels. Quantization always uses the full image.
MAX_K_MEANS_PIXELS = 50_000

# Pillow filter used when downsampling for the dataset.
DEFAULT_RESAMPLE = "bilinear"
RESAMPLE_CHOICES: Tuple[str, ...] = ("nearest", "bilinear", "bicubic", "lanczos")

# =========================
# Clustering
# =========================
DEFAULT_K = 3

# Same choices as the original colour selector.
K_CHOICES: Tuple[int, ...] = (2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 14, 16, 20, 24)

# Exact-equality convergence may never trigger on oscillating means.
MAX_ITERATIONS = 1000

# =========================
# Nearest search
# =========================
# Upper bound on points * candidates per distance block (float64 cells).
NEAREST_CHUNK_ELEMENTS = 1 << 20

# Below this many points a thread pool costs more than it saves.
PARALLEL_MIN_POINTS = 4096

# =========================
# Output
# =========================
OUTPUT_SUFFIX = "_k"  # <stem>_k<K>.png
IMAGE_EXTS: Tuple[str, ...] = (".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif")
