# kpalette/rng.py
from __future__ import annotations

"""
Seeded linear congruential generator.

Every clustering run owns its own instance so results depend only on
(dataset, k, seed).
"""

from .constants import DEFAULT_SEED, PRNG_INCREMENT, PRNG_MODULUS, PRNG_MULTIPLIER


class SeededRandom:
    """state = (state * 9301 + 49297) % 233280; draws are state / 233280."""

    __slots__ = ("state",)

    def __init__(self, seed: int = DEFAULT_SEED) -> None:
        self.state = int(seed)

    def random(self) -> float:
        """Next value in [0, 1)."""
        self.state = (self.state * PRNG_MULTIPLIER + PRNG_INCREMENT) % PRNG_MODULUS
        return self.state / PRNG_MODULUS

    def index(self, n: int) -> int:
        """Random index in [0, n)."""
        return int(self.random() * n)

    def __repr__(self) -> str:
        return f"SeededRandom(state={self.state})"


__all__ = ["SeededRandom"]
