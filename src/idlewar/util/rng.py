"""Deterministic random source injected into the simulation."""

from __future__ import annotations

from typing import Optional

import numpy as np


class DRNG:
    """Deterministic Random Number Generator wrapper.

    Every random draw in the core goes through one instance, so two
    simulations built with the same seed produce identical states.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.g = np.random.Generator(np.random.PCG64(seed))

    def bernoulli(self, p: float) -> bool:
        """Return True with probability p."""
        return bool(self.g.random() < p)

    def uniform(self, a: float, b: float) -> float:
        """Return a random float in [a, b)."""
        return float(self.g.uniform(a, b))

    def integer(self, low: int, high: int) -> int:
        """Return a random integer in [low, high] (both inclusive)."""
        return int(self.g.integers(low, high, endpoint=True))

    def index(self, n: int) -> int:
        """Return a uniform index into a sequence of length n."""
        return int(self.g.integers(0, n))
