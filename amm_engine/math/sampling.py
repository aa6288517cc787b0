"""Deterministic random generation for property tests and fuzzing.

Every generator is an explicit random.Random instance so that a failing
case can be replayed from its seed.
"""

from __future__ import annotations

import math
import random


def seeded_rng(seed: int | str) -> random.Random:
    """Create an independent generator; same seed, same stream."""
    return random.Random(str(seed))


def random_linear(rng: random.Random, low: float, high: float) -> float:
    """Uniform sample in [low, high)."""
    return rng.random() * (high - low) + low


def random_exponential(rng: random.Random, low: float, high: float) -> float:
    """Log-uniform sample in [low, high].

    Suited to quantities spanning many orders of magnitude (reserves, trade
    sizes, amplification).

    Raises:
        ValueError: If low is not positive or high < low
    """
    if low <= 0 or high < low:
        raise ValueError(f"Need 0 < low <= high, got low={low}, high={high}")
    log_low = math.log(low)
    log_high = math.log(high)
    value = math.exp(rng.random() * (log_high - log_low) + log_low)
    # exp(log(x)) can land one ulp outside the range
    return min(max(value, low), high)
