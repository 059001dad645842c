"""Seeded random source shared by map generation and spawning."""

from __future__ import annotations

import random
from typing import MutableSequence, Optional, TypeVar

T = TypeVar("T")


class SeededRandom:
    """Deterministic pseudo-random source keyed by a seed.

    Wraps random.Random so every consumer draws from one explicit stream
    instead of the module-level generator. Bounded ints are derived from
    random() so the number of draws per call is always exactly one.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return self._random.random()

    def uniform(self, low: float, high: float) -> float:
        """Uniform float in [low, high)."""
        return low + (high - low) * self.random()

    def randint(self, low: int, high: int) -> int:
        """Uniform int in [low, high], both ends inclusive."""
        return low + int(self.random() * (high - low + 1))

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""
        return self.random() < probability

    def shuffle(self, items: MutableSequence[T]) -> None:
        """Fisher-Yates shuffle in place."""
        for i in range(len(items) - 1, 0, -1):
            j = int(self.random() * (i + 1))
            items[i], items[j] = items[j], items[i]
