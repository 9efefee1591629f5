from __future__ import annotations

import random

from pygame.math import Vector2


class DeterministicRng:
    def __init__(self, seed: int):
        self._random = random.Random(seed)

    def next_int(self, max_value: int) -> int:
        return self._random.randrange(max_value)

    def next_point(self, width: float, height: float) -> Vector2:
        """Uniform point inside the [0, width] x [0, height] rectangle."""
        return Vector2(self._random.uniform(0.0, width), self._random.uniform(0.0, height))
