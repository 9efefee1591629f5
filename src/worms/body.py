from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional

from pygame.math import Vector2

from .geometry import Direction, direction_to

MAX_BODY_SIZE = 64


class WormState(str, Enum):
    ALIVE = "Alive"
    DEAD = "Dead"
    CHASING = "Chasing"
    REMOVED = "Removed"


@dataclass(frozen=True, slots=True)
class WormBehavior:
    state: WormState
    # ticks since the last reward (ALIVE) or since death (DEAD)
    counter: int = 0

    @staticmethod
    def alive(counter: int = 0) -> "WormBehavior":
        return WormBehavior(WormState.ALIVE, counter)

    @staticmethod
    def dead(counter: int = 0) -> "WormBehavior":
        return WormBehavior(WormState.DEAD, counter)

    @staticmethod
    def chasing() -> "WormBehavior":
        return WormBehavior(WormState.CHASING)

    @staticmethod
    def removed() -> "WormBehavior":
        return WormBehavior(WormState.REMOVED)


class WormBody:
    """
    Fixed capacity ring buffer holding the segments of a worm, head first.

    Slots are allocated once and rewritten in place, so moving, growing and
    shrinking never allocate. `start` indexes the head; the tail sits
    `size - 1` slots behind it.
    """

    __slots__ = ("_capacity", "_parts", "_start", "_size", "target")

    def __init__(self, capacity: int = MAX_BODY_SIZE) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._parts: List[Vector2] = [Vector2() for _ in range(capacity)]
        self._start = 0
        self._size = 0
        self.target: Optional[Vector2] = None

    @classmethod
    def build(
        cls,
        size: int,
        head: Vector2,
        heading: Direction,
        spacing: float,
        capacity: int = MAX_BODY_SIZE,
    ) -> "WormBody":
        """Body of `size` segments facing `heading`, each `2 * spacing` behind the previous one."""
        if not 1 <= size <= capacity:
            raise ValueError(f"body size must be in 1..{capacity}, got {size}")
        body = cls(capacity)
        step = heading.opposite().unit() * (spacing * 2.0)
        body._start = size - 1
        body._size = size
        for i in range(size):
            body._parts[body._start - i].update(head + step * i)
        return body

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[Vector2]:
        parts = self._parts
        capacity = self._capacity
        start = self._start
        for i in range(self._size):
            yield parts[(start - i) % capacity]

    def __reversed__(self) -> Iterator[Vector2]:
        parts = self._parts
        capacity = self._capacity
        start = self._start
        for i in range(self._size - 1, -1, -1):
            yield parts[(start - i) % capacity]

    def __repr__(self) -> str:
        parts = " ".join(f"({part.x:.2f}, {part.y:.2f})" for part in self)
        return f"WormBody([{parts}])"

    def head(self) -> Vector2:
        if self._size == 0:
            raise IndexError("head of an empty worm body")
        return self._parts[self._start]

    def tail(self) -> Vector2:
        if self._size == 0:
            raise IndexError("tail of an empty worm body")
        return self._parts[(self._start - self._size + 1) % self._capacity]

    def heading(self) -> Optional[Direction]:
        """Direction the head is facing, from the segment right behind it."""
        if self._size < 2:
            return None
        neck = self._parts[(self._start - 1) % self._capacity]
        return direction_to(neck, self._parts[self._start])

    def full(self) -> bool:
        return self._size == self._capacity

    def available_space(self) -> int:
        return self._capacity - self._size

    def roll(self, segment: Vector2, target: Optional[Vector2]) -> None:
        """Move one step: `segment` becomes the head, the length is unchanged."""
        self._start = (self._start + 1) % self._capacity
        self._parts[self._start].update(segment)
        self.target = None if target is None else Vector2(target)

    def grow(self, segment: Vector2) -> None:
        self.roll(segment, segment)
        self._size = min(self._size + 1, self._capacity)

    def shrink(self, count: int) -> None:
        """Drop the `count` foremost segments."""
        if not 0 <= count <= self._size:
            raise ValueError(f"cannot shrink a body of {self._size} segments by {count}")
        self._start = (self._start - count) % self._capacity
        self._size -= count

    def truncate(self, size: int) -> None:
        """Keep the `size` foremost segments and drop the rest of the tail."""
        if not 0 <= size <= self._size:
            raise ValueError(f"cannot truncate a body of {self._size} segments to {size}")
        self._size = size

    def clear(self) -> None:
        self._size = 0
        self.target = None

    def shift(self, delta: Vector2) -> None:
        parts = self._parts
        capacity = self._capacity
        for i in range(self._size):
            part = parts[(self._start - i) % capacity]
            part.update(part.x + delta.x, part.y + delta.y)
