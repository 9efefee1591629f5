from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pygame.math import Vector2

if TYPE_CHECKING:
    from .rng import DeterministicRng

# Number of possible movement directions (North, South, etc)
N_DIRECTIONS = 32
# The arc covered by a single direction (eg: 4 directions = 90 degrees)
ARC_RANGE = 2.0 * math.pi / N_DIRECTIONS


def wrap_angle(angle: float) -> float:
    """Map an angle in radians into [-pi, pi)."""
    return (angle + math.pi) % (2.0 * math.pi) - math.pi


def angle_gap(a: float, b: float) -> float:
    return abs(wrap_angle(a - b))


def angle_to(origin: Vector2, destination: Vector2) -> float:
    return math.atan2(destination.y - origin.y, destination.x - origin.x)


def direction_to(origin: Vector2, destination: Vector2) -> "Direction":
    return Direction.from_angle(angle_to(origin, destination))


def rotate(point: Vector2, angle: float) -> Vector2:
    return point.rotate_rad(angle)


def copy_towards(point: Vector2, direction: "Direction", distance: float) -> Vector2:
    """Create a copy of the point at a given direction and distance."""
    return point + direction.unit() * distance


@dataclass(frozen=True, slots=True)
class Direction:
    value: int = 0

    @staticmethod
    def from_angle(angle: float) -> "Direction":
        return Direction(math.floor((angle + ARC_RANGE / 2.0) / ARC_RANGE))

    @staticmethod
    def random(rng: "DeterministicRng") -> "Direction":
        return Direction(rng.next_int(N_DIRECTIONS))

    def __add__(self, other: "Direction") -> "Direction":
        return Direction(self.value + other.value)

    def to_angle(self) -> float:
        return ARC_RANGE * self.value

    def unit(self) -> Vector2:
        angle = self.normalized().to_angle()
        return Vector2(math.cos(angle), math.sin(angle))

    def normalized(self) -> "Direction":
        return Direction(self.value % N_DIRECTIONS)

    def opposite(self) -> "Direction":
        half = N_DIRECTIONS // 2
        return Direction((half + self.value % N_DIRECTIONS) % N_DIRECTIONS)

    def connect(self, origin: Vector2, destination: Vector2, half_cone: float) -> bool:
        """
        Check if the destination lies in this direction as seen from the origin,
        with an angular tolerance of `half_cone` on either side.
        """
        return angle_gap(self.to_angle(), angle_to(origin, destination)) <= half_cone


class Rotation(Enum):
    CLOCKWISE = -1
    COUNTER_CLOCKWISE = 1


def rotation_offset(iteration: int, rotation: Rotation) -> int:
    """Offset of the n-th direction tried: 0, +1, -1, +2, -2, ... with the sign order set by `rotation`."""
    if iteration == 0:
        return 0
    magnitude = (iteration + 1) // 2
    sign = rotation.value if iteration % 2 == 1 else -rotation.value
    return sign * magnitude


class Rotator:
    """
    Walks every direction once, starting from `direction` and alternating
    sides: +0, -1, +1, -2, +2, ... (clockwise) or +0, +1, -1, +2, -2, ...
    (counter-clockwise). The opposite direction comes last.
    """

    def __init__(self, direction: Direction, rotation: Rotation = Rotation.CLOCKWISE):
        self._direction = direction
        self._rotation = rotation
        self._times = 0

    @classmethod
    def random(cls, direction: Direction, rng: "DeterministicRng") -> "Rotator":
        rotation = Rotation.CLOCKWISE if rng.next_int(2) == 0 else Rotation.COUNTER_CLOCKWISE
        return cls(direction, rotation)

    def __iter__(self) -> "Rotator":
        return self

    def __next__(self) -> Direction:
        if self._times == N_DIRECTIONS:
            raise StopIteration
        offset = rotation_offset(self._times, self._rotation)
        self._times += 1
        return self._direction + Direction(offset)
