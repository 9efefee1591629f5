from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from itertools import islice
from typing import Optional, Sequence, Tuple, Union

from pygame.math import Vector2

from .body import WormBehavior, WormBody, WormState
from .geometry import Direction, Rotator, copy_towards, direction_to
from .rng import DeterministicRng

# Collision tolerances: chasing worms are allowed closer head-butts.
BODY_TOLERANCE = 0.01
CHASING_TOLERANCE = 0.1


@dataclass(slots=True)
class WormStats:
    vision_range: float = 5.0 * math.pi / 4.0
    vision_distance: float = 300.0


@dataclass(slots=True)
class MovementDetails:
    origin: Vector2
    heading: Optional[Direction]
    destination: Optional[Vector2]
    stats: WormStats
    width: float
    height: float

    def in_range(self, point: Vector2) -> bool:
        if self.origin.distance_to(point) >= self.stats.vision_distance:
            return False
        if self.heading is None:
            return True
        return self.heading.connect(self.origin, point, self.stats.vision_range / 2.0)

    def in_bounds(self, point: Vector2) -> bool:
        return 0.0 <= point.x <= self.width and 0.0 <= point.y <= self.height


@dataclass(frozen=True, slots=True)
class TargetHit:
    target_id: int
    head: Vector2


@dataclass(frozen=True, slots=True)
class TargetMiss:
    head: Vector2
    destination: Vector2


# None means no collision-free step exists.
MovementResult = Optional[Union[TargetHit, TargetMiss]]


def _within(point: Vector2, candidate: Vector2, limit_sq: float) -> bool:
    return point.distance_squared_to(candidate) < limit_sq


class Mover(ABC):
    """Targeting and collision rules for one worm, evaluated against a read-only scene."""

    def __init__(
        self,
        worm_id: int,
        details: MovementDetails,
        rewards: Sequence[Vector2],
        bodies: Sequence[WormBody],
        behaviors: Sequence[WormBehavior],
        rng: DeterministicRng,
    ) -> None:
        self.worm_id = worm_id
        self.details = details
        self.rewards = rewards
        self.bodies = bodies
        self.behaviors = behaviors
        self.rng = rng

    @abstractmethod
    def candidates(self) -> Sequence[Tuple[int, Vector2]]:
        """(target id, position) pairs this worm may aim for."""

    @abstractmethod
    def collides(self, candidate: Vector2, distance: float) -> bool:
        ...

    def select_target(self) -> Tuple[Optional[int], Vector2]:
        details = self.details
        origin = details.origin
        chosen_id: Optional[int] = None
        chosen_point: Optional[Vector2] = None
        best = math.inf
        for target_id, point in self.candidates():
            if not details.in_range(point):
                continue
            distance = origin.distance_to(point)
            if distance < best:
                best = distance
                chosen_id = target_id
                chosen_point = point
        if chosen_point is not None:
            return chosen_id, Vector2(chosen_point)

        destination = details.destination
        if destination is not None and origin.distance_to(destination) > details.stats.vision_distance:
            return None, destination
        return None, self.rng.next_point(details.width, details.height)

    def execute_movement(self, distance: float) -> MovementResult:
        target_id, destination = self.select_target()
        origin = self.details.origin

        for direction in Rotator.random(direction_to(origin, destination), self.rng):
            new_head = copy_towards(origin, direction, distance)
            if not self.details.in_bounds(new_head) or self.collides(new_head, distance):
                continue
            if target_id is not None and new_head.distance_to(destination) < distance:
                return TargetHit(target_id, new_head)
            return TargetMiss(new_head, destination)
        return None


class AliveWormMover(Mover):
    """Hunts rewards; every segment of every worm blocks the way."""

    def candidates(self) -> Sequence[Tuple[int, Vector2]]:
        return list(enumerate(self.rewards))

    def collides(self, candidate: Vector2, distance: float) -> bool:
        limit = distance - BODY_TOLERANCE
        if limit <= 0.0:
            return False
        limit_sq = limit * limit
        return any(_within(part, candidate, limit_sq) for body in self.bodies for part in body)


class ChasingWormMover(Mover):
    """
    Hunts the tails of alive worms. The tail of an alive worm is a strike
    target rather than an obstacle; rewards and every other segment block.
    """

    def candidates(self) -> Sequence[Tuple[int, Vector2]]:
        return [
            (target_id, body.tail())
            for target_id, (behavior, body) in enumerate(zip(self.behaviors, self.bodies))
            if target_id != self.worm_id and behavior.state is WormState.ALIVE and len(body)
        ]

    def collides(self, candidate: Vector2, distance: float) -> bool:
        limit = distance - CHASING_TOLERANCE
        if limit <= 0.0:
            return False
        limit_sq = limit * limit
        for behavior, body in zip(self.behaviors, self.bodies):
            if behavior.state is WormState.ALIVE:
                parts = islice(body, max(len(body) - 1, 0))
            else:
                parts = iter(body)
            if any(_within(part, candidate, limit_sq) for part in parts):
                return True
        return any(_within(reward, candidate, limit_sq) for reward in self.rewards)
