from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import islice
from typing import Iterator, List, Optional, Sequence, Tuple

from pygame.math import Vector2

from .body import MAX_BODY_SIZE, WormBehavior, WormBody, WormState
from .geometry import Direction, copy_towards, direction_to
from .movement import (
    AliveWormMover,
    ChasingWormMover,
    MovementDetails,
    TargetHit,
    TargetMiss,
    WormStats,
)
from .rng import DeterministicRng

logger = logging.getLogger("worms.scene")


@dataclass
class SceneParameters:
    # segments of a freshly spawned worm, also the size of a split-off piece
    worm_size: int = 8
    # radius of a segment; a step is one diameter
    body_size: float = 7.0
    starvation: int = 2000
    expiration: int = 25
    body_capacity: int = MAX_BODY_SIZE

    def __post_init__(self) -> None:
        if self.worm_size < 1:
            raise ValueError(f"worm_size must be at least 1, got {self.worm_size}")
        if self.worm_size * 2 > self.body_capacity:
            raise ValueError(
                f"worm_size {self.worm_size} cannot be split out of a body of capacity {self.body_capacity}"
            )
        if self.body_size <= 0:
            raise ValueError(f"body_size must be positive, got {self.body_size}")
        if self.starvation < 0 or self.expiration < 0:
            raise ValueError("starvation and expiration must not be negative")


class Scene:
    def __init__(
        self,
        width: float,
        height: float,
        params: SceneParameters,
        worm_count: int,
        reward_count: int,
        rng: Optional[DeterministicRng] = None,
        stats: Optional[WormStats] = None,
    ) -> None:
        self._params = params
        self._width = width
        self._height = height
        self._stats = stats or WormStats()
        self._rng = rng or DeterministicRng(0)
        self._behaviors: List[WormBehavior] = [WormBehavior.alive() for _ in range(worm_count)]
        self._bodies: List[WormBody] = [self._random_body() for _ in range(worm_count)]
        self._rewards: List[Vector2] = [self._random_point() for _ in range(reward_count)]
        self._reward_destinations: List[Vector2] = [self._random_point() for _ in range(reward_count)]

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    @property
    def params(self) -> SceneParameters:
        return self._params

    @property
    def stats(self) -> WormStats:
        return self._stats

    def worms(self) -> Iterator[Tuple[WormBehavior, WormBody]]:
        return zip(self._behaviors, self._bodies)

    def rewards(self) -> Sequence[Vector2]:
        return tuple(self._rewards)

    def resize(self, width: float, height: float) -> None:
        self._width = width
        self._height = height

    def execute(self) -> None:
        self._update_worms()
        self._update_rewards()

    def _random_point(self) -> Vector2:
        return self._rng.next_point(self._width, self._height)

    def _random_body(self) -> WormBody:
        return WormBody.build(
            self._params.worm_size,
            self._random_point(),
            Direction.random(self._rng),
            self._params.body_size,
            self._params.body_capacity,
        )

    def _update_worms(self) -> None:
        # Slots appended by a split during this pass are first updated next tick.
        for worm_id in range(len(self._behaviors)):
            behavior = self._behaviors[worm_id]
            state = behavior.state
            if state is WormState.ALIVE:
                if self._bodies[worm_id].full():
                    self._behaviors[worm_id] = self._split_worm(worm_id)
                else:
                    self._behaviors[worm_id] = self._execute_alive(worm_id, behavior.counter)
            elif state is WormState.CHASING:
                self._behaviors[worm_id] = self._execute_chasing(worm_id)
            elif state is WormState.DEAD:
                if behavior.counter < self._params.expiration:
                    self._behaviors[worm_id] = WormBehavior.dead(behavior.counter + 1)
                else:
                    logger.debug("worm %d removed", worm_id)
                    self._behaviors[worm_id] = WormBehavior.removed()
                    self._bodies[worm_id].clear()

    def _update_rewards(self) -> None:
        """Move every reward one small step toward its wander destination."""
        step = self._params.body_size / 4.0
        for i, reward in enumerate(self._rewards):
            destination = self._reward_destinations[i]
            moved = copy_towards(reward, direction_to(reward, destination), step)
            if not (0.0 <= moved.x <= self._width and 0.0 <= moved.y <= self._height):
                self._rewards[i] = self._random_point()
                self._reward_destinations[i] = self._random_point()
            elif moved.distance_to(destination) < self._params.body_size:
                self._reward_destinations[i] = self._random_point()
            else:
                self._rewards[i] = moved

    def _movement_details(self, worm_id: int) -> MovementDetails:
        body = self._bodies[worm_id]
        return MovementDetails(
            origin=Vector2(body.head()),
            heading=body.heading(),
            destination=body.target,
            stats=self._stats,
            width=self._width,
            height=self._height,
        )

    def _step_distance(self) -> float:
        return self._params.body_size * 2.0

    def _execute_alive(self, worm_id: int, counter: int) -> WormBehavior:
        mover = AliveWormMover(
            worm_id, self._movement_details(worm_id), self._rewards, self._bodies, self._behaviors, self._rng
        )
        body = self._bodies[worm_id]
        result = mover.execute_movement(self._step_distance())
        if isinstance(result, TargetHit):
            self._rewards[result.target_id] = self._random_point()
            body.grow(result.head)
            return WormBehavior.alive()
        if isinstance(result, TargetMiss):
            if counter < self._params.starvation // len(body):
                body.roll(result.head, result.destination)
                return WormBehavior.alive(counter + 1)
            logger.debug("worm %d starving, switching to chase", worm_id)
            return WormBehavior.chasing()
        logger.debug("worm %d cannot move and dies", worm_id)
        return WormBehavior.dead()

    def _execute_chasing(self, worm_id: int) -> WormBehavior:
        mover = ChasingWormMover(
            worm_id, self._movement_details(worm_id), self._rewards, self._bodies, self._behaviors, self._rng
        )
        result = mover.execute_movement(self._step_distance())
        if isinstance(result, TargetHit):
            self._merge_worms(worm_id, result.target_id)
            return WormBehavior.alive()
        if isinstance(result, TargetMiss):
            self._bodies[worm_id].roll(result.head, result.destination)
            return WormBehavior.chasing()
        logger.debug("chasing worm %d cannot move and dies", worm_id)
        return WormBehavior.dead()

    def _next_removed_index(self) -> int:
        """Index of the first removed worm slot, appending a fresh slot if there is none."""
        for index, behavior in enumerate(self._behaviors):
            if behavior.state is WormState.REMOVED:
                return index
        self._bodies.append(WormBody(self._params.body_capacity))
        self._behaviors.append(WormBehavior.removed())
        return len(self._bodies) - 1

    def _split_worm(self, worm_id: int) -> WormBehavior:
        worm_size = self._params.worm_size
        donor = self._bodies[worm_id]
        while len(donor) >= worm_size * 2:
            free_index = self._next_removed_index()
            # The piece is read from the tail end, the part the donor drops below.
            piece = list(islice(reversed(donor), worm_size))
            child = self._bodies[free_index]
            child.clear()
            for part in piece:
                child.grow(part)
            child.target = None
            self._behaviors[free_index] = WormBehavior.alive()
            donor.truncate(len(donor) - worm_size)
            logger.debug("worm %d split off worm %d", worm_id, free_index)
        return WormBehavior.alive()

    def _merge_worms(self, worm_id: int, target_id: int) -> None:
        worm = self._bodies[worm_id]
        target = self._bodies[target_id]
        # the chaser's head is the one that bit the tail
        worm.shrink(1)
        if len(worm):
            worm.shift(target.tail() - worm.head())
        original_size = len(worm)
        for part in list(islice(reversed(target), worm.available_space())):
            worm.grow(part)
        worm.target = None
        transferred = len(worm) - original_size
        target.truncate(len(target) - transferred)
        if len(target) == 0:
            self._behaviors[target_id] = WormBehavior.removed()
            target.target = None
        logger.debug("worm %d took %d segments from worm %d", worm_id, transferred, target_id)
