from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from .body import WormState
from .scene import Scene


@dataclass(slots=True)
class SceneMetrics:
    tick: int
    alive: int
    chasing: int
    dead: int
    removed: int
    slots: int
    segments: int
    rewards: int


def collect_metrics(scene: Scene, tick: int) -> SceneMetrics:
    counts = {state: 0 for state in WormState}
    segments = 0
    slots = 0
    for behavior, body in scene.worms():
        counts[behavior.state] += 1
        segments += len(body)
        slots += 1
    return SceneMetrics(
        tick=tick,
        alive=counts[WormState.ALIVE],
        chasing=counts[WormState.CHASING],
        dead=counts[WormState.DEAD],
        removed=counts[WormState.REMOVED],
        slots=slots,
        segments=segments,
        rewards=len(scene.rewards()),
    )


def scene_snapshot(scene: Scene, tick: int) -> Dict[str, Any]:
    """JSON-ready view of the scene: worms head to tail, rewards, bounds and metrics."""
    worms: List[Dict[str, Any]] = []
    for slot, (behavior, body) in enumerate(scene.worms()):
        if behavior.state is WormState.REMOVED:
            continue
        worms.append(
            {
                "slot": slot,
                "state": behavior.state.value,
                "counter": behavior.counter,
                "segments": [[part.x, part.y] for part in body],
            }
        )
    return {
        "tick": tick,
        "world": {"width": scene.width, "height": scene.height, "part_size": scene.params.body_size},
        "metrics": asdict(collect_metrics(scene, tick)),
        "worms": worms,
        "rewards": [[reward.x, reward.y] for reward in scene.rewards()],
    }
