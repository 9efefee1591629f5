from __future__ import annotations

import argparse
import csv
import logging
from dataclasses import replace
from pathlib import Path
from time import perf_counter
from typing import Optional

from .config import DEFAULT_CONFIG_PATH, SimConfig
from .rng import DeterministicRng
from .scene import Scene
from .snapshot import collect_metrics

LOG_HEADER = ["tick", "alive", "chasing", "dead", "removed", "slots", "segments", "rewards", "tick_ms"]


def build_scene(config: SimConfig) -> Scene:
    return Scene(
        config.width,
        config.height,
        config.scene,
        config.n_worms,
        config.n_rewards,
        rng=DeterministicRng(config.seed),
    )


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    config: Optional[SimConfig] = None,
) -> Scene:
    config = config or SimConfig()
    if seed is not None:
        config = replace(config, seed=seed)
    scene = build_scene(config)
    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(LOG_HEADER)

    try:
        for tick in range(steps):
            started = perf_counter()
            scene.execute()
            tick_ms = 0.0 if deterministic_log else (perf_counter() - started) * 1000.0
            if writer:
                metrics = collect_metrics(scene, tick)
                writer.writerow(
                    [
                        metrics.tick,
                        metrics.alive,
                        metrics.chasing,
                        metrics.dead,
                        metrics.removed,
                        metrics.slots,
                        metrics.segments,
                        metrics.rewards,
                        f"{tick_ms:.3f}",
                    ]
                )
    finally:
        if csv_file:
            csv_file.close()
    return scene


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless worm simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML or JSON configuration file")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="WARNING", help="Python logging level")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    config = SimConfig.read_default(args.config)
    run_headless(args.steps, args.seed, args.log, deterministic_log=args.deterministic_log, config=config)


if __name__ == "__main__":
    main()
