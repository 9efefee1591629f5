from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict

import yaml

from .scene import SceneParameters

logger = logging.getLogger("worms.config")

DEFAULT_CONFIG_PATH = Path("conf") / "default.yaml"


class ConfigError(Exception):
    """Base class for configuration loading failures."""


class ConfigReadError(ConfigError):
    pass


class ConfigParseError(ConfigError):
    pass


class ConfigFieldError(ConfigError):
    pass


@dataclass
class SimConfig:
    n_worms: int = 15
    n_rewards: int = 5
    scene: SceneParameters = field(default_factory=SceneParameters)
    interval_ms: int = 200
    seed: int = 42
    warmup_ticks: int = 50
    width: float = 1000.0
    height: float = 800.0

    @staticmethod
    def from_yaml(path: Path) -> "SimConfig":
        try:
            text = Path(path).read_text()
        except OSError as exc:
            raise ConfigReadError(f"cannot read {path}: {exc}") from exc
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigParseError(f"cannot parse {path}: {exc}") from exc
        return load_config(data)

    @staticmethod
    def read_default(path: Path = DEFAULT_CONFIG_PATH) -> "SimConfig":
        """Load `path`, falling back to the built-in defaults on any configuration error."""
        try:
            return SimConfig.from_yaml(path)
        except ConfigError as exc:
            logger.warning("Error loading configuration file %s, using defaults: %s", path, exc)
            return SimConfig()


def _field(raw: Dict[str, Any], name: str, convert: Callable[[Any], Any], required: bool = True, default: Any = None):
    if name not in raw:
        if required:
            raise ConfigFieldError(f"missing field {name!r}")
        return default
    value = raw[name]
    # bools are ints in Python but never a valid count or size here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigFieldError(f"field {name!r} must be a number, got {value!r}")
    if convert is int and value != int(value):
        raise ConfigFieldError(f"field {name!r} must be an integer, got {value!r}")
    if value < 0:
        raise ConfigFieldError(f"field {name!r} must not be negative, got {value!r}")
    return convert(value)


def load_config(raw: Any) -> SimConfig:
    if not isinstance(raw, dict):
        raise ConfigParseError(f"configuration must be a mapping, got {type(raw).__name__}")

    defaults = SimConfig()
    try:
        scene = SceneParameters(
            worm_size=_field(raw, "worm_size", int),
            body_size=_field(raw, "part_size", float),
            starvation=_field(raw, "starvation", int),
            expiration=_field(raw, "expiration", int),
        )
    except ValueError as exc:
        raise ConfigFieldError(str(exc)) from exc

    return SimConfig(
        n_worms=_field(raw, "n_worms", int),
        n_rewards=_field(raw, "n_rewards", int),
        scene=scene,
        interval_ms=_field(raw, "milisec", int),
        seed=_field(raw, "seed", int, required=False, default=defaults.seed),
        warmup_ticks=_field(raw, "warmup_ticks", int, required=False, default=defaults.warmup_ticks),
        width=_field(raw, "width", float, required=False, default=defaults.width),
        height=_field(raw, "height", float, required=False, default=defaults.height),
    )
