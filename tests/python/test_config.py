from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from worms.config import (
    ConfigFieldError,
    ConfigParseError,
    ConfigReadError,
    SimConfig,
    load_config,
)

RAW = {
    "n_worms": 20,
    "n_rewards": 7,
    "worm_size": 6,
    "part_size": 3.5,
    "starvation": 900,
    "expiration": 10,
    "milisec": 50,
}


def test_load_config_maps_fields():
    config = load_config(dict(RAW, seed=5, width=640))

    assert config.n_worms == 20
    assert config.n_rewards == 7
    assert config.scene.worm_size == 6
    assert config.scene.body_size == pytest.approx(3.5)
    assert config.scene.starvation == 900
    assert config.scene.expiration == 10
    assert config.interval_ms == 50
    assert config.seed == 5
    assert config.width == pytest.approx(640.0)
    assert config.height == pytest.approx(SimConfig().height)
    assert config.warmup_ticks == SimConfig().warmup_ticks


def test_from_yaml_accepts_yaml_and_json(tmp_path):
    yaml_path = tmp_path / "worms.yaml"
    yaml_path.write_text("\n".join(f"{key}: {value}" for key, value in RAW.items()))
    json_path = tmp_path / "worms.json"
    json_path.write_text(json.dumps(RAW))

    assert SimConfig.from_yaml(yaml_path) == SimConfig.from_yaml(json_path)


def test_repository_default_matches_builtin_defaults():
    default_path = Path(__file__).resolve().parents[2] / "conf" / "default.yaml"

    assert SimConfig.from_yaml(default_path) == SimConfig()


@pytest.mark.parametrize(
    "raw",
    [
        {k: v for k, v in RAW.items() if k != "starvation"},
        dict(RAW, n_worms="many"),
        dict(RAW, worm_size=2.5),
        dict(RAW, expiration=-1),
        dict(RAW, milisec=True),
        dict(RAW, worm_size=40),
        dict(RAW, worm_size=0),
    ],
)
def test_invalid_fields_are_rejected(raw):
    with pytest.raises(ConfigFieldError):
        load_config(raw)


def test_non_mapping_is_a_parse_error():
    with pytest.raises(ConfigParseError):
        load_config([1, 2, 3])


def test_broken_yaml_is_a_parse_error(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("n_worms: [1, 2\n")

    with pytest.raises(ConfigParseError):
        SimConfig.from_yaml(path)


def test_missing_file_is_a_read_error(tmp_path):
    with pytest.raises(ConfigReadError):
        SimConfig.from_yaml(tmp_path / "absent.yaml")


def test_read_default_falls_back_and_logs(tmp_path, caplog):
    path = tmp_path / "partial.yaml"
    path.write_text("n_worms: 3\n")

    with caplog.at_level(logging.WARNING, logger="worms.config"):
        config = SimConfig.read_default(path)

    assert config == SimConfig()
    assert "partial.yaml" in caplog.text
    assert "missing field" in caplog.text
