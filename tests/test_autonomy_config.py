#tests/test_autonomy_config.py
"""
Tests for autonomy.config.

Covers:
- shipped config/autonomy.yaml matches the dataclass defaults
- partial files, empty files, unknown keys, bad ranges
- duration lookup for decided actions
"""

from __future__ import annotations

from pathlib import Path

import pytest

from autonomy.config import (
    DEFAULT_CONFIG_PATH,
    AutonomyConfig,
    DecisionConfig,
    SchedulerConfig,
    load_autonomy_config,
)
from memory.config import MemoryConfig


def test_shipped_yaml_matches_defaults():
    cfg = load_autonomy_config(DEFAULT_CONFIG_PATH)
    assert cfg.scheduler == SchedulerConfig()
    assert cfg.memory == MemoryConfig()
    assert cfg.decision == DecisionConfig()


def test_partial_yaml_keeps_other_defaults(tmp_path: Path):
    path = tmp_path / "autonomy.yaml"
    path.write_text(
        "scheduler:\n"
        "  retry_delay: 0.5\n"
        "memory:\n"
        "  max_episodes: 50\n",
        encoding="utf-8",
    )
    cfg = load_autonomy_config(path)
    assert cfg.scheduler.retry_delay == 0.5
    assert cfg.scheduler.wander_weight == 0.40
    assert cfg.memory.max_episodes == 50
    assert cfg.decision.min_confidence == 0.3


def test_empty_yaml_is_all_defaults(tmp_path: Path):
    path = tmp_path / "autonomy.yaml"
    path.write_text("", encoding="utf-8")
    assert load_autonomy_config(path) == AutonomyConfig()


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_autonomy_config(tmp_path / "nope.yaml")


def test_non_mapping_yaml_raises(tmp_path: Path):
    path = tmp_path / "autonomy.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_autonomy_config(path)


@pytest.mark.parametrize(
    "text",
    [
        "schedular:\n  retry_delay: 1\n",
        "scheduler:\n  retry_dealy: 1\n",
        "memory:\n  max_episode: 1\n",
        "decision:\n  temprature: 1\n",
    ],
)
def test_unknown_keys_rejected(tmp_path: Path, text: str):
    path = tmp_path / "autonomy.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ValueError):
        load_autonomy_config(path)


def test_range_validation():
    with pytest.raises(ValueError):
        SchedulerConfig.from_dict({"sit_duration_min": 40.0, "sit_duration_max": 30.0})
    with pytest.raises(ValueError):
        SchedulerConfig.from_dict({"chair_count": 0})
    with pytest.raises(ValueError):
        DecisionConfig.from_dict({"min_confidence": 1.5})
    with pytest.raises(ValueError):
        MemoryConfig.from_dict({"exploration_rate": -0.1})


def test_duration_for_decided_actions():
    cfg = SchedulerConfig.from_dict(
        {"decision_action_durations": {"SitAtChair": 20}, "wander_duration": 9.0}
    )
    assert cfg.duration_for("SitAtChair") == 20.0
    assert cfg.duration_for("MoveToLocation") == 9.0
    assert cfg.duration_for("Wave") == cfg.default_action_duration
    assert cfg.weights == [0.40, 0.20, 0.15, 0.15, 0.10]
