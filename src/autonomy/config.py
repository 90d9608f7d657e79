# src/autonomy/config.py

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

from memory.config import MemoryConfig

# Default config file: <repo>/config/autonomy.yaml
CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "autonomy.yaml"

DEFAULT_PERSONALITY_JSON = (
    '{"traits":["curious","calm","observant"],'
    '"preferences":{"favorite_spot":"garden_bench","dislikes":"standing still too long"}}'
)

DEFAULT_NEARBY_TAGS = [
    "Caffee Chair",
    "Arcade",
    "Claw Machine",
    "Slot Machine Chair",
    "Cafe Ad Display",
    "InterestPoint",
]


def _reject_unknown(cls: type, data: Mapping[str, Any], section: str) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown {section} config keys: {unknown}")


@dataclass(frozen=True)
class SchedulerConfig:
    """
    Timing and fallback tuning for the idle scheduler.

    Fields
    ------
    idle_delay_before_autonomous / idle_delay_variance:
        Seconds the body must stay Idle before a cycle starts
        (base +/- variance, never below min_idle_delay).
    idle_poll_interval:
        How often the idle wait re-checks the body state.
    *_weight:
        Weighted-random fallback categories. Need not sum to 1.
    decision_action_durations:
        Expected seconds per action name for decided actions; names not
        listed use default_action_duration. MoveToLocation defaults to
        wander_duration.
    retry_delay:
        Settle time before the single ReAct retry cycle.
    """

    # timing
    idle_delay_before_autonomous: float = 10.0
    idle_delay_variance: float = 5.0
    min_idle_delay: float = 3.0
    idle_poll_interval: float = 0.25

    # fallback weights
    wander_weight: float = 0.40
    look_around_weight: float = 0.20
    sit_weight: float = 0.15
    gesture_weight: float = 0.15
    play_game_weight: float = 0.10

    # fallback action shapes
    wander_radius: float = 5.0
    wander_duration: float = 8.0
    look_around_duration: float = 3.0
    look_distance: float = 5.0
    gesture_duration: float = 5.0
    play_game_duration: float = 5.0
    sit_duration_min: float = 10.0
    sit_duration_max: float = 30.0
    chair_count: int = 4

    # decided actions
    default_action_duration: float = 5.0
    decision_action_durations: Dict[str, float] = field(default_factory=dict)

    # cycle
    retry_delay: float = 1.0
    recent_action_count: int = 5
    include_time_bucket: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SchedulerConfig":
        _reject_unknown(cls, data, "scheduler")
        values = dict(data)
        if "decision_action_durations" in values:
            values["decision_action_durations"] = {
                str(k): float(v) for k, v in (values["decision_action_durations"] or {}).items()
            }
        cfg = cls(**values)
        cfg.validate()
        return cfg

    @property
    def weights(self) -> List[float]:
        """Fallback weights in category order: wander, look, sit, gesture, play."""
        return [
            self.wander_weight,
            self.look_around_weight,
            self.sit_weight,
            self.gesture_weight,
            self.play_game_weight,
        ]

    def duration_for(self, action_name: str) -> float:
        """Expected duration of a decided action."""
        if action_name in self.decision_action_durations:
            return self.decision_action_durations[action_name]
        if action_name == "MoveToLocation":
            return self.wander_duration
        return self.default_action_duration

    def validate(self) -> None:
        if self.min_idle_delay < 0:
            raise ValueError(f"min_idle_delay must be >= 0, got {self.min_idle_delay}")
        if self.idle_poll_interval <= 0:
            raise ValueError(f"idle_poll_interval must be > 0, got {self.idle_poll_interval}")
        if any(w < 0 for w in self.weights):
            raise ValueError(f"fallback weights must be >= 0, got {self.weights}")
        if self.sit_duration_min > self.sit_duration_max:
            raise ValueError(
                f"sit_duration_min ({self.sit_duration_min}) exceeds "
                f"sit_duration_max ({self.sit_duration_max})"
            )
        if self.chair_count < 1:
            raise ValueError(f"chair_count must be >= 1, got {self.chair_count}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must be >= 0, got {self.retry_delay}")


@dataclass(frozen=True)
class DecisionConfig:
    """Decision query settings and the character profile used in prompts."""

    use_decision_service: bool = True
    temperature: float = 0.7
    max_tokens: int = 256
    timeout_seconds: float = 10.0
    min_confidence: float = 0.3
    character_name: str = "Golem"
    personality_json: str = DEFAULT_PERSONALITY_JSON
    nearby_object_radius: float = 15.0
    nearby_object_tags: List[str] = field(default_factory=lambda: list(DEFAULT_NEARBY_TAGS))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DecisionConfig":
        _reject_unknown(cls, data, "decision")
        values = dict(data)
        if "nearby_object_tags" in values:
            values["nearby_object_tags"] = [str(t) for t in values["nearby_object_tags"] or []]
        cfg = cls(**values)
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError(f"min_confidence must be in [0, 1], got {self.min_confidence}")
        if self.nearby_object_radius < 0:
            raise ValueError(f"nearby_object_radius must be >= 0, got {self.nearby_object_radius}")


@dataclass(frozen=True)
class AutonomyConfig:
    """All three sections of config/autonomy.yaml."""

    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    decision: DecisionConfig = field(default_factory=DecisionConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AutonomyConfig":
        _reject_unknown(cls, data, "top-level")
        return cls(
            scheduler=SchedulerConfig.from_dict(data.get("scheduler") or {}),
            memory=MemoryConfig.from_dict(data.get("memory") or {}),
            decision=DecisionConfig.from_dict(data.get("decision") or {}),
        )


def _load_yaml(path: Path) -> Dict[str, Any]:
    """
    Load a YAML file into a dict.

    Returns an empty dict if the file is empty, rather than None.
    """
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at top of {path}, got {type(data).__name__}")
    return data


def load_autonomy_config(path: Path = DEFAULT_CONFIG_PATH) -> AutonomyConfig:
    """
    Parse config/autonomy.yaml (or `path`) into an AutonomyConfig.

    Missing sections take their defaults. Raises FileNotFoundError when the
    file does not exist and ValueError on unknown keys or bad ranges.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    return AutonomyConfig.from_dict(_load_yaml(path))
