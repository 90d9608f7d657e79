# src/memory/config.py

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict


@dataclass(frozen=True)
class MemoryConfig:
    """
    Tuning values for episodic memory, the skill library, reflection and
    persistence. Loaded once at construction; never mutated at runtime.
    """

    # episodic memory
    max_episodes: int = 200
    top_k_episodes: int = 5
    recency_half_life: float = 600.0   # seconds
    recency_weight: float = 0.4
    importance_weight: float = 0.3
    relevance_weight: float = 0.3

    # importance
    default_base_importance: float = 0.3
    novelty_bonus: float = 0.2
    failure_bonus: float = 0.3
    novelty_lookback: int = 10

    # skill library
    max_skills: int = 50
    min_skill_uses: int = 3
    skill_confidence_threshold: float = 0.7
    skill_prune_threshold: float = 0.3
    exploration_rate: float = 0.2
    skill_replacement_threshold: float = 0.5

    # reflection
    reflection_interval: int = 20
    reflection_importance_threshold: float = 5.0
    reflection_sample_size: int = 10
    frequent_action_threshold: int = 3

    # persistence
    save_interval: int = 10
    enable_persistence: bool = True

    # ReAct retry
    enable_failure_retry: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryConfig":
        """Build from a plain mapping (e.g. the `memory:` YAML section); unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown memory config keys: {unknown}")
        cfg = cls(**data)
        cfg.validate()
        return cfg

    def validate(self) -> None:
        """Minimal range checks."""
        if self.max_episodes < 1:
            raise ValueError(f"max_episodes must be >= 1, got {self.max_episodes}")
        if self.max_skills < 1:
            raise ValueError(f"max_skills must be >= 1, got {self.max_skills}")
        if self.recency_half_life <= 0:
            raise ValueError(f"recency_half_life must be > 0, got {self.recency_half_life}")
        if self.save_interval < 1:
            raise ValueError(f"save_interval must be >= 1, got {self.save_interval}")
        for name in (
            "default_base_importance",
            "novelty_bonus",
            "failure_bonus",
            "skill_confidence_threshold",
            "skill_prune_threshold",
            "exploration_rate",
            "skill_replacement_threshold",
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
