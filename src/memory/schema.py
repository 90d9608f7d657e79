#src/memory/schema.py

"""
Memory schema for the autonomy core.

This module defines the two persisted record types:
- Episode: one past action and its outcome (episodic memory)
- Skill:   one cached situation -> action recommendation (skill library)

Both round-trip through plain dicts via to_dict / from_dict. The key names
are the ones used in the on-disk memory document:

    {
      "episodes": [{"timestamp": ..., "actionId": ..., ...}, ...],
      "skills":   [{"situationPattern": ..., "useCount": ..., ...}, ...]
    }
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from contracts.types import Vec3


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _require_mapping(data: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{kind}.from_dict expected a mapping, got {type(data)!r}")
    return data


# ---------------------------------------------------------------------------
# Episode
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Episode:
    """
    One historical record in episodic memory.

    Frozen: an Episode is never mutated after insertion. EpisodicMemory
    computes `importance` (when it is still 0) on a copy before storing it.

    Fields
    ------
    timestamp:
        UNIX seconds when the action started.
    action_id / action_name / target:
        What was done and to what (target may be None).
    thought / reasoning:
        Decision narrative, empty for fallback actions.
    importance:
        In [0, 1]. 0 means "not computed yet".
    succeeded:
        Real-world outcome.
    position:
        Where the agent stood when the action was dispatched.
    context_hash:
        Situation fingerprint (see memory.context).
    """

    action_id: int
    action_name: str
    target: Optional[str] = None
    thought: str = ""
    reasoning: str = ""
    importance: float = 0.0
    succeeded: bool = True
    position: Vec3 = field(default_factory=Vec3)
    context_hash: str = ""
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": float(self.timestamp),
            "actionId": int(self.action_id),
            "actionName": self.action_name,
            "target": self.target,
            "thought": self.thought,
            "reasoning": self.reasoning,
            "importance": float(self.importance),
            "succeeded": bool(self.succeeded),
            "posX": float(self.position.x),
            "posY": float(self.position.y),
            "posZ": float(self.position.z),
            "contextHash": self.context_hash,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Episode":
        data = _require_mapping(data, "Episode")
        return cls(
            timestamp=float(data.get("timestamp", 0.0)),
            action_id=int(data["actionId"]),
            action_name=str(data.get("actionName") or ""),
            target=_opt_str(data.get("target")),
            thought=str(data.get("thought") or ""),
            reasoning=str(data.get("reasoning") or ""),
            importance=float(data.get("importance", 0.0)),
            succeeded=bool(data.get("succeeded", True)),
            position=Vec3(
                float(data.get("posX", 0.0)),
                float(data.get("posY", 0.0)),
                float(data.get("posZ", 0.0)),
            ),
            context_hash=str(data.get("contextHash") or ""),
        )


# ---------------------------------------------------------------------------
# Skill
# ---------------------------------------------------------------------------

@dataclass
class Skill:
    """
    Cached policy entry: "in situation X, doing Y tends to work".

    Mutable counters are updated by SkillLibrary.record_outcome; nothing
    else should touch them.
    """

    situation_pattern: str
    recommended_action_id: int
    action_name: str
    target: Optional[str] = None
    use_count: int = 0
    success_count: int = 0

    @property
    def success_rate(self) -> float:
        """successCount / useCount, 0.0 for an unused skill."""
        if self.use_count <= 0:
            return 0.0
        return self.success_count / self.use_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "situationPattern": self.situation_pattern,
            "recommendedActionId": int(self.recommended_action_id),
            "actionName": self.action_name,
            "target": self.target,
            "useCount": int(self.use_count),
            "successCount": int(self.success_count),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Skill":
        data = _require_mapping(data, "Skill")
        return cls(
            situation_pattern=str(data["situationPattern"]),
            recommended_action_id=int(data["recommendedActionId"]),
            action_name=str(data.get("actionName") or ""),
            target=_opt_str(data.get("target")),
            use_count=int(data.get("useCount", 0)),
            success_count=int(data.get("successCount", 0)),
        )
