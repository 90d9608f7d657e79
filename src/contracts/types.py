# core shared types: ActionId, Vec3, Decision, AutonomousAction
# src/contracts/types.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple


# ---------------------------------------------------------------------------
# Action identifiers
# ---------------------------------------------------------------------------

class ActionId(IntEnum):
    """
    Stable numeric identifiers for actions travelling over the action bus.

    Ranges:
      - 400s: character actions the agent may choose autonomously
      - 600s: social actions
      - 700s: agent lifecycle signals (completion / failure / reflection)
    """

    CHARACTER_IDLE = 400
    CHARACTER_MOVE_TO_LOCATION = 401
    CHARACTER_TURN_TO = 402
    CHARACTER_SIT_AT_CHAIR = 403
    CHARACTER_STAND_UP = 404
    CHARACTER_LOOK_AT = 405
    CHARACTER_LEAN = 406
    CHARACTER_EXAMINE_MENU = 407
    CHARACTER_PLAY_ARCADE = 408
    CHARACTER_PLAY_CLAW = 409

    SOCIAL_WAVE = 600

    AGENT_ACTION_COMPLETED = 700
    AGENT_ACTION_FAILED = 701
    AGENT_REFLECTION_TRIGGERED = 702

    @property
    def decision_name(self) -> str:
        """Name used for this action in decision prompts and episodes."""
        return _NAME_BY_ID.get(self, self.name)

    @property
    def is_character_action(self) -> bool:
        return 400 <= int(self) < 700

    @classmethod
    def from_decision_name(cls, name: Optional[str]) -> Optional["ActionId"]:
        """
        Map a decision action name onto the whitelist, case-insensitively.

        Returns None for empty or unknown names.
        """
        if not name:
            return None
        return _ID_BY_LOWER_NAME.get(name.strip().lower())


# Whitelist of action names a decision may return, in prompt order.
DECISION_ACTIONS: Tuple[Tuple[str, ActionId], ...] = (
    ("Idle", ActionId.CHARACTER_IDLE),
    ("MoveToLocation", ActionId.CHARACTER_MOVE_TO_LOCATION),
    ("TurnTo", ActionId.CHARACTER_TURN_TO),
    ("SitAtChair", ActionId.CHARACTER_SIT_AT_CHAIR),
    ("StandUp", ActionId.CHARACTER_STAND_UP),
    ("LookAt", ActionId.CHARACTER_LOOK_AT),
    ("Lean", ActionId.CHARACTER_LEAN),
    ("ExamineMenu", ActionId.CHARACTER_EXAMINE_MENU),
    ("PlayArcade", ActionId.CHARACTER_PLAY_ARCADE),
    ("PlayClaw", ActionId.CHARACTER_PLAY_CLAW),
    ("Wave", ActionId.SOCIAL_WAVE),
)

_NAME_BY_ID: Dict[ActionId, str] = {aid: name for name, aid in DECISION_ACTIONS}
_NAME_BY_ID[ActionId.AGENT_REFLECTION_TRIGGERED] = "Reflection"
_ID_BY_LOWER_NAME: Dict[str, ActionId] = {
    name.lower(): aid for name, aid in DECISION_ACTIONS
}


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Vec3:
    """Plain 3D position. Units are whatever the host world uses."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def distance_to(self, other: "Vec3") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return (dx * dx + dy * dy + dz * dz) ** 0.5

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass(frozen=True)
class EntityRef:
    """
    Reference to a world entity returned by a proximity scan.

    Fields:
      - name: display/object name (e.g. "Chair_03")
      - tag:  category tag used for context hashing (e.g. "Arcade")
      - position: entity position
    """

    name: str
    tag: str
    position: Vec3 = field(default_factory=Vec3)


# ---------------------------------------------------------------------------
# Decisions and actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Decision:
    """
    Transient output of the decision query or the skill cache.

    Not persisted directly: it only seeds an Episode / Skill update once the
    real-world outcome of the action is known.
    """

    action_id: ActionId
    action_name: str
    target: Optional[str] = None
    thought: str = ""
    reasoning: str = ""
    confidence: float = 0.5


@dataclass
class AutonomousAction:
    """
    Action the scheduler is about to dispatch.

    expected_duration is in seconds; the scheduler waits at most this long
    for an external completion signal before declaring the action done.
    """

    action_id: ActionId
    payload: Dict[str, Any] = field(default_factory=dict)
    expected_duration: float = 5.0
    description: str = ""
    decision: Optional[Decision] = None

    @property
    def action_name(self) -> str:
        return self.action_id.decision_name

    @property
    def target(self) -> Optional[str]:
        if self.decision is not None and self.decision.target:
            return self.decision.target
        target = self.payload.get("target")
        return str(target) if target is not None else None


@dataclass(frozen=True)
class ActionLifecycle:
    """
    Payload carried by AGENT_ACTION_COMPLETED / AGENT_ACTION_FAILED signals.
    """

    source_action: ActionId
    action_name: str = ""
    succeeded: bool = True
    error: Optional[str] = None
