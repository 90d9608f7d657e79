# src/autonomy/fallback.py
"""
Weighted-random fallback actions.

Used whenever no trusted skill applies and the decision query is disabled,
unavailable, low-confidence or unmapped. Categories are always walked in
the same order (wander, look-around, sit, gesture, play-game); the first
category whose cumulative weight exceeds the roll wins.
"""

from __future__ import annotations

import logging
import math
import random
from enum import Enum
from typing import Optional, Sequence

from contracts.types import ActionId, AutonomousAction, Vec3

from .config import SchedulerConfig

logger = logging.getLogger(__name__)


class FallbackCategory(Enum):
    WANDER = "wander"
    LOOK_AROUND = "look"
    SIT = "sit"
    GESTURE = "gesture"
    PLAY_GAME = "play"


CATEGORY_ORDER = (
    FallbackCategory.WANDER,
    FallbackCategory.LOOK_AROUND,
    FallbackCategory.SIT,
    FallbackCategory.GESTURE,
    FallbackCategory.PLAY_GAME,
)


def pick_category(weights: Sequence[float], roll: float) -> FallbackCategory:
    """
    Pick a category for `roll` in [0, sum(weights)).

    `weights` follows CATEGORY_ORDER. A non-positive total, or a roll past
    the last cumulative sum, yields WANDER.
    """
    if len(weights) != len(CATEGORY_ORDER):
        raise ValueError(f"Expected {len(CATEGORY_ORDER)} weights, got {len(weights)}")
    if sum(weights) <= 0:
        return FallbackCategory.WANDER

    cumulative = 0.0
    for category, weight in zip(CATEGORY_ORDER, weights):
        cumulative += weight
        if roll < cumulative:
            return category
    return FallbackCategory.WANDER


class FallbackActionGenerator:
    """Builds AutonomousActions for the weighted-random fallback."""

    def __init__(self, config: SchedulerConfig, rng: Optional[random.Random] = None) -> None:
        self._config = config
        self._rng = rng or random.Random()
        total = sum(config.weights)
        if abs(total - 1.0) > 0.01:
            logger.warning("Fallback weights sum to %.2f, expected 1.0", total)

    def pick(self, position: Vec3) -> AutonomousAction:
        weights = self._config.weights
        roll = self._rng.random() * sum(weights)
        category = pick_category(weights, roll)
        return self.create(category, position)

    def create(self, category: FallbackCategory, position: Vec3) -> AutonomousAction:
        if category is FallbackCategory.LOOK_AROUND:
            return self.create_look_around_action(position)
        if category is FallbackCategory.SIT:
            return self.create_sit_action()
        if category is FallbackCategory.GESTURE:
            return self.create_gesture_action()
        if category is FallbackCategory.PLAY_GAME:
            return self.create_play_game_action()
        return self.create_wander_action(position)

    def create_for(
        self,
        action_id: ActionId,
        position: Vec3,
        target: Optional[str] = None,
    ) -> Optional[AutonomousAction]:
        """
        Rebuild the fallback action that produces `action_id`.

        Used when a cached skill replays a fallback choice: the skill keeps
        only the action id and target, so the geometry (destination, gaze
        point, chair) is drawn again. Returns None for actions no factory
        makes, or when a target makes a fresh draw wrong.
        """
        if action_id is ActionId.CHARACTER_SIT_AT_CHAIR:
            action = self.create_sit_action()
            chair = _chair_number(target)
            if chair is not None:
                action.payload.update({"chair_number": chair, "target": f"chair_{chair}"})
            return action
        if action_id in (ActionId.CHARACTER_PLAY_ARCADE, ActionId.CHARACTER_PLAY_CLAW):
            action = self.create_play_game_action()
            action.action_id = action_id
            return action
        if target:
            return None
        if action_id is ActionId.CHARACTER_MOVE_TO_LOCATION:
            return self.create_wander_action(position)
        if action_id is ActionId.CHARACTER_TURN_TO:
            return self.create_look_around_action(position)
        if action_id is ActionId.CHARACTER_IDLE:
            return self.create_gesture_action()
        return None

    # ------------------------------------------------------------------ #
    # Factories
    # ------------------------------------------------------------------ #

    def create_wander_action(self, position: Vec3) -> AutonomousAction:
        """Random destination on the ground plane within wander_radius."""
        cfg = self._config
        angle = self._rng.uniform(0.0, 2.0 * math.pi)
        distance = cfg.wander_radius * math.sqrt(self._rng.random())
        destination = position + Vec3(math.cos(angle) * distance, 0.0, math.sin(angle) * distance)
        return AutonomousAction(
            action_id=ActionId.CHARACTER_MOVE_TO_LOCATION,
            payload={"destination": destination},
            expected_duration=cfg.wander_duration,
            description="autonomous wander",
        )

    def create_look_around_action(self, position: Vec3) -> AutonomousAction:
        """Turn toward a point look_distance away at a random yaw."""
        cfg = self._config
        yaw = math.radians(self._rng.uniform(-180.0, 180.0))
        gaze = position + Vec3(math.sin(yaw) * cfg.look_distance, 0.0, math.cos(yaw) * cfg.look_distance)
        return AutonomousAction(
            action_id=ActionId.CHARACTER_TURN_TO,
            payload={"position": gaze},
            expected_duration=cfg.look_around_duration,
            description="autonomous look around",
        )

    def create_sit_action(self) -> AutonomousAction:
        cfg = self._config
        chair = self._rng.randint(1, cfg.chair_count)
        return AutonomousAction(
            action_id=ActionId.CHARACTER_SIT_AT_CHAIR,
            payload={"chair_number": chair, "target": f"chair_{chair}"},
            expected_duration=self._rng.uniform(cfg.sit_duration_min, cfg.sit_duration_max),
            description="autonomous sit",
        )

    def create_gesture_action(self) -> AutonomousAction:
        return AutonomousAction(
            action_id=ActionId.CHARACTER_IDLE,
            payload={"idle_type": "standing"},
            expected_duration=self._config.gesture_duration,
            description="autonomous gesture",
        )

    def create_play_game_action(self) -> AutonomousAction:
        action_id = self._rng.choice((ActionId.CHARACTER_PLAY_ARCADE, ActionId.CHARACTER_PLAY_CLAW))
        return AutonomousAction(
            action_id=action_id,
            payload={},
            expected_duration=self._config.play_game_duration,
            description="autonomous play game",
        )


def _chair_number(target: Optional[str]) -> Optional[int]:
    """'chair_3' -> 3; anything else -> None."""
    if not target or not target.startswith("chair_"):
        return None
    try:
        return int(target[len("chair_"):])
    except ValueError:
        return None
