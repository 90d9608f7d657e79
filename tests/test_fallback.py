#tests/test_fallback.py
"""
Tests for autonomy.fallback.

Covers:
- weighted category selection (order, boundaries, degenerate weights)
- action factories (ids, payload shapes, durations)
"""

from __future__ import annotations

import random

import pytest

from autonomy.config import SchedulerConfig
from autonomy.fallback import FallbackActionGenerator, FallbackCategory, pick_category
from contracts.types import ActionId, Vec3

WEIGHTS = [40, 20, 15, 15, 10]


def test_pick_category_walks_cumulative_weights():
    assert pick_category(WEIGHTS, 0) is FallbackCategory.WANDER
    assert pick_category(WEIGHTS, 39.9) is FallbackCategory.WANDER
    assert pick_category(WEIGHTS, 41) is FallbackCategory.LOOK_AROUND
    assert pick_category(WEIGHTS, 60) is FallbackCategory.SIT
    assert pick_category(WEIGHTS, 80) is FallbackCategory.GESTURE
    assert pick_category(WEIGHTS, 95) is FallbackCategory.PLAY_GAME


def test_pick_category_degenerate_weights():
    assert pick_category([0, 0, 0, 0, 0], 0.3) is FallbackCategory.WANDER
    assert pick_category([-1, 0, 0, 0, 0], 0.3) is FallbackCategory.WANDER
    # roll past the end
    assert pick_category(WEIGHTS, 1000) is FallbackCategory.WANDER
    with pytest.raises(ValueError):
        pick_category([1, 2], 0.5)


def test_single_category_weights_always_pick_it():
    cfg = SchedulerConfig(
        wander_weight=0.0,
        look_around_weight=0.0,
        sit_weight=0.0,
        gesture_weight=1.0,
        play_game_weight=0.0,
    )
    gen = FallbackActionGenerator(cfg, random.Random(7))
    for _ in range(20):
        assert gen.pick(Vec3()).action_id == ActionId.CHARACTER_IDLE


def test_wander_destination_within_radius():
    cfg = SchedulerConfig(wander_radius=5.0)
    gen = FallbackActionGenerator(cfg, random.Random(3))
    origin = Vec3(10.0, 1.0, -4.0)
    for _ in range(50):
        action = gen.create_wander_action(origin)
        dest = action.payload["destination"]
        assert action.action_id == ActionId.CHARACTER_MOVE_TO_LOCATION
        assert dest.y == origin.y
        assert dest.distance_to(origin) <= 5.0 + 1e-9
        assert action.expected_duration == cfg.wander_duration


def test_look_around_targets_point_at_look_distance():
    cfg = SchedulerConfig(look_distance=5.0)
    gen = FallbackActionGenerator(cfg, random.Random(5))
    action = gen.create_look_around_action(Vec3())
    assert action.action_id == ActionId.CHARACTER_TURN_TO
    assert abs(action.payload["position"].distance_to(Vec3()) - 5.0) < 1e-9
    assert action.expected_duration == 3.0


def test_sit_picks_chair_and_duration_in_range():
    cfg = SchedulerConfig(chair_count=4, sit_duration_min=10.0, sit_duration_max=30.0)
    gen = FallbackActionGenerator(cfg, random.Random(11))
    for _ in range(30):
        action = gen.create_sit_action()
        chair = action.payload["chair_number"]
        assert action.action_id == ActionId.CHARACTER_SIT_AT_CHAIR
        assert 1 <= chair <= 4
        assert action.target == f"chair_{chair}"
        assert 10.0 <= action.expected_duration <= 30.0


def test_gesture_and_play_game_actions():
    gen = FallbackActionGenerator(SchedulerConfig(), random.Random(2))
    gesture = gen.create_gesture_action()
    assert gesture.action_id == ActionId.CHARACTER_IDLE
    assert gesture.payload == {"idle_type": "standing"}

    seen = {gen.create_play_game_action().action_id for _ in range(40)}
    assert seen == {ActionId.CHARACTER_PLAY_ARCADE, ActionId.CHARACTER_PLAY_CLAW}


def test_unbalanced_weights_only_warn(caplog):
    cfg = SchedulerConfig(wander_weight=2.0)
    FallbackActionGenerator(cfg)
    assert "expected 1.0" in caplog.text


def test_create_for_rebuilds_fallback_geometry():
    gen = FallbackActionGenerator(SchedulerConfig(), random.Random(4))
    here = Vec3(1.0, 0.0, 1.0)

    wander = gen.create_for(ActionId.CHARACTER_MOVE_TO_LOCATION, here)
    assert wander is not None and "destination" in wander.payload
    look = gen.create_for(ActionId.CHARACTER_TURN_TO, here)
    assert look is not None and "position" in look.payload
    assert gen.create_for(ActionId.CHARACTER_IDLE, here).payload == {"idle_type": "standing"}

    sit = gen.create_for(ActionId.CHARACTER_SIT_AT_CHAIR, here, target="chair_3")
    assert sit.payload == {"chair_number": 3, "target": "chair_3"}
    assert 10.0 <= sit.expected_duration <= 30.0
    # unknown chair name: a fresh chair is drawn
    assert 1 <= gen.create_for(ActionId.CHARACTER_SIT_AT_CHAIR, here, target="sofa").payload["chair_number"] <= 4

    claw = gen.create_for(ActionId.CHARACTER_PLAY_CLAW, here)
    assert claw.action_id == ActionId.CHARACTER_PLAY_CLAW


def test_create_for_leaves_targeted_or_unknown_actions_alone():
    gen = FallbackActionGenerator(SchedulerConfig(), random.Random(4))
    here = Vec3()
    assert gen.create_for(ActionId.CHARACTER_MOVE_TO_LOCATION, here, target="counter") is None
    assert gen.create_for(ActionId.SOCIAL_WAVE, here) is None
    assert gen.create_for(ActionId.CHARACTER_LEAN, here) is None
