#tests/test_bootstrap.py
"""
Tests for autonomy.bootstrap.build_autonomy.

Covers:
- wiring with persistence on: memory file written on shutdown, reloaded
  by the next runtime
- JSONL event log sink receives the cycle's events
- controller is attached to the runtime's event bus
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from actions.bus import ActionBus
from autonomy import AutonomyConfig, DecisionConfig, SchedulerConfig, build_autonomy
from memory.config import MemoryConfig
from monitoring.events import ControlCommand
from tests.fakes.fake_autonomy import FAST_SCHEDULER, FakeBody, FakeWorld


def fast_config() -> AutonomyConfig:
    return AutonomyConfig(
        scheduler=SchedulerConfig(
            wander_weight=1.0,
            look_around_weight=0.0,
            sit_weight=0.0,
            gesture_weight=0.0,
            play_game_weight=0.0,
            **FAST_SCHEDULER,
        ),
        memory=MemoryConfig(),
        decision=DecisionConfig(use_decision_service=False, character_name="Barista"),
    )


@pytest.mark.asyncio
async def test_runtime_persists_and_reloads_memory(tmp_path: Path):
    memory_dir = tmp_path / "memory"
    log_path = tmp_path / "logs" / "events.log"
    action_bus = ActionBus()
    body = FakeBody(action_bus, respond="complete")

    runtime = build_autonomy(
        fast_config(),
        body=body,
        world=FakeWorld(),
        action_bus=action_bus,
        memory_dir=memory_dir,
        event_log_path=log_path,
    )
    assert runtime.store.path == memory_dir / "Barista_memory.json"
    assert not runtime.store.path.exists()

    results = await runtime.scheduler.step()
    assert results[0].succeeded
    await runtime.shutdown()

    saved = json.loads(runtime.store.path.read_text(encoding="utf-8"))
    assert len(saved["episodes"]) == 1
    assert saved["episodes"][0]["actionName"] == "MoveToLocation"
    assert len(saved["skills"]) == 1

    event_types = [
        json.loads(line)["event_type"]
        for line in log_path.read_text(encoding="utf-8").splitlines()
    ]
    assert "ACTION_DISPATCHED" in event_types
    assert "OUTCOME_RECORDED" in event_types
    assert event_types[-2:] == ["MEMORY_SAVED", "SCHEDULER_PHASE_CHANGE"]

    body.detach()
    second_bus = ActionBus()
    reloaded = build_autonomy(
        fast_config(),
        body=FakeBody(second_bus),
        world=FakeWorld(),
        action_bus=second_bus,
        memory_dir=memory_dir,
    )
    assert len(reloaded.store.episodic) == 1
    assert len(reloaded.store.skills) == 1
    assert reloaded.event_log is None
    await reloaded.shutdown()


def test_runtime_controller_is_on_event_bus(tmp_path: Path):
    action_bus = ActionBus()
    runtime = build_autonomy(
        fast_config(),
        body=FakeBody(action_bus),
        world=FakeWorld(),
        action_bus=action_bus,
        memory_dir=tmp_path,
    )

    runtime.event_bus.publish_command(ControlCommand.pause())

    assert runtime.scheduler.paused
    assert runtime.controller.paused
    assert runtime.hasher is not None
    runtime.controller.close()
    runtime.scheduler.dispose()
