#tests/test_reflection_engine.py
"""
Tests for memory.reflection.

Covers:
- trigger conditions (action count, accumulated importance)
- should_reflect is False while a pass is running
- observation derivation (repetition, failures, generic)
- reflection episodes written back, skills pruned, events emitted
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from memory.config import MemoryConfig
from memory.reflection import (
    GENERIC_OBSERVATION,
    REFLECTION_CONTEXT,
    ReflectionEngine,
    derive_observations,
)
from memory.schema import Episode, Skill
from memory.store import MemoryStore
from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent


def make_store(tmp_path: Path, **overrides) -> MemoryStore:
    cfg = MemoryConfig(enable_persistence=False, **overrides)
    return MemoryStore(cfg, "Golem", tmp_path)


def ep(name: str, succeeded: bool = True, importance: float = 0.5) -> Episode:
    return Episode(action_id=600, action_name=name, succeeded=succeeded, importance=importance)


def test_should_reflect_after_interval(tmp_path: Path):
    engine = ReflectionEngine(make_store(tmp_path, reflection_interval=3))
    engine.track_action(0.1)
    engine.track_action(0.1)
    assert not engine.should_reflect()
    engine.track_action(0.1)
    assert engine.should_reflect()


def test_should_reflect_on_accumulated_importance(tmp_path: Path):
    engine = ReflectionEngine(make_store(tmp_path, reflection_importance_threshold=1.0))
    engine.track_action(0.6)
    assert not engine.should_reflect()
    engine.track_action(0.5)
    assert engine.should_reflect()


def test_should_reflect_false_while_reflecting(tmp_path: Path):
    store = make_store(tmp_path, reflection_interval=1)
    engine = ReflectionEngine(store)
    engine.track_action(0.5)
    seen: List[bool] = []

    # Observe the engine from inside the pass via the store's save hook.
    original = store.on_episode_added

    def spy() -> None:
        seen.append(engine.is_reflecting)
        seen.append(engine.should_reflect())
        assert engine.execute_reflection() == []
        original()

    store.on_episode_added = spy  # type: ignore[assignment]
    store.episodic.add_episode(ep("Wave"))
    engine.execute_reflection()

    assert seen == [True, False]
    assert not engine.is_reflecting


def test_derive_observations_patterns():
    sample = [ep("Wave"), ep("Wave"), ep("Wave"), ep("PlayClaw", succeeded=False)]
    obs = derive_observations(sample, frequent_action_threshold=3)
    assert obs == [
        "I tend to Wave frequently (3 times recently). I should try more variety.",
        "PlayClaw has failed 1 times. I should be more cautious with this action or try alternatives.",
    ]

    assert derive_observations([ep("Wave")], 3) == [GENERIC_OBSERVATION]
    assert derive_observations([], 3) == []


def test_reflection_on_empty_memory_returns_nothing(tmp_path: Path):
    store = make_store(tmp_path)
    engine = ReflectionEngine(store)
    engine.track_action(1.0)

    assert engine.execute_reflection() == []
    assert len(store.episodic) == 0
    assert engine.actions_since_reflection == 0


def test_reflection_writes_episodes_prunes_and_emits(tmp_path: Path):
    bus = EventBus()
    events: List[MonitoringEvent] = []
    bus.subscribe(events.append)

    store = make_store(tmp_path)
    store.skills.load_from([Skill("Idle|none", 600, "Wave", use_count=5, success_count=0)])
    for _ in range(3):
        store.episodic.add_episode(ep("Wave"))

    engine = ReflectionEngine(store, bus=bus)
    for _ in range(3):
        engine.track_action(0.5)

    observations = engine.execute_reflection(now=42.0)

    assert observations == ["I tend to Wave frequently (3 times recently). I should try more variety."]
    assert engine.actions_since_reflection == 0
    assert engine.accumulated_importance == 0.0

    written = store.episodic.episodes[-1]
    assert written.action_name == "Reflection"
    assert written.importance == 1.0
    assert written.context_hash == REFLECTION_CONTEXT
    assert written.thought == observations[0]
    assert written.timestamp == 42.0

    assert len(store.skills) == 0
    kinds = [e.event_type for e in events]
    assert EventType.SKILLS_PRUNED in kinds
    assert kinds[-1] == EventType.REFLECTION_COMPLETED
    assert events[-1].payload["observations"] == observations
