# src/memory/reflection.py
"""
Periodic self-analysis over episodic memory.

The engine counts completed outcomes and their importance. Once either the
action count reaches `reflection_interval` or the accumulated importance
reaches `reflection_importance_threshold`, a reflection pass:

  1. resets both counters,
  2. samples the top episodes by importance,
  3. derives observations locally (over-repetition, failure caution, or a
     generic positive note),
  4. writes each observation back as a max-importance "Reflection" episode,
  5. prunes the skill library.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from typing import List, Optional, Sequence

from contracts.types import ActionId, Vec3
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event

from .schema import Episode
from .store import MemoryStore

logger = logging.getLogger(__name__)

REFLECTION_CONTEXT = "reflection"
REFLECTION_ACTION_NAME = "Reflection"
REFLECTION_REASONING = "Periodic reflection on recent experiences"
GENERIC_OBSERVATION = (
    "My recent actions have been going well. I should continue exploring my environment."
)


def derive_observations(episodes: Sequence[Episode], frequent_action_threshold: int) -> List[str]:
    """
    Local pattern analysis over a sample of episodes.

    Always returns at least one observation for a non-empty sample.
    Ties between action names go to the one encountered first.
    """
    observations: List[str] = []
    if not episodes:
        return observations

    action_counts: Counter = Counter()
    failed_counts: Counter = Counter()
    for ep in episodes:
        name = ep.action_name or "unknown"
        action_counts[name] += 1
        if not ep.succeeded:
            failed_counts[name] += 1

    # Counter.most_common keeps insertion order for equal counts.
    most_common, max_count = action_counts.most_common(1)[0]
    if max_count >= frequent_action_threshold:
        observations.append(
            f"I tend to {most_common} frequently ({max_count} times recently). "
            "I should try more variety."
        )

    if failed_counts:
        worst_action, worst_fails = failed_counts.most_common(1)[0]
        observations.append(
            f"{worst_action} has failed {worst_fails} times. "
            "I should be more cautious with this action or try alternatives."
        )

    if not observations:
        observations.append(GENERIC_OBSERVATION)
    return observations


class ReflectionEngine:
    """
    Holds the reflection trigger state and runs reflection passes against a
    MemoryStore it does not own.
    """

    def __init__(self, store: MemoryStore, *, bus: Optional[EventBus] = None) -> None:
        self._store = store
        self._config = store.config
        self._bus = bus
        self._actions_since_reflection = 0
        self._accumulated_importance = 0.0
        self._is_reflecting = False

    # ------------------------------------------------------------------ #
    # Trigger state
    # ------------------------------------------------------------------ #

    @property
    def actions_since_reflection(self) -> int:
        return self._actions_since_reflection

    @property
    def accumulated_importance(self) -> float:
        return self._accumulated_importance

    @property
    def is_reflecting(self) -> bool:
        return self._is_reflecting

    def track_action(self, importance: float) -> None:
        """Count one completed outcome."""
        self._actions_since_reflection += 1
        self._accumulated_importance += importance

    def should_reflect(self) -> bool:
        if self._is_reflecting:
            return False
        return (
            self._actions_since_reflection >= self._config.reflection_interval
            or self._accumulated_importance >= self._config.reflection_importance_threshold
        )

    # ------------------------------------------------------------------ #
    # Reflection pass
    # ------------------------------------------------------------------ #

    def execute_reflection(self, now: Optional[float] = None) -> List[str]:
        """
        Run one reflection pass and return the observations written.

        Single-flight: a call made while a pass is running returns [].
        """
        if self._is_reflecting:
            return []
        self._is_reflecting = True
        try:
            return self._reflect(time.time() if now is None else now)
        finally:
            self._is_reflecting = False

    def _reflect(self, now: float) -> List[str]:
        self._actions_since_reflection = 0
        self._accumulated_importance = 0.0

        logger.info("Starting reflection...")
        store = self._store
        with store.lock:
            sample = store.episodic.retrieve_by_importance(self._config.reflection_sample_size)
        if not sample:
            logger.info("Nothing to reflect on yet.")
            return []

        observations = derive_observations(sample, self._config.frequent_action_threshold)

        with store.lock:
            for text in observations:
                store.episodic.add_episode(
                    Episode(
                        timestamp=now,
                        action_id=int(ActionId.AGENT_REFLECTION_TRIGGERED),
                        action_name=REFLECTION_ACTION_NAME,
                        target=None,
                        thought=text,
                        reasoning=REFLECTION_REASONING,
                        importance=1.0,
                        succeeded=True,
                        position=Vec3(),
                        context_hash=REFLECTION_CONTEXT,
                    )
                )
                logger.info("Observation: %s", text)
            pruned = store.skills.prune()
        store.on_episode_added()

        if pruned:
            log_event(
                bus=self._bus,
                module="memory.reflection",
                event_type=EventType.SKILLS_PRUNED,
                message=f"Pruned {pruned} skill(s)",
                payload={"pruned": pruned, "remaining": len(store.skills)},
            )
        log_event(
            bus=self._bus,
            module="memory.reflection",
            event_type=EventType.REFLECTION_COMPLETED,
            message=f"Reflection generated {len(observations)} observation(s)",
            payload={"observations": list(observations), "sampled": len(sample)},
        )
        logger.info("Reflection complete. Generated %d observations.", len(observations))
        return observations
