# src/autonomy/bootstrap.py
"""
Single entrypoint that wires the autonomy core for one character:

  - MemoryStore (loaded from disk when persistence is enabled)
  - ContextHasher over the host's WorldQuery
  - IdleScheduler (creates its OutcomeTracker and ReflectionEngine)
  - SchedulerController on the monitoring EventBus
  - optional JsonFileLogger sink for monitoring events

The host supplies the body, the world scan, the action bus and (optionally)
a decision service such as llm_stack.decision.LLMDecisionService.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from actions.bus import ActionBus
from contracts.decision import DecisionService
from contracts.world import AgentBody, WorldQuery
from memory.context import ContextHasher
from memory.store import MemoryStore
from monitoring.bus import EventBus
from monitoring.logger import JsonFileLogger

from .config import AutonomyConfig
from .controller import SchedulerController
from .scheduler import IdleScheduler

logger = logging.getLogger(__name__)


@dataclass
class AutonomyRuntime:
    """Everything build_autonomy() wired, for the host to start and stop."""

    config: AutonomyConfig
    event_bus: EventBus
    store: MemoryStore
    hasher: ContextHasher
    scheduler: IdleScheduler
    controller: SchedulerController
    event_log: Optional[JsonFileLogger] = None

    async def shutdown(self) -> None:
        """Stop the scheduler (final memory flush) and detach everything."""
        await self.scheduler.stop()
        self.scheduler.dispose()
        self.controller.close()
        if self.event_log is not None:
            self.event_log.close()


def build_autonomy(
    config: AutonomyConfig,
    *,
    body: AgentBody,
    world: WorldQuery,
    action_bus: ActionBus,
    memory_dir: Path,
    decision_service: Optional[DecisionService] = None,
    event_bus: Optional[EventBus] = None,
    event_log_path: Optional[Path] = None,
    rng: Optional[random.Random] = None,
) -> AutonomyRuntime:
    """
    Wire the autonomy core. Does not start the scheduler.
    """
    bus = event_bus or EventBus()
    event_log = JsonFileLogger(Path(event_log_path), bus) if event_log_path is not None else None

    store = MemoryStore(
        config.memory,
        config.decision.character_name,
        Path(memory_dir),
        bus=bus,
    )
    store.load()

    hasher = ContextHasher(
        world,
        config.decision.nearby_object_radius,
        config.decision.nearby_object_tags,
        include_time_bucket=config.scheduler.include_time_bucket,
    )

    scheduler = IdleScheduler(
        config,
        body=body,
        store=store,
        action_bus=action_bus,
        hasher=hasher,
        decision_service=decision_service,
        bus=bus,
        rng=rng,
    )
    controller = SchedulerController(scheduler, bus)

    logger.info(
        "Autonomy core ready for %s (%d episodes, %d skills, decision service: %s)",
        config.decision.character_name,
        len(store.episodic),
        len(store.skills),
        type(decision_service).__name__ if decision_service is not None else "none",
    )
    return AutonomyRuntime(
        config=config,
        event_bus=bus,
        store=store,
        hasher=hasher,
        scheduler=scheduler,
        controller=controller,
        event_log=event_log,
    )
