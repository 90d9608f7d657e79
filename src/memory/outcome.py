# src/memory/outcome.py
"""
Correlates one dispatched autonomous action with its real-world outcome.

Single-slot: at most one action is tracked at a time. The scheduler never
begins a second action while one is pending; if that precondition is ever
violated, the earlier pending action is dropped with a warning.

Two ways to finish tracking:
  - an AGENT_ACTION_COMPLETED / AGENT_ACTION_FAILED signal on the action bus
    whose ActionLifecycle.source_action matches the pending action id,
  - a direct complete_tracking(succeeded) call (the scheduler's timed wait
    elapsed without a signal).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from actions.bus import ActionBus, ActionMessage, Subscription
from contracts.types import ActionId, ActionLifecycle, AutonomousAction, Decision, Vec3
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event

from .schema import Episode
from .store import MemoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutcomeRecord:
    """What listeners receive once an outcome has been written to memory."""

    episode: Episode
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.episode.succeeded


OutcomeListener = Callable[[OutcomeRecord], None]


@dataclass
class _Pending:
    action_id: ActionId
    action_name: str
    target: Optional[str]
    thought: str
    reasoning: str
    context_hash: str
    position: Vec3
    timestamp: float
    correlation_id: Optional[str] = None


class OutcomeTracker:
    """
    Writes completed actions into the shared MemoryStore (episode + skill
    update + save counter) and notifies listeners.
    """

    def __init__(
        self,
        store: MemoryStore,
        action_bus: ActionBus,
        *,
        bus: Optional[EventBus] = None,
    ) -> None:
        self._store = store
        self._bus = bus
        self._pending: Optional[_Pending] = None
        self._listeners: List[OutcomeListener] = []
        self._subscriptions: List[Subscription] = [
            action_bus.subscribe(ActionId.AGENT_ACTION_COMPLETED, self._on_action_completed),
            action_bus.subscribe(ActionId.AGENT_ACTION_FAILED, self._on_action_failed),
        ]

    # ------------------------------------------------------------------ #
    # Listeners
    # ------------------------------------------------------------------ #

    def add_listener(self, fn: OutcomeListener) -> None:
        self._listeners.append(fn)

    def remove_listener(self, fn: OutcomeListener) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    # ------------------------------------------------------------------ #
    # Tracking
    # ------------------------------------------------------------------ #

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def pending_action_id(self) -> Optional[ActionId]:
        return self._pending.action_id if self._pending is not None else None

    def begin_tracking(
        self,
        action: AutonomousAction,
        decision: Optional[Decision],
        context_hash: str,
        position: Vec3,
        correlation_id: Optional[str] = None,
    ) -> None:
        if self._pending is not None:
            logger.warning(
                "begin_tracking(%s) while %s is still pending; dropping the earlier action",
                action.action_name,
                self._pending.action_name,
            )
        self._pending = _Pending(
            action_id=action.action_id,
            action_name=action.action_name,
            target=decision.target if decision is not None else action.target,
            thought=decision.thought if decision is not None else "",
            reasoning=decision.reasoning if decision is not None else "",
            context_hash=context_hash,
            position=position,
            timestamp=time.time(),
            correlation_id=correlation_id,
        )

    def complete_tracking(self, succeeded: bool, error: Optional[str] = None) -> Optional[OutcomeRecord]:
        """Record the pending action; no-op (None) when nothing is pending."""
        if self._pending is None:
            return None
        return self._record_outcome(succeeded, error)

    def cancel_tracking(self) -> bool:
        """Drop pending state without recording. Returns True if something was dropped."""
        if self._pending is None:
            return False
        logger.info("Outcome tracking cancelled for %s", self._pending.action_name)
        self._pending = None
        return True

    # ------------------------------------------------------------------ #
    # Action bus handlers
    # ------------------------------------------------------------------ #

    def _matching_lifecycle(self, msg: ActionMessage) -> Optional[ActionLifecycle]:
        if self._pending is None:
            return None
        lifecycle = msg.payload_as(ActionLifecycle)
        if lifecycle is None:
            return None
        if int(lifecycle.source_action) != int(self._pending.action_id):
            return None
        return lifecycle

    def _on_action_completed(self, msg: ActionMessage) -> None:
        lifecycle = self._matching_lifecycle(msg)
        if lifecycle is None:
            return
        self._record_outcome(lifecycle.succeeded, lifecycle.error)

    def _on_action_failed(self, msg: ActionMessage) -> None:
        lifecycle = self._matching_lifecycle(msg)
        if lifecycle is None:
            return
        self._record_outcome(False, lifecycle.error)

    # ------------------------------------------------------------------ #
    # Recording
    # ------------------------------------------------------------------ #

    def _record_outcome(self, succeeded: bool, error: Optional[str]) -> OutcomeRecord:
        pending = self._pending
        assert pending is not None
        self._pending = None

        store = self._store
        with store.lock:
            episode = store.episodic.add_episode(
                Episode(
                    timestamp=pending.timestamp,
                    action_id=int(pending.action_id),
                    action_name=pending.action_name,
                    target=pending.target,
                    thought=pending.thought,
                    reasoning=pending.reasoning,
                    importance=0.0,
                    succeeded=succeeded,
                    position=pending.position,
                    context_hash=pending.context_hash,
                )
            )
            store.skills.record_outcome(
                pending.context_hash,
                int(pending.action_id),
                pending.action_name,
                pending.target,
                succeeded,
            )
        store.on_episode_added()

        logger.info(
            "Recorded: %s -> %s (importance=%.2f)",
            episode.action_name,
            "SUCCESS" if succeeded else "FAIL",
            episode.importance,
        )
        log_event(
            bus=self._bus,
            module="memory.outcome",
            event_type=EventType.OUTCOME_RECORDED,
            message=f"Outcome recorded: {episode.action_name}",
            payload={
                "action_name": episode.action_name,
                "target": episode.target,
                "succeeded": succeeded,
                "importance": episode.importance,
                "context_hash": episode.context_hash,
                "error": error,
            },
            correlation_id=pending.correlation_id,
        )

        record = OutcomeRecord(episode=episode, error=error)
        for fn in list(self._listeners):
            try:
                fn(record)
            except Exception:
                logger.exception("Outcome listener %r raised", fn)
        return record

    # ------------------------------------------------------------------ #
    # Shutdown
    # ------------------------------------------------------------------ #

    def dispose(self) -> None:
        for sub in self._subscriptions:
            sub.dispose()
        self._subscriptions.clear()
        self._listeners.clear()
