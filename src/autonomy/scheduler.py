# src/autonomy/scheduler.py
"""
Idle scheduler: the decide -> act -> observe -> remember loop.

One cycle:

    BUILDING_CONTEXT   context hash from body state + world scan
    SKILL_HIT          trusted cached action (exploration roll permitting)
      or
    QUERYING_DECISION  top-K memories + recent actions (+ failure narrative)
                       sent to the decision service; rejected decisions fall
                       back to the weighted-random generator
    DISPATCHING        race check (still Idle), begin tracking, publish
    AWAITING_OUTCOME   first of: external completion signal, expected
                       duration elapsing (counted as success), cancellation

After the outcome is written to memory the reflection engine is consulted.
A failed outcome schedules at most one retry cycle (RETRY_PENDING) that
carries the failure narrative into the next decision query.

Everything runs on one asyncio event loop. The suspension points are the
idle wait, the decision query, the outcome wait and the retry delay.
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from actions.bus import ActionBus, ActionMessage
from contracts.decision import DecisionQuery, DecisionService, UnmappedActionError
from contracts.types import ActionId, AutonomousAction, Decision, Vec3
from contracts.world import AgentBody
from memory.context import ContextHasher
from memory.outcome import OutcomeRecord, OutcomeTracker
from memory.reflection import ReflectionEngine
from memory.store import MemoryStore
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from runtime.failure_mitigation import (
    DECISION_LOW_CONFIDENCE,
    DECISION_UNAVAILABLE,
    DECISION_UNMAPPED_ACTION,
    emit_action_failure,
    emit_decision_failure,
)

from .config import AutonomyConfig
from .fallback import FallbackActionGenerator
from .state import DecisionSource, SchedulerPhase, SchedulerState

logger = logging.getLogger(__name__)

IDLE_STATE = "Idle"
SITTING_STATE = "Sitting"
SCHEDULER_SOURCE = "idle_scheduler"


def failure_narrative(action_name: str, target: Optional[str], reason: Optional[str]) -> str:
    """Failure context injected into the retry cycle's decision query."""
    return (
        f"Previous action {action_name} targeting {target or 'nothing'} "
        f"failed because {reason or 'unknown reason'}. Choose a different action."
    )


@dataclass(frozen=True)
class CycleResult:
    """
    Summary of one decision cycle.

    outcome is None when the action was cancelled before an outcome was
    recorded. retry_context is set when this cycle's failure scheduled a
    retry; it is the narrative the retry cycle will receive.
    """

    cycle_id: str
    context_hash: str
    source: DecisionSource
    action: AutonomousAction
    decision: Optional[Decision] = None
    outcome: Optional[OutcomeRecord] = None
    cancelled: bool = False
    is_retry: bool = False
    retry_context: Optional[str] = None
    observations: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.outcome is not None and self.outcome.succeeded

    @property
    def retry_scheduled(self) -> bool:
        return self.retry_context is not None


class IdleScheduler:
    """
    Drives one agent body while it is idle.

    The scheduler holds the MemoryStore; the OutcomeTracker and the
    ReflectionEngine it creates keep non-owning references to the same
    store.
    """

    def __init__(
        self,
        config: AutonomyConfig,
        *,
        body: AgentBody,
        store: MemoryStore,
        action_bus: ActionBus,
        hasher: ContextHasher,
        decision_service: Optional[DecisionService] = None,
        bus: Optional[EventBus] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._sched_cfg = config.scheduler
        self._decision_cfg = config.decision
        self._body = body
        self._store = store
        self._action_bus = action_bus
        self._hasher = hasher
        self._decision_service = decision_service
        self._bus = bus
        self._rng = rng or random.Random()

        self._fallback = FallbackActionGenerator(self._sched_cfg, self._rng)
        self._reflection = ReflectionEngine(store, bus=bus)
        self._tracker = OutcomeTracker(store, action_bus, bus=bus)
        self._tracker.add_listener(self._on_outcome_recorded)
        self._command_sub = action_bus.subscribe_all(self.on_external_command)

        self._state = SchedulerState()
        self._running = False
        self._stop_requested = False
        self._paused = False
        self._task: Optional["asyncio.Task[None]"] = None

        # Per-dispatch signalling
        self._publishing_autonomous = False
        self._cancelled = False
        self._last_outcome: Optional[OutcomeRecord] = None
        self._outcome_event: Optional[asyncio.Event] = None
        self._interrupt_event: Optional[asyncio.Event] = None

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def phase(self) -> SchedulerPhase:
        return self._state.phase

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def store(self) -> MemoryStore:
        return self._store

    @property
    def reflection(self) -> ReflectionEngine:
        return self._reflection

    @property
    def tracker(self) -> OutcomeTracker:
        return self._tracker

    @property
    def is_publishing_autonomous(self) -> bool:
        return self._publishing_autonomous

    @property
    def is_performing_autonomous_action(self) -> bool:
        return self._state.is_performing()

    def debug_state(self) -> Dict[str, Any]:
        """JSON-safe snapshot for the controller's DUMP_STATE."""
        store = self._store
        with store.lock:
            memory = {
                "episodes": len(store.episodic),
                "skills": len(store.skills),
                "episodes_since_save": store.episodes_since_save,
                "recent_actions": store.episodic.recent_action_names(
                    self._sched_cfg.recent_action_count
                ),
            }
        return {
            **self._state.to_dict(),
            "running": self._running,
            "paused": self._paused,
            "tracker_pending": self._tracker.has_pending,
            "memory": memory,
            "reflection": {
                "actions_since_reflection": self._reflection.actions_since_reflection,
                "accumulated_importance": self._reflection.accumulated_importance,
            },
        }

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """Start the background loop on the running event loop."""
        if self._running:
            return
        self._running = True
        self._stop_requested = False
        self._set_phase(SchedulerPhase.WAITING_IDLE)
        self._task = asyncio.get_running_loop().create_task(self._run_loop())
        logger.info("Idle scheduler started")

    async def stop(self) -> None:
        """Stop the loop, cancel the running action and flush memory."""
        self._running = False
        self._stop_requested = True
        self.cancel_current_action(reason="scheduler stopped")
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._store.close()
        self._set_phase(SchedulerPhase.STOPPED)
        logger.info("Idle scheduler stopped")

    def dispose(self) -> None:
        """Detach from the action bus. The scheduler cannot be restarted afterwards."""
        self._command_sub.dispose()
        self._tracker.dispose()

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    async def _run_loop(self) -> None:
        poll = self._sched_cfg.idle_poll_interval
        while self._running:
            if self._paused:
                await asyncio.sleep(poll)
                continue
            if not await self.wait_for_idle_delay():
                continue
            if self._paused or not self._running:
                continue
            try:
                await self.step()
            except Exception:
                logger.exception("Scheduler cycle crashed; returning to idle wait")
                self._tracker.cancel_tracking()
                self._state.end_cycle()
                await asyncio.sleep(poll)

    # ------------------------------------------------------------------ #
    # Idle wait
    # ------------------------------------------------------------------ #

    def next_idle_delay(self) -> float:
        cfg = self._sched_cfg
        delay = cfg.idle_delay_before_autonomous + self._rng.uniform(
            -cfg.idle_delay_variance, cfg.idle_delay_variance
        )
        return max(cfg.min_idle_delay, delay)

    async def wait_for_idle_delay(self) -> bool:
        """
        Wait until the body is Idle with no autonomous action running, then
        for a randomized delay.

        Returns False if the body left Idle during the delay (or the
        scheduler was stopped / paused), True when the cycle may start.
        """
        poll = self._sched_cfg.idle_poll_interval
        self._set_phase(SchedulerPhase.WAITING_IDLE)

        while not self._stop_requested and (
            self._body.fsm_state != IDLE_STATE or self.is_performing_autonomous_action
        ):
            await asyncio.sleep(poll)
        if self._stop_requested:
            return False

        delay = self.next_idle_delay()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + delay
        # Always suspends at least once, even for a zero delay.
        while True:
            await asyncio.sleep(max(0.0, min(poll, deadline - loop.time())))
            if self._stop_requested or self._paused:
                return False
            if self._body.fsm_state != IDLE_STATE:
                logger.debug("Body left Idle during idle delay; restarting wait")
                return False
            if loop.time() >= deadline:
                return True

    # ------------------------------------------------------------------ #
    # Cycles
    # ------------------------------------------------------------------ #

    async def step(self) -> List[CycleResult]:
        """
        Run one cycle, plus its retry cycle when the first one failed.

        Returns the results in order (empty when the cycle was aborted by
        the race check).
        """
        results: List[CycleResult] = []
        result = await self.run_cycle()
        if result is None:
            return results
        results.append(result)

        if result.retry_scheduled:
            self._set_phase(SchedulerPhase.RETRY_PENDING)
            try:
                await asyncio.sleep(self._sched_cfg.retry_delay)
            finally:
                self._state.retry_pending = False
            if not self._stop_requested:
                retry = await self.run_cycle(failure_context=result.retry_context)
                if retry is not None:
                    results.append(retry)
        return results

    async def run_cycle(self, failure_context: Optional[str] = None) -> Optional[CycleResult]:
        """
        One full decision cycle.

        Returns None when the race check aborted the dispatch, otherwise a
        CycleResult.
        """
        state = self._state
        cycle_id = uuid.uuid4().hex[:12]
        is_retry = failure_context is not None
        state.begin_cycle(cycle_id, is_retry=is_retry)

        self._set_phase(SchedulerPhase.BUILDING_CONTEXT)
        position = self._body.position
        context_hash = self._hasher.build(self._body.fsm_state, position, self._body.game_hour)
        state.context_hash = context_hash

        action, decision, source = await self._choose_action(
            context_hash, position, failure_context, cycle_id
        )
        state.current_action = action
        state.current_decision = decision
        state.source = source

        self._set_phase(SchedulerPhase.DISPATCHING)
        if self._body.fsm_state != IDLE_STATE:
            logger.info("Body left Idle before dispatch of %s; cycle aborted", action.action_name)
            state.current_action = None
            state.end_cycle()
            self._set_phase(SchedulerPhase.WAITING_IDLE)
            return None

        outcome, cancelled = await self._dispatch_and_wait(action, decision, context_hash, position)

        if cancelled:
            log_event(
                bus=self._bus,
                module="autonomy.scheduler",
                event_type=EventType.ACTION_CANCELLED,
                message=f"Autonomous action cancelled: {action.action_name}",
                payload={"action_name": action.action_name, "target": action.target},
                correlation_id=cycle_id,
            )
            result = CycleResult(
                cycle_id=cycle_id,
                context_hash=context_hash,
                source=source,
                action=action,
                decision=decision,
                outcome=outcome,
                cancelled=True,
                is_retry=is_retry,
            )
            state.end_cycle()
            if not self._stop_requested:
                self._set_phase(SchedulerPhase.WAITING_IDLE)
            return result

        assert outcome is not None
        observations = self._after_outcome(outcome)
        retry_context = self._maybe_schedule_retry(outcome, action, is_retry, cycle_id)

        result = CycleResult(
            cycle_id=cycle_id,
            context_hash=context_hash,
            source=source,
            action=action,
            decision=decision,
            outcome=outcome,
            is_retry=is_retry,
            retry_context=retry_context,
            observations=observations,
        )
        state.end_cycle()
        self._set_phase(SchedulerPhase.WAITING_IDLE)
        return result

    # ------------------------------------------------------------------ #
    # Decision pipeline
    # ------------------------------------------------------------------ #

    async def _choose_action(
        self,
        context_hash: str,
        position: Vec3,
        failure_context: Optional[str],
        cycle_id: str,
    ) -> Tuple[AutonomousAction, Optional[Decision], DecisionSource]:
        # Retry cycles always re-query so the failure narrative is seen.
        if failure_context is None:
            skill_decision = self._try_skill(context_hash, cycle_id)
            if skill_decision is not None:
                return (
                    self.action_from_decision(skill_decision, position, from_skill=True),
                    skill_decision,
                    DecisionSource.SKILL,
                )

        if self._decision_cfg.use_decision_service and self._decision_service is not None:
            self._set_phase(SchedulerPhase.QUERYING_DECISION)
            query = self._build_query(context_hash, position, failure_context)
            decision = await self._query_decision(query, cycle_id)
            if decision is not None:
                return self.action_from_decision(decision, position), decision, DecisionSource.DECISION

        action = self._fallback.pick(position)
        logger.info("Fallback action: %s", action.description)
        return action, None, DecisionSource.FALLBACK

    def _try_skill(self, context_hash: str, cycle_id: str) -> Optional[Decision]:
        skills = self._store.skills
        with self._store.lock:
            skill = skills.match(context_hash)
            if skill is None or not skills.should_use_skill(skill):
                return None
            try:
                action_id = ActionId(skill.recommended_action_id)
            except ValueError:
                logger.warning(
                    "Skill %r recommends unknown action id %d; ignoring",
                    skill.situation_pattern,
                    skill.recommended_action_id,
                )
                return None
            decision = Decision(
                action_id=action_id,
                action_name=action_id.decision_name,
                target=skill.target,
                thought="",
                reasoning=f"Trusted skill (success rate {skill.success_rate:.2f} over {skill.use_count} uses)",
                confidence=skill.success_rate,
            )

        self._set_phase(SchedulerPhase.SKILL_HIT)
        logger.info("Skill hit for %s: %s", context_hash, decision.action_name)
        log_event(
            bus=self._bus,
            module="autonomy.scheduler",
            event_type=EventType.SKILL_HIT,
            message=f"Skill hit: {decision.action_name}",
            payload={
                "context_hash": context_hash,
                "action_name": decision.action_name,
                "target": decision.target,
                "success_rate": decision.confidence,
            },
            correlation_id=cycle_id,
        )
        return decision

    def _build_query(
        self,
        context_hash: str,
        position: Vec3,
        failure_context: Optional[str],
    ) -> DecisionQuery:
        store = self._store
        with store.lock:
            memories = store.episodic.retrieve_top_k(context_hash)
            recent = store.episodic.recent_action_names(self._sched_cfg.recent_action_count)
        return DecisionQuery(
            recent_actions=recent,
            retrieved_memories=memories,
            failure_context=failure_context,
            fsm_state=self._body.fsm_state,
            position=position,
            nearby=self._hasher.describe_nearby(position),
            context_hash=context_hash,
        )

    async def _query_decision(self, query: DecisionQuery, cycle_id: str) -> Optional[Decision]:
        """Ask the decision service; None means "fall back"."""
        assert self._decision_service is not None
        cfg = self._decision_cfg
        try:
            decision = await asyncio.wait_for(
                self._decision_service.decide(query),
                timeout=cfg.timeout_seconds,
            )
        except UnmappedActionError as exc:
            self._reject_unmapped(exc.action_name, query, cycle_id)
            return None
        except asyncio.TimeoutError as exc:
            logger.warning("Decision query timed out after %.1fs", cfg.timeout_seconds)
            emit_decision_failure(
                self._bus,
                subtype=DECISION_UNAVAILABLE,
                cycle_id=cycle_id,
                context_hash=query.context_hash,
                error_repr=repr(exc),
                meta={"timeout_s": cfg.timeout_seconds},
            )
            return None
        except Exception as exc:
            logger.warning("Decision query failed: %r", exc)
            emit_decision_failure(
                self._bus,
                subtype=DECISION_UNAVAILABLE,
                cycle_id=cycle_id,
                context_hash=query.context_hash,
                error_repr=repr(exc),
            )
            return None

        if decision is None:
            emit_decision_failure(
                self._bus,
                subtype=DECISION_UNAVAILABLE,
                cycle_id=cycle_id,
                context_hash=query.context_hash,
                error_repr="no decision",
            )
            return None

        mapped = ActionId.from_decision_name(decision.action_name)
        if mapped is None:
            self._reject_unmapped(decision.action_name, query, cycle_id)
            return None

        if decision.confidence < cfg.min_confidence:
            logger.info(
                "Decision %s rejected: confidence %.2f < %.2f",
                decision.action_name,
                decision.confidence,
                cfg.min_confidence,
            )
            emit_decision_failure(
                self._bus,
                subtype=DECISION_LOW_CONFIDENCE,
                cycle_id=cycle_id,
                context_hash=query.context_hash,
                meta={"confidence": decision.confidence, "min_confidence": cfg.min_confidence},
            )
            return None

        if mapped != decision.action_id:
            decision = Decision(
                action_id=mapped,
                action_name=mapped.decision_name,
                target=decision.target,
                thought=decision.thought,
                reasoning=decision.reasoning,
                confidence=decision.confidence,
            )

        log_event(
            bus=self._bus,
            module="autonomy.scheduler",
            event_type=EventType.DECISION_MADE,
            message=f"Decision accepted: {decision.action_name}",
            payload={
                "action_name": decision.action_name,
                "target": decision.target,
                "thought": decision.thought,
                "confidence": decision.confidence,
                "is_retry": query.failure_context is not None,
                "memories": len(query.retrieved_memories),
            },
            correlation_id=cycle_id,
        )
        return decision

    def _reject_unmapped(self, action_name: str, query: DecisionQuery, cycle_id: str) -> None:
        logger.warning("Decision named unknown action %r", action_name)
        emit_decision_failure(
            self._bus,
            subtype=DECISION_UNMAPPED_ACTION,
            cycle_id=cycle_id,
            context_hash=query.context_hash,
            meta={"action_name": action_name},
        )

    def action_from_decision(
        self,
        decision: Decision,
        position: Optional[Vec3] = None,
        *,
        from_skill: bool = False,
    ) -> AutonomousAction:
        """
        Turn an accepted decision (or skill hit) into a dispatchable action.

        Actions whose payload a decision cannot carry (wander destination,
        gaze point, chair) get it from the matching fallback factory. A skill
        replay also takes that factory's duration.
        """
        name = decision.action_id.decision_name
        payload: Dict[str, Any] = {}
        duration = self._sched_cfg.duration_for(name)

        rebuilt = None
        if position is not None:
            rebuilt = self._fallback.create_for(decision.action_id, position, decision.target)
        if rebuilt is not None:
            payload.update(rebuilt.payload)
            if from_skill:
                duration = rebuilt.expected_duration
        if decision.target:
            payload["target"] = decision.target

        return AutonomousAction(
            action_id=decision.action_id,
            payload=payload,
            expected_duration=duration,
            description=f"autonomous {name}" + (f" -> {decision.target}" if decision.target else ""),
            decision=decision,
        )

    # ------------------------------------------------------------------ #
    # Dispatch and outcome
    # ------------------------------------------------------------------ #

    async def _dispatch_and_wait(
        self,
        action: AutonomousAction,
        decision: Optional[Decision],
        context_hash: str,
        position: Vec3,
    ) -> Tuple[Optional[OutcomeRecord], bool]:
        """Publish `action` and wait for its outcome. Returns (outcome, cancelled)."""
        self._cancelled = False
        self._last_outcome = None
        self._outcome_event = asyncio.Event()
        self._interrupt_event = asyncio.Event()

        self._tracker.begin_tracking(
            action, decision, context_hash, position, correlation_id=self._state.cycle_id
        )
        self._publish_self(action.action_id, action.payload)
        log_event(
            bus=self._bus,
            module="autonomy.scheduler",
            event_type=EventType.ACTION_DISPATCHED,
            message=f"Dispatched {action.description}",
            payload={
                "action_name": action.action_name,
                "target": action.target,
                "expected_duration": action.expected_duration,
                "context_hash": context_hash,
            },
            correlation_id=self._state.cycle_id,
        )
        logger.info("Starting: %s", action.description)

        self._set_phase(SchedulerPhase.AWAITING_OUTCOME)
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            await asyncio.wait_for(self._outcome_event.wait(), timeout=action.expected_duration)
        except asyncio.TimeoutError:
            pass

        outcome = self._last_outcome
        if outcome is None and self._cancelled:
            return None, True

        if outcome is None:
            # No external signal within the expected duration.
            outcome = self._tracker.complete_tracking(True)
        assert outcome is not None

        await self._settle_sitting(action.expected_duration - (loop.time() - started))
        return outcome, False

    async def _settle_sitting(self, remaining: float) -> None:
        """
        Keep a seated body seated for the rest of the expected duration, then
        stand it up with a self-issued command.
        """
        if self._body.fsm_state != SITTING_STATE:
            return
        if remaining > 0 and self._interrupt_event is not None:
            try:
                await asyncio.wait_for(self._interrupt_event.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                pass
        if self._cancelled or self._body.fsm_state != SITTING_STATE:
            return
        self._publish_self(ActionId.CHARACTER_STAND_UP, None)

    def _publish_self(self, action_id: ActionId, payload: Any) -> None:
        self._publishing_autonomous = True
        try:
            self._action_bus.publish(action_id, payload, source=SCHEDULER_SOURCE)
        finally:
            self._publishing_autonomous = False

    def _on_outcome_recorded(self, record: OutcomeRecord) -> None:
        self._last_outcome = record
        if self._outcome_event is not None:
            self._outcome_event.set()

    def _after_outcome(self, outcome: OutcomeRecord) -> List[str]:
        """Feed the reflection engine; outcome is already in memory."""
        self._reflection.track_action(outcome.episode.importance)
        if self._reflection.should_reflect():
            return self._reflection.execute_reflection()
        return []

    def _maybe_schedule_retry(
        self,
        outcome: OutcomeRecord,
        action: AutonomousAction,
        is_retry: bool,
        cycle_id: str,
    ) -> Optional[str]:
        if outcome.succeeded:
            return None

        will_retry = (
            self._store.config.enable_failure_retry
            and not self._state.retry_pending
            and not is_retry
        )
        emit_action_failure(
            self._bus,
            cycle_id=cycle_id,
            action_name=action.action_name,
            target=action.target,
            error_repr=outcome.error,
            will_retry=will_retry,
        )
        if not will_retry:
            return None

        self._state.retry_pending = True
        narrative = failure_narrative(action.action_name, action.target, outcome.error)
        logger.info("Scheduling retry: %s", narrative)
        log_event(
            bus=self._bus,
            module="autonomy.scheduler",
            event_type=EventType.RETRY_SCHEDULED,
            message=f"Retry scheduled after {action.action_name} failed",
            payload={"failure_context": narrative, "retry_delay": self._sched_cfg.retry_delay},
            correlation_id=cycle_id,
        )
        return narrative

    # ------------------------------------------------------------------ #
    # Cancellation and control
    # ------------------------------------------------------------------ #

    def on_external_command(self, msg: ActionMessage) -> None:
        """
        Action bus wildcard handler.

        Any character action not published by this scheduler interrupts the
        running autonomous action.
        """
        if self._publishing_autonomous:
            return
        if not msg.action_id.is_character_action:
            return
        if not self.is_performing_autonomous_action:
            return
        self.cancel_current_action(reason=f"external command {msg.action_id.name}")

    def cancel_current_action(self, reason: str = "cancelled") -> bool:
        """
        Drop the running autonomous action: pending tracking is discarded
        and the outcome wait is released without recording an episode.
        """
        if not self.is_performing_autonomous_action:
            return False
        logger.info("Cancelling autonomous action (%s)", reason)
        self._cancelled = True
        self._tracker.cancel_tracking()
        if self._outcome_event is not None:
            self._outcome_event.set()
        if self._interrupt_event is not None:
            self._interrupt_event.set()
        return True

    def force_reflection(self) -> List[str]:
        return self._reflection.execute_reflection()

    def save_memory(self) -> bool:
        return self._store.save()

    # ------------------------------------------------------------------ #
    # Monitoring
    # ------------------------------------------------------------------ #

    def _set_phase(self, phase: SchedulerPhase) -> None:
        previous = self._state.phase
        self._state.phase = phase
        if previous is phase:
            return
        log_event(
            bus=self._bus,
            module="autonomy.scheduler",
            event_type=EventType.SCHEDULER_PHASE_CHANGE,
            message=f"{previous.name} -> {phase.name}",
            payload={"from": previous.name, "to": phase.name},
            correlation_id=self._state.cycle_id,
        )
