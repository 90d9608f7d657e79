#"src/autonomy/state.py"

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, Optional

from contracts.types import AutonomousAction, Decision


class SchedulerPhase(Enum):
    """
    Phases of the idle scheduler state machine.

    A typical cycle moves through:

        WAITING_IDLE -> BUILDING_CONTEXT -> {SKILL_HIT | QUERYING_DECISION}
            -> DISPATCHING -> AWAITING_OUTCOME -> (RETRY_PENDING) -> WAITING_IDLE

    STOPPED is terminal until start() is called again.
    """

    WAITING_IDLE = auto()
    BUILDING_CONTEXT = auto()
    SKILL_HIT = auto()
    QUERYING_DECISION = auto()
    DISPATCHING = auto()
    AWAITING_OUTCOME = auto()
    RETRY_PENDING = auto()
    STOPPED = auto()


class DecisionSource(Enum):
    """Where the dispatched action of a cycle came from."""

    SKILL = "skill"
    DECISION = "decision"
    FALLBACK = "fallback"


@dataclass
class SchedulerState:
    """
    Mutable state of the scheduler between and during cycles.

    Fields
    ------
    phase:
        Current SchedulerPhase.
    cycle_id:
        Correlation id of the running cycle (None between cycles).
    context_hash:
        Fingerprint computed by the current cycle.
    current_action / current_decision / source:
        What is being dispatched or awaited, and where it came from.
    is_retry:
        True while the running cycle is the ReAct retry of a failed action.
    retry_pending:
        True between a failed outcome and the start of its retry cycle.
    cycles_completed:
        Count of cycles that reached an outcome (recorded or cancelled).
    """

    phase: SchedulerPhase = SchedulerPhase.STOPPED
    cycle_id: Optional[str] = None
    context_hash: str = ""
    current_action: Optional[AutonomousAction] = None
    current_decision: Optional[Decision] = None
    source: Optional[DecisionSource] = None
    is_retry: bool = False
    retry_pending: bool = False
    cycles_completed: int = 0

    def begin_cycle(self, cycle_id: str, *, is_retry: bool) -> None:
        self.cycle_id = cycle_id
        self.is_retry = is_retry
        self.context_hash = ""
        self.current_action = None
        self.current_decision = None
        self.source = None

    def end_cycle(self) -> None:
        self.cycle_id = None
        self.current_action = None
        self.current_decision = None
        self.source = None
        self.is_retry = False
        self.cycles_completed += 1

    def is_performing(self) -> bool:
        """True while an autonomous action is dispatched and not yet resolved."""
        return self.current_action is not None and self.phase in (
            SchedulerPhase.DISPATCHING,
            SchedulerPhase.AWAITING_OUTCOME,
        )

    def to_dict(self) -> Dict[str, Any]:
        action = self.current_action
        return {
            "phase": self.phase.name,
            "cycle_id": self.cycle_id,
            "context_hash": self.context_hash,
            "current_action": None
            if action is None
            else {
                "action_name": action.action_name,
                "target": action.target,
                "expected_duration": action.expected_duration,
                "description": action.description,
            },
            "source": self.source.value if self.source is not None else None,
            "is_retry": self.is_retry,
            "retry_pending": self.retry_pending,
            "cycles_completed": self.cycles_completed,
        }
