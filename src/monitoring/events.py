# path: src/monitoring/events.py
"""
Event and command schemas for the autonomy monitoring layer.

Events flow one way (components -> EventBus -> sinks such as
JsonFileLogger and TuiDashboard); ControlCommands flow the other way
(dashboards / scripts -> EventBus -> SchedulerController).

MonitoringEvent.to_dict() and from_dict() define the JSONL line format.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the scheduler and memory layer."""

    # Scheduler state machine transitions
    SCHEDULER_PHASE_CHANGE = auto()

    # Decision pipeline
    DECISION_MADE = auto()
    DECISION_REJECTED = auto()
    SKILL_HIT = auto()

    # Action lifecycle as seen by the scheduler
    ACTION_DISPATCHED = auto()
    ACTION_CANCELLED = auto()
    OUTCOME_RECORDED = auto()
    RETRY_SCHEDULED = auto()

    # Memory maintenance
    REFLECTION_COMPLETED = auto()
    SKILLS_PRUNED = auto()
    MEMORY_SAVED = auto()

    # Control surface
    CONTROL_COMMAND = auto()
    SNAPSHOT = auto()

    # Generic log messages (failure subtypes live in payload["subtype"])
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the scheduler, memory store, reflection engine,
    outcome tracker or the control surface.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("autonomy.scheduler", ...)
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (decision, action, counters)
    correlation_id: Optional[str] = None  # Groups events of one decision cycle

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonitoringEvent":
        """
        Inverse of to_dict().

        Raises KeyError for a missing or unknown event_type name.
        """
        return cls(
            ts=float(data.get("ts", 0.0)),
            module=data.get("module", ""),
            event_type=EventType[data["event_type"]],
            message=data.get("message", ""),
            payload=data.get("payload") or {},
            correlation_id=data.get("correlation_id"),
        )


# Event groups used by subscribers that only care about one slice of the stream.
CYCLE_EVENTS = frozenset(
    {
        EventType.SCHEDULER_PHASE_CHANGE,
        EventType.DECISION_MADE,
        EventType.DECISION_REJECTED,
        EventType.SKILL_HIT,
        EventType.ACTION_DISPATCHED,
        EventType.ACTION_CANCELLED,
        EventType.OUTCOME_RECORDED,
        EventType.RETRY_SCHEDULED,
    }
)
MEMORY_EVENTS = frozenset(
    {EventType.REFLECTION_COMPLETED, EventType.SKILLS_PRUNED, EventType.MEMORY_SAVED}
)


# ============================================================
# Control Commands
# ============================================================

class ControlCommandType(Enum):
    """
    Commands that humans or tools can send to steer the scheduler.
    """

    PAUSE = auto()             # Stop triggering new autonomous actions
    RESUME = auto()            # Allow triggering again
    CANCEL_ACTION = auto()     # Drop the running autonomous action
    FORCE_REFLECTION = auto()  # Run a reflection pass now
    SAVE_MEMORY = auto()       # Flush the memory store to disk
    DUMP_STATE = auto()        # Emit a full snapshot event


@dataclass
class ControlCommand:
    """
    Represents an external command for the scheduler.

    Sent through EventBus.publish_command(), then interpreted by
    autonomy.controller.SchedulerController.
    """

    cmd: ControlCommandType
    args: Dict[str, Any]

    @staticmethod
    def pause() -> "ControlCommand":
        return ControlCommand(ControlCommandType.PAUSE, {})

    @staticmethod
    def resume() -> "ControlCommand":
        return ControlCommand(ControlCommandType.RESUME, {})

    @staticmethod
    def cancel_action(reason: Optional[str] = None) -> "ControlCommand":
        args = {"reason": reason} if reason else {}
        return ControlCommand(ControlCommandType.CANCEL_ACTION, args)

    @staticmethod
    def force_reflection() -> "ControlCommand":
        return ControlCommand(ControlCommandType.FORCE_REFLECTION, {})

    @staticmethod
    def save_memory() -> "ControlCommand":
        return ControlCommand(ControlCommandType.SAVE_MEMORY, {})

    @staticmethod
    def dump_state() -> "ControlCommand":
        return ControlCommand(ControlCommandType.DUMP_STATE, {})
