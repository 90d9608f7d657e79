# SchedulerController linking control commands to the idle scheduler
#src/autonomy/controller.py
"""
Control surface for the idle scheduler.

SchedulerController wraps an IdleScheduler-like object and exposes safe
external control via ControlCommand messages on the EventBus.

Supported commands (ControlCommandType):
- PAUSE            -> stop triggering new autonomous cycles
- RESUME           -> allow triggering again
- CANCEL_ACTION    -> drop the running autonomous action
- FORCE_REFLECTION -> run a reflection pass now
- SAVE_MEMORY      -> flush the memory store to disk
- DUMP_STATE       -> emit a debug snapshot as a SNAPSHOT event
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol

from monitoring.bus import EventBus
from monitoring.events import (
    ControlCommand,
    ControlCommandType,
    EventType,
)
from monitoring.logger import log_event

logger = logging.getLogger(__name__)


# ============================================================
# Scheduler interface expected by the controller
# ============================================================

class SchedulerControl(Protocol):
    """
    Minimal protocol describing what the controller expects from the
    scheduler.
    """

    def pause(self) -> None:
        """Stop starting new cycles; a running action finishes normally."""

    def resume(self) -> None:
        """Allow new cycles again."""

    def cancel_current_action(self, reason: str = ...) -> bool:
        """Drop the running autonomous action, if any."""
        ...

    def force_reflection(self) -> List[str]:
        """Run a reflection pass and return its observations."""
        ...

    def save_memory(self) -> bool:
        """Flush memory to disk."""
        ...

    def debug_state(self) -> Dict[str, Any]:
        """Return a JSON-serializable snapshot of internal state."""
        ...


# ============================================================
# Scheduler Controller
# ============================================================

class SchedulerController:
    """
    Control surface for the IdleScheduler.

    - Listens for ControlCommand instances on the EventBus.
    - Forwards pause / resume / cancel / reflection / save into the scheduler.
    - Emits state snapshots as SNAPSHOT events when requested.
    """

    def __init__(self, scheduler: SchedulerControl, bus: EventBus) -> None:
        self._scheduler = scheduler
        self._bus = bus
        self._paused: bool = False

        # Subscribe to control commands
        self._bus.subscribe_commands(self._handle_command)

    def close(self) -> None:
        self._bus.unsubscribe_commands(self._handle_command)

    # --------------------------------------------------------
    # Command handling
    # --------------------------------------------------------

    def _handle_command(self, cmd: ControlCommand) -> None:
        """
        Process an incoming ControlCommand from dashboards, CLIs, or scripts.
        """
        if cmd.cmd == ControlCommandType.PAUSE:
            self._scheduler.pause()
            self._paused = True
            self._log_control("PAUSE", {"paused": True})

        elif cmd.cmd == ControlCommandType.RESUME:
            self._scheduler.resume()
            self._paused = False
            self._log_control("RESUME", {"paused": False})

        elif cmd.cmd == ControlCommandType.CANCEL_ACTION:
            reason = str(cmd.args.get("reason", "control command"))
            cancelled = self._scheduler.cancel_current_action(reason=reason)
            self._log_control("CANCEL_ACTION", {"cancelled": cancelled})

        elif cmd.cmd == ControlCommandType.FORCE_REFLECTION:
            observations = self._scheduler.force_reflection()
            self._log_control("FORCE_REFLECTION", {"observations": observations})

        elif cmd.cmd == ControlCommandType.SAVE_MEMORY:
            saved = self._scheduler.save_memory()
            self._log_control("SAVE_MEMORY", {"saved": saved})

        elif cmd.cmd == ControlCommandType.DUMP_STATE:
            state = self._safe_debug_state()
            self._log_snapshot(state)

    # --------------------------------------------------------
    # Introspection helpers (for tests / tooling)
    # --------------------------------------------------------

    @property
    def paused(self) -> bool:
        """Return whether the controller has paused the scheduler."""
        return self._paused

    # --------------------------------------------------------
    # Logging helpers
    # --------------------------------------------------------

    def _log_control(self, cmd_name: str, payload: Dict[str, Any]) -> None:
        """
        Emit a CONTROL_COMMAND monitoring event describing a control action.
        """
        log_event(
            bus=self._bus,
            module="autonomy.controller",
            event_type=EventType.CONTROL_COMMAND,
            message=f"Control command: {cmd_name}",
            payload={"cmd": cmd_name, **payload},
            correlation_id=None,
        )

    def _log_snapshot(self, state: Dict[str, Any]) -> None:
        """
        Emit a SNAPSHOT monitoring event containing debug state.
        """
        log_event(
            bus=self._bus,
            module="autonomy.controller",
            event_type=EventType.SNAPSHOT,
            message="Scheduler state snapshot",
            payload={"state": state},
            correlation_id=None,
        )

    def _safe_debug_state(self) -> Dict[str, Any]:
        """
        Call scheduler.debug_state(); a failure becomes an error snapshot
        instead of propagating into the command publisher.
        """
        try:
            return self._scheduler.debug_state()
        except Exception as exc:
            logger.exception("debug_state() failed")
            return {
                "error": "debug_state_failed",
                "details": repr(exc),
            }
