# EventBus for monitoring events and control commands
"""
Event bus for the autonomy monitoring layer.

In-process pub/sub with two channels:

- events:   MonitoringEvent objects from the scheduler, memory store,
            reflection engine and outcome tracker. A subscriber may narrow
            what it receives to a set of EventTypes.
- commands: ControlCommand objects from dashboards / scripts, consumed by
            autonomy.controller.SchedulerController.

Delivery is synchronous on the publisher's thread (the scheduler's event
loop in practice), so subscribers must stay cheap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Callable, FrozenSet, Iterable, List, Optional

from .events import ControlCommand, EventType, MonitoringEvent

logger = logging.getLogger(__name__)


# ============================================================
# Type aliases
# ============================================================

SubscriberFn = Callable[[MonitoringEvent], None]
CommandHandlerFn = Callable[[ControlCommand], None]


@dataclass(frozen=True)
class _Subscriber:
    fn: SubscriberFn
    event_types: Optional[FrozenSet[EventType]] = None

    def wants(self, event: MonitoringEvent) -> bool:
        return self.event_types is None or event.event_type in self.event_types


# ============================================================
# Event Bus
# ============================================================

class EventBus:
    """
    Thread-safe in-process bus for monitoring events and control commands.

    Both lists are guarded by one lock; publish() snapshots them and
    delivers without holding it, so subscribers may call back into the bus.
    A raising subscriber is logged and skipped.
    """

    def __init__(self) -> None:
        self._subscribers: List[_Subscriber] = []
        self._cmd_handlers: List[CommandHandlerFn] = []
        self._lock = Lock()
        self._published = 0

    # --------------------------------------------------------
    # Subscription API: Monitoring Events
    # --------------------------------------------------------

    def subscribe(
        self,
        fn: SubscriberFn,
        event_types: Optional[Iterable[EventType]] = None,
    ) -> None:
        """
        Register `fn` for MonitoringEvents.

        With `event_types`, only events of those types are delivered.
        """
        types = frozenset(event_types) if event_types is not None else None
        with self._lock:
            self._subscribers.append(_Subscriber(fn, types))

    def unsubscribe(self, fn: SubscriberFn) -> None:
        """
        Remove every registration of `fn`.

        Safe to call even if `fn` is not present.
        """
        with self._lock:
            self._subscribers = [s for s in self._subscribers if s.fn != fn]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    @property
    def published_count(self) -> int:
        """Number of MonitoringEvents published since construction."""
        return self._published

    # --------------------------------------------------------
    # Subscription API: Control Commands
    # --------------------------------------------------------

    def subscribe_commands(self, fn: CommandHandlerFn) -> None:
        """Register a handler to receive ControlCommand instances."""
        with self._lock:
            self._cmd_handlers.append(fn)

    def unsubscribe_commands(self, fn: CommandHandlerFn) -> None:
        """Remove a ControlCommand handler; no-op when absent."""
        with self._lock:
            if fn in self._cmd_handlers:
                self._cmd_handlers.remove(fn)

    # --------------------------------------------------------
    # Publish API
    # --------------------------------------------------------

    def publish(self, event: MonitoringEvent) -> None:
        """Deliver `event` to every subscriber that wants its type."""
        with self._lock:
            self._published += 1
            targets = [s.fn for s in self._subscribers if s.wants(event)]

        for fn in targets:
            try:
                fn(event)
            except Exception:
                # One bad subscriber must not kill the event stream.
                logger.exception("Monitoring subscriber %r raised on %s", fn, event.event_type.name)

    def publish_command(self, cmd: ControlCommand) -> None:
        """Publish a ControlCommand to all registered command handlers."""
        with self._lock:
            handlers = list(self._cmd_handlers)

        if not handlers:
            logger.warning("Control command %s published with no handler attached", cmd.cmd.name)
        for fn in handlers:
            try:
                fn(cmd)
            except Exception:
                logger.exception("Command handler %r raised on %s", fn, cmd.cmd.name)

    # --------------------------------------------------------
    # Utility
    # --------------------------------------------------------

    def clear(self) -> None:
        """Drop all subscribers and handlers (tests, shutdown)."""
        with self._lock:
            self._subscribers.clear()
            self._cmd_handlers.clear()
