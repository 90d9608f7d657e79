# src/actions/bus.py
"""
In-process action bus.

The scheduler publishes action requests (ActionId + payload) and observes
lifecycle signals (AGENT_ACTION_COMPLETED / AGENT_ACTION_FAILED) on this bus.
The character layer subscribes to the character action ids and publishes the
lifecycle signals back.

Compared with monitoring.bus.EventBus, handlers are keyed by ActionId and
every subscription returns a Subscription handle that can be disposed.
A wildcard subscription (`subscribe_all`) sees every message; the scheduler
uses it to notice externally issued commands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from contracts.types import ActionId

logger = logging.getLogger(__name__)


# ============================================================
# Messages
# ============================================================

@dataclass(frozen=True)
class ActionMessage:
    """
    One message on the action bus.

    Fields:
      - action_id: what is requested / signalled
      - payload:   action-specific data (destination, chair number, an
                   ActionLifecycle for completion signals, ...)
      - source:    free-form origin label ("scheduler", "router", "ui", ...)
    """

    action_id: ActionId
    payload: Any = None
    source: str = ""

    def payload_as(self, kind: type) -> Optional[Any]:
        """Return the payload when it is an instance of `kind`, else None."""
        return self.payload if isinstance(self.payload, kind) else None


ActionHandlerFn = Callable[[ActionMessage], None]


@dataclass
class Subscription:
    """Disposable handle returned by ActionBus.subscribe*."""

    _bus: "ActionBus"
    _key: Optional[ActionId]
    _fn: ActionHandlerFn
    _active: bool = field(default=True)

    @property
    def active(self) -> bool:
        return self._active

    def dispose(self) -> None:
        """Remove the handler. Safe to call more than once."""
        if self._active:
            self._bus._remove(self._key, self._fn)
            self._active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.dispose()


# ============================================================
# Action Bus
# ============================================================

class ActionBus:
    """
    Thread-safe pub/sub keyed by ActionId.

    Delivery is synchronous, in subscription order, on the publisher's
    thread. Handler exceptions are logged and do not stop delivery.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Optional[ActionId], List[ActionHandlerFn]] = {}
        self._lock = Lock()

    # --------------------------------------------------------
    # Subscription API
    # --------------------------------------------------------

    def subscribe(self, action_id: ActionId, fn: ActionHandlerFn) -> Subscription:
        """Register `fn` for messages carrying `action_id`."""
        with self._lock:
            self._handlers.setdefault(action_id, []).append(fn)
        return Subscription(self, action_id, fn)

    def subscribe_all(self, fn: ActionHandlerFn) -> Subscription:
        """Register `fn` for every message regardless of action id."""
        with self._lock:
            self._handlers.setdefault(None, []).append(fn)
        return Subscription(self, None, fn)

    def _remove(self, key: Optional[ActionId], fn: ActionHandlerFn) -> None:
        with self._lock:
            handlers = self._handlers.get(key)
            if handlers and fn in handlers:
                handlers.remove(fn)

    # --------------------------------------------------------
    # Publish API
    # --------------------------------------------------------

    def publish(
        self,
        action_id: ActionId,
        payload: Any = None,
        *,
        source: str = "",
    ) -> ActionMessage:
        """
        Publish a message and return it.

        Keyed handlers run first, then wildcard handlers.
        """
        msg = ActionMessage(action_id=action_id, payload=payload, source=source)
        with self._lock:
            targets = list(self._handlers.get(action_id, ())) + list(self._handlers.get(None, ()))

        for fn in targets:
            try:
                fn(msg)
            except Exception:
                logger.exception("Action handler %r raised for %s", fn, action_id.name)
        return msg

    def handler_count(self, action_id: Optional[ActionId] = None) -> int:
        """Number of handlers registered for `action_id` (None = wildcard)."""
        with self._lock:
            return len(self._handlers.get(action_id, ()))
