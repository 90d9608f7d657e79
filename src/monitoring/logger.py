# JSONL event sink and the log_event helper
"""
Structured event logging for the autonomy core.

Every component publishes through log_event(); JsonFileLogger is the
sink that persists the stream, one JSON object per line, for
monitoring.tools to read back.

Usage:

    bus = EventBus()
    sink = JsonFileLogger(Path("logs/autonomy/events.log"), bus)

    log_event(
        bus=bus,
        module="autonomy.scheduler",
        event_type=EventType.DECISION_MADE,
        message="Decision accepted",
        payload={"action": "Wave"},
    )
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from .bus import EventBus
from .events import EventType, MonitoringEvent

logger = logging.getLogger(__name__)


# ============================================================
# JSONL File Logger
# ============================================================

class JsonFileLogger:
    """
    JSON-lines sink for MonitoringEvent instances.

    Opens `path` in append mode (creating parent directories) and writes one
    object per line, flushed per event so a crashed host still leaves a
    readable log. `event_types` narrows the subscription.
    """

    def __init__(
        self,
        path: Path,
        bus: EventBus,
        event_types: Optional[Iterable[EventType]] = None,
    ) -> None:
        self._path = path
        self._bus = bus
        self._written = 0
        self._dropped = 0
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file = path.open("a", encoding="utf-8")
        bus.subscribe(self._on_event, event_types=event_types)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def written(self) -> int:
        return self._written

    @property
    def dropped(self) -> int:
        return self._dropped

    def _on_event(self, event: MonitoringEvent) -> None:
        if self._file.closed:
            self._dropped += 1
            return
        line = json.dumps(event.to_dict(), ensure_ascii=False, default=str)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except OSError as exc:
            # Event logging must not crash the scheduler.
            self._dropped += 1
            logger.warning("Dropping monitoring event, write to %s failed: %r", self._path, exc)
            return
        self._written += 1

    def close(self) -> None:
        """Unsubscribe and close the underlying file handle. Idempotent."""
        self._bus.unsubscribe(self._on_event)
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "JsonFileLogger":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


# ============================================================
# Publishing helper
# ============================================================

def log_event(
    bus: Optional[EventBus],
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Create and publish a MonitoringEvent.

    Components hold an optional bus; passing None makes this a no-op so
    unit tests and embedded hosts can run without monitoring.

    `module` names the emitting module ("autonomy.scheduler", "memory.store");
    `payload` must be JSON-safe; `correlation_id` ties together the events
    of one decision cycle.
    """
    if bus is None:
        return
    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)
