#tests/test_monitoring_logger.py
"""
Tests for monitoring.logger.JsonFileLogger and log_event.

Covers:
- one JSON object per line, fields encoded as the loader expects
- type-filtered sinks
- close() is idempotent and stops writing
- log_event without a bus
"""

from __future__ import annotations

import json
from pathlib import Path

from monitoring.bus import EventBus
from monitoring.events import MEMORY_EVENTS, EventType, MonitoringEvent
from monitoring.logger import JsonFileLogger, log_event


def test_writes_one_json_object_per_event(tmp_path: Path):
    bus = EventBus()
    log_path = tmp_path / "nested" / "logs" / "events.log"

    with JsonFileLogger(log_path, bus) as sink:
        log_event(
            bus=bus,
            module="autonomy.scheduler",
            event_type=EventType.DECISION_MADE,
            message="Decision accepted",
            payload={"action_name": "Wave", "confidence": 0.9},
            correlation_id="cycle-7",
        )
        log_event(bus, "memory.store", EventType.MEMORY_SAVED, "saved", {"episodes": 4})
        assert sink.written == 2

    lines = log_path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2

    first = json.loads(lines[0])
    assert first["module"] == "autonomy.scheduler"
    assert first["event_type"] == "DECISION_MADE"
    assert first["payload"] == {"action_name": "Wave", "confidence": 0.9}
    assert first["correlation_id"] == "cycle-7"
    assert isinstance(first["ts"], float)

    restored = MonitoringEvent.from_dict(json.loads(lines[1]))
    assert restored.event_type == EventType.MEMORY_SAVED
    assert restored.correlation_id is None


def test_filtered_sink(tmp_path: Path):
    bus = EventBus()
    sink = JsonFileLogger(tmp_path / "memory.log", bus, event_types=MEMORY_EVENTS)

    log_event(bus, "autonomy.scheduler", EventType.ACTION_DISPATCHED, "go", {})
    log_event(bus, "memory.reflection", EventType.REFLECTION_COMPLETED, "done", {"observations": []})
    sink.close()

    rows = [json.loads(l) for l in sink.path.read_text(encoding="utf-8").splitlines()]
    assert [r["event_type"] for r in rows] == ["REFLECTION_COMPLETED"]


def test_close_is_idempotent_and_detaches(tmp_path: Path):
    bus = EventBus()
    sink = JsonFileLogger(tmp_path / "events.log", bus)
    sink.close()
    sink.close()

    assert bus.subscriber_count == 0
    log_event(bus, "autonomy.scheduler", EventType.LOG, "late", {})
    assert sink.written == 0
    assert sink.path.read_text(encoding="utf-8") == ""


def test_appends_to_existing_log(tmp_path: Path):
    path = tmp_path / "events.log"
    for _ in range(2):
        bus = EventBus()
        with JsonFileLogger(path, bus):
            log_event(bus, "autonomy.scheduler", EventType.LOG, "boot", {})

    assert len(path.read_text(encoding="utf-8").splitlines()) == 2


def test_log_event_without_bus_is_noop():
    log_event(None, "autonomy.scheduler", EventType.LOG, "nobody listening")
