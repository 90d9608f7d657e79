#tests/test_monitoring_dashboard_tui.py
"""
Smoke tests for monitoring.dashboard_tui.TuiDashboard.

Covers:
- Layout builds cleanly
- Event updates patch internal state
- Rendering functions do not crash
"""

from __future__ import annotations

from rich.console import Console

from monitoring.bus import EventBus
from monitoring.dashboard_tui import TuiDashboard
from monitoring.events import EventType, MonitoringEvent


def make_event(event_type: EventType, payload: dict, correlation_id: str = None) -> MonitoringEvent:
    return MonitoringEvent(
        ts=0.0,
        module="test",
        event_type=event_type,
        message="",
        payload=payload,
        correlation_id=correlation_id,
    )


def test_dashboard_handles_cycle_events_and_renders():
    bus = EventBus()
    dashboard = TuiDashboard(bus)

    # Phase change
    bus.publish(
        make_event(
            EventType.SCHEDULER_PHASE_CHANGE,
            {"from": "WAITING_IDLE", "to": "QUERYING_DECISION"},
            correlation_id="c1",
        )
    )

    # Decision accepted
    bus.publish(
        make_event(
            EventType.DECISION_MADE,
            {
                "action_name": "Wave",
                "target": "visitor",
                "thought": "Hello there!",
                "confidence": 0.9,
            },
        )
    )

    # Dispatched
    bus.publish(
        make_event(
            EventType.ACTION_DISPATCHED,
            {"action_name": "Wave", "target": "visitor", "expected_duration": 5.0},
        )
    )

    # Failed, then retried
    bus.publish(
        make_event(
            EventType.OUTCOME_RECORDED,
            {"action_name": "Wave", "succeeded": False, "error": "nobody there"},
        )
    )
    bus.publish(make_event(EventType.RETRY_SCHEDULED, {"failure_context": "..."}))

    # Memory housekeeping
    bus.publish(make_event(EventType.REFLECTION_COMPLETED, {"observations": ["I tend to Wave frequently."]}))
    bus.publish(make_event(EventType.SKILLS_PRUNED, {"pruned": 2}))
    bus.publish(make_event(EventType.MEMORY_SAVED, {"episodes": 12, "skills": 3}))

    state = dashboard.state
    assert state["phase"] == "QUERYING_DECISION"
    assert state["cycle_id"] == "c1"
    assert state["last_decision"]["thought"] == "Hello there!"
    assert state["last_action"]["target"] == "visitor"
    assert state["counters"]["decisions"] == 1
    assert state["counters"]["failures"] == 1
    assert state["counters"]["retries"] == 1
    assert state["last_failure"] == {"action_name": "Wave", "error": "nobody there", "retry": True}
    assert state["observations"] == ["I tend to Wave frequently."]
    assert state["skills_pruned"] == 2
    assert state["last_save"]["episodes"] == 12

    # Now try building the layout; it should not throw.
    layout = dashboard.build_layout()
    assert layout is not None

    console = Console(width=120, record=True)
    console.print(layout, height=20)
    assert "QUERYING_DECISION" in console.export_text()


def test_dashboard_counts_skill_hits_rejections_and_cancels():
    bus = EventBus()
    dashboard = TuiDashboard(bus)

    bus.publish(make_event(EventType.SKILL_HIT, {"action_name": "Lean", "success_rate": 0.8}))
    bus.publish(make_event(EventType.DECISION_REJECTED, {"subtype": "DECISION_LOW_CONFIDENCE"}))
    bus.publish(make_event(EventType.ACTION_CANCELLED, {"action_name": "Lean"}))
    bus.publish(make_event(EventType.OUTCOME_RECORDED, {"action_name": "Lean", "succeeded": True}))

    counters = dashboard.state["counters"]
    assert counters["skill_hits"] == 1
    assert counters["rejections"] == 1
    assert counters["cancelled"] == 1
    assert counters["successes"] == 1
    assert dashboard.state["last_failure"] is None


def test_dashboard_renders_empty_state_and_detaches():
    bus = EventBus()
    dashboard = TuiDashboard(bus)

    assert dashboard.build_layout() is not None

    dashboard.close()
    bus.publish(make_event(EventType.SKILL_HIT, {}))
    assert dashboard.state["counters"]["skill_hits"] == 0
