# rich-based TUI dashboard
#src/monitoring/dashboard_tui.py
"""
TUI dashboard for the autonomy core.

A lightweight terminal UI (using `rich`) that subscribes to the monitoring
EventBus and renders:

- Scheduler status:
    - Phase
    - Current cycle id
    - Last dispatched action

- Decisions:
    - Last accepted decision (action, target, thought, confidence)
    - Skill hits / decisions / rejections counters

- Outcomes:
    - Success / failure counts
    - Last failure and whether a retry was scheduled

- Memory:
    - Last reflection observations
    - Skills pruned, last save

This runs entirely offline. No web server, no external services.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .bus import EventBus
from .events import CYCLE_EVENTS, MEMORY_EVENTS, EventType, MonitoringEvent


# ============================================================
# TUI Dashboard
# ============================================================

class TuiDashboard:
    """
    Live terminal dashboard bound to a monitoring.EventBus.

    It consumes MonitoringEvents and keeps a small in-memory state
    representation, which is rendered periodically via rich.
    """

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._console = Console()

        # Internal state snapshot for display
        self._state: Dict[str, Any] = {
            "phase": "STOPPED",
            "cycle_id": None,
            "last_action": None,
            "last_decision": None,
            "counters": {
                "skill_hits": 0,
                "decisions": 0,
                "rejections": 0,
                "successes": 0,
                "failures": 0,
                "retries": 0,
                "cancelled": 0,
            },
            "last_failure": None,
            "observations": [],
            "skills_pruned": 0,
            "last_save": None,
        }

        self._bus.subscribe(self._on_event, event_types=CYCLE_EVENTS | MEMORY_EVENTS)

    @property
    def state(self) -> Dict[str, Any]:
        return self._state

    def close(self) -> None:
        self._bus.unsubscribe(self._on_event)

    # --------------------------------------------------------
    # Event handler
    # --------------------------------------------------------

    def _on_event(self, event: MonitoringEvent) -> None:
        """
        Update dashboard state based on a MonitoringEvent.
        This should be cheap and non-blocking.
        """
        et = event.event_type
        payload = event.payload or {}
        counters = self._state["counters"]

        if et == EventType.SCHEDULER_PHASE_CHANGE:
            self._state["phase"] = payload.get("to", "UNKNOWN")
            self._state["cycle_id"] = event.correlation_id

        elif et == EventType.SKILL_HIT:
            counters["skill_hits"] += 1

        elif et == EventType.DECISION_MADE:
            counters["decisions"] += 1
            self._state["last_decision"] = {
                "action_name": payload.get("action_name"),
                "target": payload.get("target"),
                "thought": payload.get("thought", ""),
                "confidence": payload.get("confidence"),
            }

        elif et == EventType.DECISION_REJECTED:
            counters["rejections"] += 1

        elif et == EventType.ACTION_DISPATCHED:
            self._state["last_action"] = {
                "action_name": payload.get("action_name"),
                "target": payload.get("target"),
                "expected_duration": payload.get("expected_duration"),
            }

        elif et == EventType.ACTION_CANCELLED:
            counters["cancelled"] += 1

        elif et == EventType.OUTCOME_RECORDED:
            if payload.get("succeeded"):
                counters["successes"] += 1
            else:
                counters["failures"] += 1
                self._state["last_failure"] = {
                    "action_name": payload.get("action_name"),
                    "error": payload.get("error"),
                    "retry": False,
                }

        elif et == EventType.RETRY_SCHEDULED:
            counters["retries"] += 1
            if self._state["last_failure"] is not None:
                self._state["last_failure"]["retry"] = True

        elif et == EventType.REFLECTION_COMPLETED:
            self._state["observations"] = list(payload.get("observations") or [])

        elif et == EventType.SKILLS_PRUNED:
            self._state["skills_pruned"] += int(payload.get("pruned", 0))

        elif et == EventType.MEMORY_SAVED:
            self._state["last_save"] = {
                "ts": event.ts,
                "episodes": payload.get("episodes"),
                "skills": payload.get("skills"),
            }

    # --------------------------------------------------------
    # Rendering helpers
    # --------------------------------------------------------

    def _render_status_panel(self) -> Panel:
        """
        Top: scheduler phase + cycle id + last dispatched action.
        """
        action = self._state["last_action"] or {}
        action_str = "<none>"
        if action:
            action_str = str(action.get("action_name"))
            if action.get("target"):
                action_str += f" -> {action['target']}"

        txt = Text()
        txt.append("Phase: ", style="bold")
        txt.append(f"{self._state['phase']}\n")
        txt.append("Cycle: ", style="bold")
        txt.append(f"{self._state['cycle_id'] or '<none>'}\n")
        txt.append("Last action: ", style="bold")
        txt.append(f"{action_str}\n")

        return Panel(txt, title="Scheduler", border_style="cyan")

    def _render_decision_panel(self) -> Panel:
        """
        Middle-left: last decision + decision pipeline counters.
        """
        decision = self._state["last_decision"]
        counters = self._state["counters"]

        table = Table.grid(pad_edge=False)
        table.add_column(justify="left")

        if decision:
            table.add_row(f"[bold]Action:[/bold] {decision.get('action_name')}")
            table.add_row(f"[bold]Target:[/bold] {decision.get('target') or '<none>'}")
            table.add_row(f"[bold]Confidence:[/bold] {decision.get('confidence')}")
            thought = decision.get("thought") or ""
            if thought:
                table.add_row(f"[italic]{thought}[/italic]")
        else:
            table.add_row("[bold]No decision yet[/bold]")

        table.add_row("")
        table.add_row(
            f"skill hits={counters['skill_hits']}  "
            f"decisions={counters['decisions']}  "
            f"rejected={counters['rejections']}"
        )
        return Panel(table, title="Decisions", border_style="green")

    def _render_outcome_panel(self) -> Panel:
        """
        Middle-center: outcome counters + last failure.
        """
        counters = self._state["counters"]
        failure = self._state["last_failure"]

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Outcome", style="bold", width=12)
        table.add_column("Count", justify="right")
        table.add_row("success", str(counters["successes"]))
        table.add_row("failure", str(counters["failures"]))
        table.add_row("retried", str(counters["retries"]))
        table.add_row("cancelled", str(counters["cancelled"]))

        footer_text = Text()
        if failure:
            footer_text.append(
                f"Last failure: {failure.get('action_name')} ({failure.get('error') or 'no reason'})"
            )
        else:
            footer_text.append("No failures recorded")

        return Panel(
            table,
            title="Outcomes",
            subtitle=footer_text,
            border_style="magenta",
        )

    def _render_memory_panel(self) -> Panel:
        """
        Middle-right: reflection observations, pruning, last save.
        """
        observations: List[str] = self._state["observations"]
        last_save = self._state["last_save"]

        table = Table.grid()
        table.add_column(justify="left")

        if observations:
            table.add_row("[bold]Reflection:[/bold]")
            for line in observations[:4]:
                table.add_row(f"- {line}")
        else:
            table.add_row("[bold]Reflection:[/bold] <none yet>")

        table.add_row("")
        table.add_row(f"[bold]Skills pruned:[/bold] {self._state['skills_pruned']}")
        if last_save:
            saved_at = time.strftime("%H:%M:%S", time.localtime(last_save["ts"]))
            table.add_row(
                f"[bold]Saved:[/bold] {saved_at} "
                f"({last_save.get('episodes')} episodes, {last_save.get('skills')} skills)"
            )
        else:
            table.add_row("[bold]Saved:[/bold] never")

        return Panel(table, title="Memory", border_style="yellow")

    def build_layout(self) -> Layout:
        """
        Construct the overall layout for the dashboard.
        """
        layout = Layout()

        layout.split(
            Layout(name="top", size=5),
            Layout(name="middle", ratio=1),
        )

        layout["top"].update(self._render_status_panel())

        # Middle row: decisions | outcomes | memory
        layout["middle"].split_row(
            Layout(name="decisions"),
            Layout(name="outcomes"),
            Layout(name="memory"),
        )
        layout["decisions"].update(self._render_decision_panel())
        layout["outcomes"].update(self._render_outcome_panel())
        layout["memory"].update(self._render_memory_panel())

        return layout

    # --------------------------------------------------------
    # Main loop
    # --------------------------------------------------------

    def run(self, refresh_per_second: float = 4.0) -> None:
        """
        Run the TUI event loop.

        This blocks the current thread. Use a separate thread if needed.
        """
        refresh_delay = 1.0 / max(refresh_per_second, 0.1)
        with Live(self.build_layout(), console=self._console, refresh_per_second=refresh_per_second) as live:
            while True:
                live.update(self.build_layout())
                time.sleep(refresh_delay)
