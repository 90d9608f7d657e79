#src/monitoring/tools.py
"""
Human-facing utilities for the autonomy monitoring layer.

Provides:

- Cycle inspector:
    - Load the last N decision cycles from the monitoring JSONL log.
    - Summarize phases, decision source, action, outcome and retry.

- LLM log viewer:
    - Filter per-call LLM logs by:
        - role (decision)
        - operation (decide)
        - context_hash

- Dashboard:
    - Replay a JSONL event log into the rich TUI once and print it.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .bus import EventBus
from .events import EventType, MonitoringEvent

logger = logging.getLogger(__name__)

JsonDict = Dict[str, Any]


# ============================================================
# Cycle inspector
# ============================================================

@dataclass
class CycleSummary:
    """
    Human-friendly summary of one decision cycle reconstructed from logs.
    """
    cycle_id: str
    phase_sequence: List[str] = field(default_factory=list)
    source: Optional[str] = None
    action_name: Optional[str] = None
    target: Optional[str] = None
    thought: Optional[str] = None
    confidence: Optional[float] = None
    rejections: List[str] = field(default_factory=list)
    succeeded: Optional[bool] = None
    error: Optional[str] = None
    cancelled: bool = False
    retry_scheduled: bool = False
    started_at: float = 0.0
    ended_at: float = 0.0

    def to_dict(self) -> JsonDict:
        return asdict(self)


def load_events_from_jsonl(path: Path) -> List[MonitoringEvent]:
    """
    Load MonitoringEvents from a JSONL file produced by JsonFileLogger.

    Unparseable lines and unknown event types are skipped.
    """
    if not path.exists():
        return []

    events: List[MonitoringEvent] = []
    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed line %d in %s", lineno, path)
                continue

            try:
                events.append(MonitoringEvent.from_dict(data))
            except (KeyError, TypeError, ValueError):
                logger.debug("Skipping unknown event on line %d in %s", lineno, path)
    return events


def group_events_by_cycle(events: Iterable[MonitoringEvent]) -> Dict[str, List[MonitoringEvent]]:
    """Group events by correlation_id; events with no cycle are ignored."""
    grouped: Dict[str, List[MonitoringEvent]] = {}
    for evt in events:
        if not evt.correlation_id:
            continue
        grouped.setdefault(evt.correlation_id, []).append(evt)
    return grouped


def build_cycle_summary(cycle_id: str, events: List[MonitoringEvent]) -> CycleSummary:
    """
    Derive a CycleSummary from the events of one cycle.
    """
    summary = CycleSummary(cycle_id=cycle_id)
    if events:
        summary.started_at = min(e.ts for e in events)
        summary.ended_at = max(e.ts for e in events)

    for evt in events:
        payload = evt.payload or {}
        et = evt.event_type

        if et == EventType.SCHEDULER_PHASE_CHANGE:
            phase = payload.get("to")
            if phase:
                summary.phase_sequence.append(phase)

        elif et == EventType.SKILL_HIT:
            summary.source = "skill"
            summary.action_name = payload.get("action_name", summary.action_name)
            summary.target = payload.get("target", summary.target)
            summary.confidence = payload.get("success_rate", summary.confidence)

        elif et == EventType.DECISION_MADE:
            summary.source = "decision"
            summary.action_name = payload.get("action_name", summary.action_name)
            summary.target = payload.get("target", summary.target)
            summary.thought = payload.get("thought", summary.thought)
            summary.confidence = payload.get("confidence", summary.confidence)

        elif et == EventType.DECISION_REJECTED:
            summary.rejections.append(str(payload.get("subtype") or evt.message))

        elif et == EventType.ACTION_DISPATCHED:
            if summary.source is None:
                summary.source = "fallback"
            summary.action_name = payload.get("action_name", summary.action_name)
            summary.target = payload.get("target", summary.target)

        elif et == EventType.ACTION_CANCELLED:
            summary.cancelled = True

        elif et == EventType.OUTCOME_RECORDED:
            summary.succeeded = payload.get("succeeded")
            summary.error = payload.get("error")

        elif et == EventType.RETRY_SCHEDULED:
            summary.retry_scheduled = True

    return summary


def load_last_n_cycle_summaries(log_path: Path, last_n: int) -> List[CycleSummary]:
    """
    Load the last N cycles from a monitoring JSONL file and return summaries,
    most recent first.
    """
    grouped = group_events_by_cycle(load_events_from_jsonl(log_path))

    def cycle_last_ts(item: Tuple[str, List[MonitoringEvent]]) -> float:
        _, evts = item
        return max((e.ts for e in evts), default=0.0)

    sorted_items = sorted(grouped.items(), key=cycle_last_ts, reverse=True)
    return [build_cycle_summary(cid, evts) for cid, evts in sorted_items[:last_n]]


# ============================================================
# LLM log viewer
# ============================================================

def iter_llm_logs(
    log_dir: Path,
    role: Optional[str] = None,
    operation: Optional[str] = None,
    context_hash: Optional[str] = None,
) -> Iterable[JsonDict]:
    """
    Iterate over LLM log JSON files in `log_dir` (written by
    llm_stack.log_files.log_llm_call) and yield entries matching the
    optional filters.
    """
    if not log_dir.exists() or not log_dir.is_dir():
        return

    for path in sorted(log_dir.glob("*.json")):
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.debug("Skipping unreadable LLM log %s: %r", path, exc)
            continue

        if role is not None and data.get("role") != role:
            continue
        if operation is not None and data.get("operation") != operation:
            continue
        if context_hash is not None and (data.get("extra") or {}).get("context_hash") != context_hash:
            continue

        yield data


# ============================================================
# CLI
# ============================================================

def _cmd_inspect_cycles(args: argparse.Namespace) -> None:
    summaries = load_last_n_cycle_summaries(Path(args.log_path), last_n=args.n)
    json.dump([s.to_dict() for s in summaries], sys.stdout, indent=2, sort_keys=True)
    print()


def _cmd_view_llm_logs(args: argparse.Namespace) -> None:
    entries = list(
        iter_llm_logs(
            Path(args.log_dir),
            role=args.role,
            operation=args.operation,
            context_hash=args.context_hash,
        )
    )
    json.dump(entries, sys.stdout, indent=2, sort_keys=True)
    print()


def _cmd_dashboard(args: argparse.Namespace) -> None:
    # Imported lazily so the JSON commands work without a terminal.
    from rich.console import Console

    from .dashboard_tui import TuiDashboard

    bus = EventBus()
    dashboard = TuiDashboard(bus)
    for evt in load_events_from_jsonl(Path(args.log_path)):
        bus.publish(evt)
    Console().print(dashboard.build_layout())
    dashboard.close()


def build_arg_parser() -> argparse.ArgumentParser:
    """
    Build the monitoring CLI argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="autonomy-monitor",
        description="Monitoring CLI for the idle autonomy core.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_cyc = sub.add_parser("inspect-cycles", help="Inspect last N decision cycles from monitoring logs.")
    p_cyc.add_argument(
        "--log-path",
        type=str,
        default="logs/autonomy/events.log",
        help="Path to monitoring JSONL log file.",
    )
    p_cyc.add_argument("-n", type=int, default=5, help="Number of recent cycles to show.")
    p_cyc.set_defaults(func=_cmd_inspect_cycles)

    p_llm = sub.add_parser("view-llm", help="View filtered LLM logs from logs/llm.")
    p_llm.add_argument(
        "--log-dir",
        type=str,
        default="logs/llm",
        help="Directory containing LLM JSON logs.",
    )
    p_llm.add_argument("--role", type=str, default=None, help="Filter by role (decision).")
    p_llm.add_argument("--operation", type=str, default=None, help="Filter by operation (decide).")
    p_llm.add_argument("--context-hash", type=str, default=None, help="Filter by context hash.")
    p_llm.set_defaults(func=_cmd_view_llm_logs)

    p_dash = sub.add_parser("dashboard", help="Render the dashboard for a recorded event log.")
    p_dash.add_argument(
        "--log-path",
        type=str,
        default="logs/autonomy/events.log",
        help="Path to monitoring JSONL log file.",
    )
    p_dash.set_defaults(func=_cmd_dashboard)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the monitoring CLI.

    Example usage:

        python -m monitoring.tools inspect-cycles -n 3
        python -m monitoring.tools view-llm --role decision
        python -m monitoring.tools dashboard
    """
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        sys.exit(1)
    func(args)


if __name__ == "__main__":
    main()
