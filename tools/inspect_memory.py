# Path: tools/inspect_memory.py

from __future__ import annotations

import argparse
import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from rich.console import Console
from rich.table import Table

from memory.config import MemoryConfig
from memory.reflection import REFLECTION_CONTEXT
from memory.schema import Episode, Skill


def load_memory_file(path: Path) -> Tuple[List[Episode], List[Skill]]:
    """
    Parse a persisted memory file ({"episodes": [...], "skills": [...]}).

    Raises ValueError when the top-level value is not an object.
    """
    raw: Any = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Expected a JSON object in {path}, got {type(raw).__name__}")
    episodes = [Episode.from_dict(e) for e in raw.get("episodes") or []]
    skills = [Skill.from_dict(s) for s in raw.get("skills") or []]
    return episodes, skills


def summarize(episodes: List[Episode], skills: List[Skill], config: Optional[MemoryConfig] = None) -> Dict[str, Any]:
    """Counts shown above the tables."""
    cfg = config or MemoryConfig()
    failures = sum(1 for ep in episodes if not ep.succeeded)
    return {
        "episodes": len(episodes),
        "failures": failures,
        "reflections": sum(1 for ep in episodes if ep.context_hash == REFLECTION_CONTEXT),
        "skills": len(skills),
        "trusted_skills": sum(1 for s in skills if s.use_count >= cfg.min_skill_uses and s.success_rate >= cfg.skill_confidence_threshold),
    }


def build_episode_table(episodes: List[Episode], last_n: int) -> Table:
    table = Table(title=f"Last {min(last_n, len(episodes))} episodes", header_style="bold magenta")
    table.add_column("When", no_wrap=True)
    table.add_column("Action", style="bold")
    table.add_column("Target")
    table.add_column("OK", justify="center")
    table.add_column("Importance", justify="right")
    table.add_column("Context")
    table.add_column("Thought")

    for ep in episodes[-last_n:]:
        when = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(ep.timestamp))
        ok = "[green]yes[/green]" if ep.succeeded else "[red]no[/red]"
        table.add_row(
            when,
            ep.action_name,
            ep.target or "-",
            ok,
            f"{ep.importance:.2f}",
            ep.context_hash,
            ep.thought,
        )
    return table


def build_skill_table(skills: List[Skill]) -> Table:
    table = Table(title="Skills (by success rate)", header_style="bold cyan")
    table.add_column("Situation")
    table.add_column("Action", style="bold")
    table.add_column("Target")
    table.add_column("Uses", justify="right")
    table.add_column("Success", justify="right")

    for skill in sorted(skills, key=lambda s: s.success_rate, reverse=True):
        table.add_row(
            skill.situation_pattern,
            skill.action_name,
            skill.target or "-",
            str(skill.use_count),
            f"{skill.success_rate:.0%}",
        )
    return table


def inspect_memory(path: Path, last_n: int = 20) -> None:
    """
    Load a memory file and print:
      - totals
      - the most recent episodes
      - every skill, best first
    """
    console = Console()
    console.print(f"Memory file: {path}")

    if not path.exists():
        console.print("[yellow]No memory file yet. Let the character idle for a while first.[/yellow]")
        return

    episodes, skills = load_memory_file(path)
    console.print_json(data=summarize(episodes, skills))

    if episodes:
        console.print(build_episode_table(episodes, last_n))
    if skills:
        console.print(build_skill_table(skills))


def main() -> None:
    parser = argparse.ArgumentParser(
        description=(
            "Inspect a persisted autonomy memory file (JSON).\n"
            "Prints totals, recent episodes and learned skills."
        )
    )
    parser.add_argument(
        "--path",
        type=Path,
        required=True,
        help="Path to the memory file (e.g. data/memory/Golem_memory.json)",
    )
    parser.add_argument(
        "-n",
        type=int,
        default=20,
        help="Number of recent episodes to show.",
    )

    args = parser.parse_args()
    inspect_memory(args.path, last_n=args.n)


if __name__ == "__main__":
    main()
