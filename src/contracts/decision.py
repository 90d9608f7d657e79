# src/contracts/decision.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, TYPE_CHECKING

from .types import Decision, Vec3

if TYPE_CHECKING:
    # Only for type checkers; avoids an import cycle with memory.schema.
    from memory.schema import Episode


@dataclass
class DecisionQuery:
    """
    Everything a decision service gets to see for one decision.

    Fields
    ------
    recent_actions:
        Names of the most recent actions, oldest first.
    retrieved_memories:
        Top-K ranked episodes for the current context.
    failure_context:
        Narrative describing the previous failed action when this query is a
        retry, otherwise None.
    fsm_state / position / nearby:
        Situation snapshot used for prompt construction.
    context_hash:
        Fingerprint of the situation the memories were ranked against.
    """

    recent_actions: List[str] = field(default_factory=list)
    retrieved_memories: List["Episode"] = field(default_factory=list)
    failure_context: Optional[str] = None
    fsm_state: str = "Idle"
    position: Vec3 = field(default_factory=Vec3)
    nearby: str = "nothing nearby"
    context_hash: str = ""


class UnmappedActionError(ValueError):
    """A decision service produced an action name outside the whitelist."""

    def __init__(self, action_name: str) -> None:
        super().__init__(f"Unknown action: {action_name!r}")
        self.action_name = action_name


class DecisionService(Protocol):
    """
    External decision query.

    Implementations return a Decision, or None when no usable decision could
    be produced (transport failure, unparsable output). An action name
    outside the whitelist raises UnmappedActionError. Any other exception or
    a timeout is treated as "decision unavailable". Every case falls back.
    """

    async def decide(self, query: DecisionQuery) -> Optional[Decision]:
        ...
