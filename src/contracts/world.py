# src/contracts/world.py

from __future__ import annotations

from typing import List, Protocol, Sequence

from .types import EntityRef, Vec3


class AgentBody(Protocol):
    """
    What the scheduler needs to know about the character it drives.

    The rendering / animation / navigation layer implements this; the core
    never touches it beyond these reads.
    """

    @property
    def fsm_state(self) -> str:
        """Name of the current behavior state ("Idle", "Walking", "Sitting", ...)."""
        ...

    @property
    def position(self) -> Vec3:
        ...

    @property
    def game_hour(self) -> float:
        """In-world hour of day in [0, 24); used for the optional time bucket."""
        ...


class WorldQuery(Protocol):
    """Proximity scan over tagged world entities."""

    def find_nearby(
        self,
        position: Vec3,
        radius: float,
        tags: Sequence[str],
    ) -> List[EntityRef]:
        """Return every entity carrying one of `tags` within `radius` of `position`."""
        ...
