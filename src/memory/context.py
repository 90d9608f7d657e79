# src/memory/context.py
"""
Situation fingerprints.

A context hash is "{fsm_state}|{sorted,comma,tags}" with an optional third
"|{time_bucket}" field. It is the key for skill lookup and the basis of the
relevance term in episodic retrieval.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Set, Tuple

from contracts.types import EntityRef, Vec3
from contracts.world import WorldQuery

NO_TAGS = "none"


def time_bucket(game_hour: float) -> str:
    """Coarse time-of-day bucket for a game hour in [0, 24)."""
    if game_hour < 6.0:
        return "night"
    if game_hour < 12.0:
        return "morning"
    if game_hour < 18.0:
        return "afternoon"
    return "evening"


def build_context_hash(
    fsm_state: str,
    nearby_tags: Optional[Iterable[str]],
    game_hour: Optional[float] = None,
) -> str:
    """
    Build the fingerprint for a situation.

    Tags are de-duplicated and sorted so scan order never changes the hash.
    """
    tags = sorted({t for t in (nearby_tags or ()) if t})
    tag_field = ",".join(tags) if tags else NO_TAGS
    if game_hour is None:
        return f"{fsm_state}|{tag_field}"
    return f"{fsm_state}|{tag_field}|{time_bucket(game_hour)}"


def split_context_hash(context_hash: str) -> Tuple[str, Set[str]]:
    """Return (fsm_state, tag set) from the first two fields of a hash."""
    parts = context_hash.split("|")
    fsm_state = parts[0]
    if len(parts) < 2 or parts[1] == NO_TAGS or not parts[1]:
        return fsm_state, set()
    return fsm_state, {t for t in parts[1].split(",") if t and t != NO_TAGS}


def calculate_relevance(a: str, b: str) -> float:
    """
    Similarity of two context hashes in [0, 1].

    Exact match scores 1.0. Otherwise 0.5 for a matching fsm state plus
    0.5 * Jaccard similarity of the tag sets. The "none" sentinel never
    intersects anything, so two empty tag sets contribute 0.
    """
    if a == b:
        return 1.0
    state_a, tags_a = split_context_hash(a)
    state_b, tags_b = split_context_hash(b)

    score = 0.5 if state_a == state_b else 0.0
    union = tags_a | tags_b
    if union:
        score += 0.5 * (len(tags_a & tags_b) / len(union))
    return score


class ContextHasher:
    """
    Turns the agent's situation into a context hash using an injected
    world scan.

    Parameters
    ----------
    world:
        WorldQuery used for the proximity scan.
    radius:
        Scan radius around the agent.
    tags:
        Entity tags of interest.
    include_time_bucket:
        Append the time-of-day bucket when a game hour is supplied.
    """

    def __init__(
        self,
        world: WorldQuery,
        radius: float,
        tags: Sequence[str],
        *,
        include_time_bucket: bool = False,
    ) -> None:
        self._world = world
        self._radius = radius
        self._tags = list(tags)
        self._include_time_bucket = include_time_bucket

    def scan(self, position: Vec3) -> List[EntityRef]:
        if not self._tags:
            return []
        return list(self._world.find_nearby(position, self._radius, self._tags))

    def build(
        self,
        fsm_state: str,
        position: Vec3,
        game_hour: Optional[float] = None,
    ) -> str:
        """Scan around `position` and hash the situation."""
        nearby = self.scan(position)
        hour = game_hour if self._include_time_bucket else None
        return build_context_hash(fsm_state, (e.tag for e in nearby), hour)

    def describe_nearby(self, position: Vec3) -> str:
        """Human-readable list of nearby entities for decision prompts."""
        nearby = self.scan(position)
        if not nearby:
            return "nothing nearby"
        return ", ".join(f"{e.name} ({e.tag})" for e in nearby)
