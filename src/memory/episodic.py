# src/memory/episodic.py
"""
Episodic memory: bounded, scored, retrievable log of past actions.

- add_episode computes importance once (base + novelty + failure, clamped)
  and evicts the oldest entries beyond `max_episodes`.
- retrieve_top_k ranks every episode by
      recency_weight * recency + importance_weight * importance
      + relevance_weight * relevance
  with ties broken by insertion order.
- retrieve_by_importance is the plain importance ranking used by reflection.
"""

from __future__ import annotations

import logging
import math
import time
from collections import deque
from dataclasses import replace
from typing import Deque, Iterable, List, Optional, Tuple

from .config import MemoryConfig
from .context import calculate_relevance
from .schema import Episode

logger = logging.getLogger(__name__)

_LN2 = math.log(2.0)


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class EpisodicMemory:
    """
    Append-only, FIFO-bounded store of Episodes.

    Not thread-safe on its own; MemoryStore serializes access.
    """

    def __init__(self, config: MemoryConfig) -> None:
        self._config = config
        self._episodes: Deque[Episode] = deque()

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def episodes(self) -> Tuple[Episode, ...]:
        """Snapshot of stored episodes, oldest first."""
        return tuple(self._episodes)

    def __len__(self) -> int:
        return len(self._episodes)

    def recent_action_names(self, n: int = 5) -> List[str]:
        """Names of the last `n` episodes, oldest first."""
        if n <= 0:
            return []
        return [ep.action_name for ep in list(self._episodes)[-n:]]

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def load_from(self, saved: Optional[Iterable[Episode]]) -> None:
        """Replace contents with previously persisted episodes (capacity still applies)."""
        self._episodes.clear()
        for ep in saved or ():
            self._episodes.append(ep)
        self._evict_overflow()

    def add_episode(self, entry: Episode) -> Episode:
        """
        Store `entry` and return the stored (possibly importance-filled) copy.
        """
        if entry.importance <= 0.0:
            entry = replace(entry, importance=self.calculate_importance(entry))
        else:
            entry = replace(entry, importance=_clamp01(entry.importance))

        self._episodes.append(entry)
        self._evict_overflow()
        return entry

    def _evict_overflow(self) -> None:
        while len(self._episodes) > self._config.max_episodes:
            evicted = self._episodes.popleft()
            logger.debug("Evicted oldest episode %s @ %.0f", evicted.action_name, evicted.timestamp)

    def calculate_importance(self, entry: Episode) -> float:
        """
        base + novelty bonus (action id absent from the last N episodes)
        + failure bonus, clamped to [0, 1].
        """
        cfg = self._config
        lookback = list(self._episodes)[-cfg.novelty_lookback:] if cfg.novelty_lookback > 0 else []
        seen_recently = any(ep.action_id == entry.action_id for ep in lookback)

        importance = cfg.default_base_importance
        if not seen_recently:
            importance += cfg.novelty_bonus
        if not entry.succeeded:
            importance += cfg.failure_bonus
        return _clamp01(importance)

    # ------------------------------------------------------------------ #
    # Retrieval
    # ------------------------------------------------------------------ #

    def score(self, episode: Episode, context_hash: str, now: float) -> float:
        """Blended retrieval score of one episode for `context_hash` at time `now`."""
        cfg = self._config
        age = max(0.0, now - episode.timestamp)
        recency = math.exp(-_LN2 * age / cfg.recency_half_life)
        relevance = calculate_relevance(episode.context_hash, context_hash)
        return (
            cfg.recency_weight * recency
            + cfg.importance_weight * episode.importance
            + cfg.relevance_weight * relevance
        )

    def retrieve_top_k(
        self,
        context_hash: str,
        k: int = -1,
        now: Optional[float] = None,
    ) -> List[Episode]:
        """
        Return at most `k` episodes ranked by descending score.

        k < 0 falls back to config.top_k_episodes. Equal scores keep
        insertion order (older first).
        """
        if not self._episodes:
            return []
        if k < 0:
            k = self._config.top_k_episodes
        if k == 0:
            return []
        if now is None:
            now = time.time()

        scored = [
            (self.score(ep, context_hash, now), idx, ep)
            for idx, ep in enumerate(self._episodes)
        ]
        scored.sort(key=lambda item: (-item[0], item[1]))
        return [ep for _score, _idx, ep in scored[:k]]

    def retrieve_by_importance(self, count: int) -> List[Episode]:
        """Top `count` episodes by importance (stable for ties)."""
        if count <= 0 or not self._episodes:
            return []
        ranked = sorted(self._episodes, key=lambda ep: ep.importance, reverse=True)
        return ranked[:count]
