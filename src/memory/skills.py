# src/memory/skills.py
"""
Skill library: context hash -> recommended action, gated by trust and
exploration.

Rules
-----
- Skills are born only from successes on a previously unseen context.
- At most one skill per situation pattern.
- Over capacity, the skill with the lowest success rate is evicted
  (first found on ties).
- prune() drops well-used skills whose success rate fell below the prune
  threshold; it is called by reflection, not on every outcome.
"""

from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional, Tuple

from .config import MemoryConfig
from .schema import Skill

logger = logging.getLogger(__name__)


class SkillLibrary:
    """Bounded cache of Skill entries keyed by situation pattern."""

    def __init__(self, config: MemoryConfig, rng: Optional[random.Random] = None) -> None:
        self._config = config
        self._rng = rng or random.Random()
        self._skills: List[Skill] = []

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def skills(self) -> Tuple[Skill, ...]:
        return tuple(self._skills)

    def __len__(self) -> int:
        return len(self._skills)

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def match(self, situation_pattern: str) -> Optional[Skill]:
        """Exact-match lookup; None when the context has no skill."""
        for skill in self._skills:
            if skill.situation_pattern == situation_pattern:
                return skill
        return None

    def is_trusted(self, skill: Optional[Skill]) -> bool:
        """Enough uses and a high enough success rate, ignoring exploration."""
        if skill is None:
            return False
        if skill.use_count < self._config.min_skill_uses:
            return False
        return skill.success_rate >= self._config.skill_confidence_threshold

    def should_use_skill(self, skill: Optional[Skill], roll: Optional[float] = None) -> bool:
        """
        True when `skill` is trusted and the exploration roll does not fire.

        `roll` is a uniform draw in [0, 1); one is drawn from the library's
        RNG when not supplied. A roll below exploration_rate forces a fresh
        decision even for a trusted skill.
        """
        if not self.is_trusted(skill):
            return False
        if roll is None:
            roll = self._rng.random()
        return roll >= self._config.exploration_rate

    # ------------------------------------------------------------------ #
    # Mutation
    # ------------------------------------------------------------------ #

    def load_from(self, saved: Optional[Iterable[Skill]]) -> None:
        """Replace contents with persisted skills; duplicates keep the first entry."""
        self._skills.clear()
        seen = set()
        for skill in saved or ():
            if skill.situation_pattern in seen:
                logger.warning("Dropping duplicate persisted skill for %r", skill.situation_pattern)
                continue
            seen.add(skill.situation_pattern)
            self._skills.append(skill)
        self._evict_overflow()

    def record_outcome(
        self,
        situation_pattern: str,
        action_id: int,
        action_name: str,
        target: Optional[str],
        succeeded: bool,
    ) -> Optional[Skill]:
        """
        Fold one outcome into the library.

        Returns the affected skill (existing or newly created), or None when
        nothing was stored (failure on an unseen context, or the new skill
        was itself evicted).
        """
        existing = self.match(situation_pattern)
        if existing is not None:
            if existing.recommended_action_id == action_id:
                existing.use_count += 1
                if succeeded:
                    existing.success_count += 1
            else:
                # Different action for the same context still counts as a visit.
                existing.use_count += 1
                if succeeded and existing.success_rate < self._config.skill_replacement_threshold:
                    logger.info(
                        "Skill %r: replacing %s with %s",
                        situation_pattern,
                        existing.action_name,
                        action_name,
                    )
                    existing.recommended_action_id = action_id
                    existing.action_name = action_name
                    existing.target = target
                    existing.success_count += 1
            return existing

        if not succeeded:
            return None

        skill = Skill(
            situation_pattern=situation_pattern,
            recommended_action_id=action_id,
            action_name=action_name,
            target=target,
            use_count=1,
            success_count=1,
        )
        self._skills.append(skill)
        self._evict_overflow()
        return skill if any(s is skill for s in self._skills) else None

    def _evict_overflow(self) -> None:
        while len(self._skills) > self._config.max_skills:
            worst_idx = 0
            worst_rate = self._skills[0].success_rate
            for idx in range(1, len(self._skills)):
                rate = self._skills[idx].success_rate
                if rate < worst_rate:
                    worst_rate = rate
                    worst_idx = idx
            evicted = self._skills.pop(worst_idx)
            logger.debug(
                "Evicted skill %r (success_rate=%.2f)",
                evicted.situation_pattern,
                evicted.success_rate,
            )

    def prune(self) -> int:
        """Remove well-used skills below the prune threshold; return how many were removed."""
        cfg = self._config
        before = len(self._skills)
        self._skills = [
            s
            for s in self._skills
            if not (s.use_count >= cfg.min_skill_uses and s.success_rate < cfg.skill_prune_threshold)
        ]
        removed = before - len(self._skills)
        if removed:
            logger.info("Pruned %d skill(s) below success rate %.2f", removed, cfg.skill_prune_threshold)
        return removed
