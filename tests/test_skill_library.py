#tests/test_skill_library.py
"""
Tests for memory.skills.SkillLibrary.

Covers:
- creation only from successes on unseen contexts
- one skill per situation pattern
- trust gate + exploration roll
- replacement of weak skills by a better action
- eviction of the lowest success rate at capacity
- pruning of well-used weak skills
"""

from __future__ import annotations

import random

from memory.config import MemoryConfig
from memory.schema import Skill
from memory.skills import SkillLibrary


def record(lib: SkillLibrary, ctx: str, ok: bool, action_id: int = 600, name: str = "Wave"):
    return lib.record_outcome(ctx, action_id, name, None, ok)


def test_failure_on_unseen_context_creates_nothing():
    lib = SkillLibrary(MemoryConfig())
    assert record(lib, "Idle|none", False) is None
    assert len(lib) == 0


def test_success_creates_one_skill_per_context():
    lib = SkillLibrary(MemoryConfig())
    record(lib, "Idle|none", True)
    record(lib, "Idle|none", True)
    record(lib, "Idle|none", False)

    assert len(lib) == 1
    skill = lib.match("Idle|none")
    assert skill is not None
    assert skill.use_count == 3
    assert skill.success_count == 2

    patterns = [s.situation_pattern for s in lib.skills]
    assert len(patterns) == len(set(patterns))


def test_trusted_skill_used_without_exploration():
    lib = SkillLibrary(MemoryConfig(exploration_rate=0.0))
    lib.load_from([Skill("Idle|Arcade", 408, "PlayArcade", use_count=5, success_count=4)])
    skill = lib.match("Idle|Arcade")

    assert lib.is_trusted(skill)
    assert lib.should_use_skill(skill)
    assert lib.should_use_skill(skill, roll=0.0)


def test_untrusted_skills_are_never_used():
    lib = SkillLibrary(MemoryConfig(exploration_rate=0.0))
    too_few = Skill("a", 600, "Wave", use_count=2, success_count=2)
    too_weak = Skill("b", 600, "Wave", use_count=10, success_count=6)

    assert not lib.should_use_skill(too_few, roll=0.99)
    assert not lib.should_use_skill(too_weak, roll=0.99)
    assert not lib.should_use_skill(None, roll=0.99)


def test_exploration_roll_forces_fresh_decision():
    lib = SkillLibrary(MemoryConfig(exploration_rate=0.2), rng=random.Random(1))
    skill = Skill("Idle|none", 600, "Wave", use_count=10, success_count=10)

    assert not lib.should_use_skill(skill, roll=0.1)
    assert lib.should_use_skill(skill, roll=0.2)
    assert lib.should_use_skill(skill, roll=0.9)


def test_weak_skill_replaced_by_successful_alternative():
    lib = SkillLibrary(MemoryConfig())
    lib.load_from([Skill("Idle|none", 600, "Wave", use_count=4, success_count=1)])

    updated = lib.record_outcome("Idle|none", 406, "Lean", "wall", True)

    assert updated is not None
    assert updated.recommended_action_id == 406
    assert updated.action_name == "Lean"
    assert updated.target == "wall"
    assert updated.use_count == 5
    assert updated.success_count == 2


def test_strong_skill_not_replaced_but_visit_counted():
    lib = SkillLibrary(MemoryConfig())
    lib.load_from([Skill("Idle|none", 600, "Wave", use_count=4, success_count=4)])

    updated = lib.record_outcome("Idle|none", 406, "Lean", None, True)

    assert updated.recommended_action_id == 600
    assert updated.use_count == 5
    assert updated.success_count == 4


def test_eviction_removes_lowest_success_rate():
    lib = SkillLibrary(MemoryConfig(max_skills=3))
    lib.load_from(
        [
            Skill("a", 600, "Wave", use_count=4, success_count=4),
            Skill("b", 600, "Wave", use_count=4, success_count=1),
            Skill("c", 600, "Wave", use_count=4, success_count=3),
        ]
    )

    record(lib, "d", True)

    patterns = {s.situation_pattern for s in lib.skills}
    assert len(lib) == 3
    assert "b" not in patterns
    assert "d" in patterns


def test_prune_drops_only_well_used_weak_skills():
    lib = SkillLibrary(MemoryConfig())
    lib.load_from(
        [
            Skill("weak", 600, "Wave", use_count=5, success_count=1),
            Skill("young", 600, "Wave", use_count=2, success_count=0),
            Skill("good", 600, "Wave", use_count=5, success_count=5),
        ]
    )

    assert lib.prune() == 1
    assert {s.situation_pattern for s in lib.skills} == {"young", "good"}
    assert lib.prune() == 0


def test_load_from_drops_duplicate_patterns():
    lib = SkillLibrary(MemoryConfig())
    lib.load_from(
        [
            Skill("Idle|none", 600, "Wave", use_count=1, success_count=1),
            Skill("Idle|none", 406, "Lean", use_count=9, success_count=9),
        ]
    )
    assert len(lib) == 1
    assert lib.match("Idle|none").action_name == "Wave"
