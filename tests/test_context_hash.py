#tests/test_context_hash.py
"""
Tests for memory.context.

Covers:
- hash format, tag de-duplication and ordering
- optional time bucket
- relevance: reflexive, symmetric, partial matches
- ContextHasher over a fake world scan
"""

from __future__ import annotations

from contracts.types import EntityRef, Vec3
from memory.context import (
    ContextHasher,
    build_context_hash,
    calculate_relevance,
    time_bucket,
)
from tests.fakes.fake_autonomy import FakeWorld


def test_hash_sorts_and_dedupes_tags():
    assert build_context_hash("Idle", ["Arcade", "Caffee Chair", "Arcade"]) == "Idle|Arcade,Caffee Chair"
    assert build_context_hash("Idle", []) == "Idle|none"
    assert build_context_hash("Idle", None) == "Idle|none"


def test_hash_with_time_bucket():
    assert build_context_hash("Idle", ["Arcade"], 3.0) == "Idle|Arcade|night"
    assert time_bucket(6.0) == "morning"
    assert time_bucket(12.0) == "afternoon"
    assert time_bucket(23.5) == "evening"


def test_relevance_reflexive_and_symmetric():
    hashes = [
        "Idle|none",
        "Idle|Arcade",
        "Idle|Arcade,Claw Machine",
        "Walking|Arcade",
        "Sitting|Caffee Chair|evening",
    ]
    for a in hashes:
        assert calculate_relevance(a, a) == 1.0
        for b in hashes:
            assert calculate_relevance(a, b) == calculate_relevance(b, a)
            assert 0.0 <= calculate_relevance(a, b) <= 1.0


def test_relevance_partial_matches():
    # same state, half the tags shared
    assert calculate_relevance("Idle|Arcade", "Idle|Arcade,Claw Machine") == 0.75
    # different state, same tags
    assert calculate_relevance("Idle|Arcade", "Walking|Arcade") == 0.5
    # same state, both tagless (sentinel never intersects)
    assert calculate_relevance("Idle|none", "Idle|none|night") == 0.5
    assert calculate_relevance("Idle|none", "Walking|Arcade") == 0.0


def test_context_hasher_uses_world_scan():
    world = FakeWorld(
        [
            EntityRef("Arcade_1", "Arcade", Vec3(2, 0, 0)),
            EntityRef("Chair_3", "Caffee Chair", Vec3(0, 0, 4)),
            EntityRef("Far_Claw", "Claw Machine", Vec3(100, 0, 0)),
            EntityRef("Plant", "Decoration", Vec3(1, 0, 0)),
        ]
    )
    hasher = ContextHasher(world, 15.0, ["Arcade", "Caffee Chair", "Claw Machine"])

    assert hasher.build("Idle", Vec3()) == "Idle|Arcade,Caffee Chair"
    assert hasher.describe_nearby(Vec3()) == "Arcade_1 (Arcade), Chair_3 (Caffee Chair)"
    assert hasher.describe_nearby(Vec3(500, 0, 0)) == "nothing nearby"


def test_context_hasher_time_bucket_toggle():
    world = FakeWorld()
    plain = ContextHasher(world, 15.0, ["Arcade"])
    timed = ContextHasher(world, 15.0, ["Arcade"], include_time_bucket=True)

    assert plain.build("Idle", Vec3(), game_hour=20.0) == "Idle|none"
    assert timed.build("Idle", Vec3(), game_hour=20.0) == "Idle|none|evening"


def test_context_hasher_without_tags_skips_scan():
    world = FakeWorld([EntityRef("Arcade_1", "Arcade")])
    hasher = ContextHasher(world, 15.0, [])

    assert hasher.build("Idle", Vec3()) == "Idle|none"
    assert world.calls == 0
