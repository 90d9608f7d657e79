#tests/test_llm_decision.py
"""
Tests for llm_stack.decision with a fake backend.

Covers:
- prompt contains state, memories, recent actions, whitelist
- failure narrative section only on retries
- parse_decision: fenced JSON, null targets, confidence defaults/clamping,
  non-finite confidence, unknown actions raising, garbage
- LLMDecisionService end-to-end, including per-call JSON logs
"""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path

import pytest

from autonomy.config import DecisionConfig
from contracts.decision import DecisionQuery, UnmappedActionError
from contracts.types import ActionId, Vec3
from llm_stack.decision import LLMDecisionService, build_decision_prompt, parse_decision
from memory.schema import Episode
from tests.fakes.fake_autonomy import FakeBackend


def make_query(**overrides) -> DecisionQuery:
    values = dict(
        recent_actions=["Wave", "Lean"],
        retrieved_memories=[
            Episode(action_id=408, action_name="PlayArcade", thought="High score!", succeeded=True),
            Episode(action_id=403, action_name="SitAtChair", succeeded=False),
        ],
        fsm_state="Idle",
        position=Vec3(1.0, 0.0, -3.5),
        nearby="Arcade_01 (Arcade)",
        context_hash="Idle|Arcade",
    )
    values.update(overrides)
    return DecisionQuery(**values)


def test_prompt_sections():
    prompt = build_decision_prompt(make_query(), character_name="Barista", personality_json='{"traits":["calm"]}')

    assert prompt.startswith("You are Barista")
    assert "- FSM state: Idle" in prompt
    assert "- Position: (1.0, 0.0, -3.5)" in prompt
    assert "- Nearby objects: Arcade_01 (Arcade)" in prompt
    assert "- Recent actions (last 5): Wave, Lean" in prompt
    assert '{"traits":["calm"]}' in prompt
    assert "- PlayArcade (High score!) [OK]" in prompt
    assert "- SitAtChair (no thought recorded) [FAILED]" in prompt
    assert "Idle, MoveToLocation, TurnTo, SitAtChair" in prompt
    assert "## Previous Attempt" not in prompt


def test_prompt_includes_failure_narrative_on_retry():
    narrative = "Previous action Wave targeting visitor failed because nobody there. Choose a different action."
    prompt = build_decision_prompt(
        make_query(failure_context=narrative, recent_actions=[], retrieved_memories=[]),
        character_name="Golem",
        personality_json="{}",
    )

    assert "## Previous Attempt\n" + narrative in prompt
    assert "- Recent actions (last 5): none" in prompt
    assert "## Relevant Memories\n- none yet" in prompt


def test_query_fields_are_all_prompt_inputs():
    # context_hash is consumed by the call log, the rest by the prompt
    assert {f.name for f in dataclasses.fields(DecisionQuery)} == {
        "recent_actions",
        "retrieved_memories",
        "failure_context",
        "fsm_state",
        "position",
        "nearby",
        "context_hash",
    }


def test_parse_decision_fenced_reply():
    raw = """Sure! Here you go:
```json
{"reasoning": "The arcade looks fun.", "action": "playarcade", "target": "Arcade_01",
 "thought": "Time for a new record {maybe}.", "confidence": 0.8}
```"""
    decision = parse_decision(raw)

    assert decision is not None
    assert decision.action_id == ActionId.CHARACTER_PLAY_ARCADE
    assert decision.action_name == "PlayArcade"
    assert decision.target == "Arcade_01"
    assert decision.thought == "Time for a new record {maybe}."
    assert decision.confidence == pytest.approx(0.8)


@pytest.mark.parametrize("target", [None, "null", "NULL", "  "])
def test_parse_decision_empty_targets(target):
    raw = json.dumps({"action": "Wave", "target": target, "confidence": 0.6})
    decision = parse_decision(raw)
    assert decision is not None
    assert decision.target is None


@pytest.mark.parametrize(
    "confidence, expected",
    [(None, 0.5), ("high", 0.5), (1.7, 1.0), (-0.2, 0.0), ("0.4", 0.4)],
)
def test_parse_decision_confidence(confidence, expected):
    data = {"action": "Lean"}
    if confidence is not None:
        data["confidence"] = confidence
    decision = parse_decision(json.dumps(data))
    assert decision is not None
    assert decision.confidence == pytest.approx(expected)


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "I would like to dance.",
        '{"confidence": 0.9}',
        '["Wave"]',
        '{"action": "Wave", "confidence": ',
    ],
)
def test_parse_decision_rejects(raw):
    assert parse_decision(raw) is None


@pytest.mark.parametrize("raw_confidence", ["NaN", "Infinity", "-Infinity"])
def test_parse_decision_non_finite_confidence_defaults(raw_confidence):
    decision = parse_decision('{"action": "Lean", "confidence": ' + raw_confidence + "}")
    assert decision is not None
    assert decision.confidence == 0.5


def test_parse_decision_unknown_action_raises():
    with pytest.raises(UnmappedActionError) as exc:
        parse_decision('{"action": "Dance", "confidence": 0.9}')
    assert exc.value.action_name == "Dance"


@pytest.mark.asyncio
async def test_service_decides_and_logs(tmp_path: Path):
    reply = json.dumps(
        {
            "reasoning": "Someone walked in.",
            "action": "Wave",
            "target": "visitor",
            "thought": "Hi there!",
            "confidence": 0.9,
        }
    )
    backend = FakeBackend([reply])
    config = DecisionConfig(character_name="Barista", temperature=0.3, max_tokens=128)
    service = LLMDecisionService.from_config(backend, config, log_dir=tmp_path, stop=["\n\n"])

    decision = await service.decide(make_query())

    assert decision is not None
    assert decision.action_id == ActionId.SOCIAL_WAVE
    assert decision.thought == "Hi there!"

    call = backend.calls[0]
    assert call["temperature"] == 0.3
    assert call["max_tokens"] == 128
    assert call["stop"] == ["\n\n"]
    assert call["prompt"].startswith("You are Barista")

    logs = list(tmp_path.glob("*_decision_decide.json"))
    assert len(logs) == 1
    record = json.loads(logs[0].read_text(encoding="utf-8"))
    assert record["role"] == "decision"
    assert record["latency_ms"] >= 0.0
    assert record["raw_response"] == reply
    assert record["extra"] == {"context_hash": "Idle|Arcade", "is_retry": False, "memories": 2}


@pytest.mark.asyncio
async def test_service_returns_none_on_garbage(tmp_path: Path):
    service = LLMDecisionService(FakeBackend(default="no idea"))
    assert await service.decide(make_query()) is None
    assert list(tmp_path.iterdir()) == []
