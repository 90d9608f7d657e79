# path: src/llm_stack/decision.py

from __future__ import annotations

import asyncio
import logging
import math
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from contracts.decision import DecisionQuery, UnmappedActionError
from contracts.types import DECISION_ACTIONS, ActionId, Decision
from memory.schema import Episode

from .backend import LLMBackend
from .json_utils import extract_json_object, load_json_or_none
from .log_files import LLMCallLog

if TYPE_CHECKING:
    from autonomy.config import DecisionConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _format_memories(memories: Sequence[Episode]) -> str:
    if not memories:
        return "- none yet"
    lines = []
    for ep in memories:
        status = "OK" if ep.succeeded else "FAILED"
        thought = ep.thought or ep.reasoning or "no thought recorded"
        lines.append(f"- {ep.action_name} ({thought}) [{status}]")
    return "\n".join(lines)


def build_decision_prompt(
    query: DecisionQuery,
    *,
    character_name: str,
    personality_json: str,
) -> str:
    """Prompt for one autonomous decision."""
    pos = query.position
    recent = ", ".join(query.recent_actions) if query.recent_actions else "none"
    valid_actions = ", ".join(name for name, _ in DECISION_ACTIONS)

    failure_section = ""
    if query.failure_context:
        failure_section = f"""
## Previous Attempt
{query.failure_context}
"""

    prompt = f"""
You are {character_name}, a character in a virtual world.

## Current State
- FSM state: {query.fsm_state}
- Position: ({pos.x:.1f}, {pos.y:.1f}, {pos.z:.1f})
- Nearby objects: {query.nearby}
- Recent actions (last 5): {recent}

## Personality
{personality_json}

## Relevant Memories
{_format_memories(query.retrieved_memories)}
{failure_section}
## Rules
1. Think step by step about what you want to do and why.
2. Do NOT repeat the same action 3 times in a row.
3. Choose actions that fit your personality and current context.
4. If you just sat for a long time, consider standing up and walking.

## Valid Actions
{valid_actions}

Respond ONLY with JSON (no markdown, no explanation):
{{
  "reasoning": "<2-3 sentences: why this action>",
  "action": "<ActionId from valid list>",
  "target": "<object_name or null>",
  "thought": "<one sentence: character's inner thought>",
  "confidence": <0.0-1.0>
}}
"""
    return prompt.strip()


def parse_decision(raw: str) -> Optional[Decision]:
    """
    Parse an LLM reply into a Decision.

    Returns None when no JSON object can be recovered or it names no
    action. Raises UnmappedActionError when the action is not on the
    whitelist. A missing, malformed or non-finite confidence becomes 0.5;
    confidence is clamped to [0, 1]; a "null" or empty target becomes None.
    """
    candidate = extract_json_object(raw)
    data, err = load_json_or_none(candidate, context="LLMDecisionService.decide")
    if data is None:
        logger.warning("Failed to parse LLM response: %s", err)
        return None

    action_name = str(data.get("action") or "").strip()
    if not action_name:
        logger.warning("LLM response names no action")
        return None
    action_id = ActionId.from_decision_name(action_name)
    if action_id is None:
        logger.warning("Unknown action: %s", action_name)
        raise UnmappedActionError(action_name)

    target_raw = data.get("target")
    target: Optional[str] = None
    if target_raw is not None:
        target = str(target_raw).strip()
        if not target or target.lower() == "null":
            target = None

    try:
        confidence = float(data.get("confidence", DEFAULT_CONFIDENCE))
    except (TypeError, ValueError):
        confidence = DEFAULT_CONFIDENCE
    if not math.isfinite(confidence):
        confidence = DEFAULT_CONFIDENCE

    return Decision(
        action_id=action_id,
        action_name=action_id.decision_name,
        target=target,
        thought=str(data.get("thought") or ""),
        reasoning=str(data.get("reasoning") or ""),
        confidence=_clamp01(confidence),
    )


class LLMDecisionService:
    """DecisionService backed by a local LLM.

    The backend call is blocking and runs in a worker thread; the scheduler
    owns the timeout around decide().
    """

    def __init__(
        self,
        backend: LLMBackend,
        *,
        character_name: str = "Golem",
        personality_json: str = "{}",
        temperature: float = 0.7,
        max_tokens: int = 256,
        stop: Optional[List[str]] = None,
        system_prompt: Optional[str] = None,
        log_dir: Optional[Path] = None,
        call_log: Optional[LLMCallLog] = None,
    ) -> None:
        self._backend = backend
        self._character_name = character_name
        self._personality_json = personality_json
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._stop = stop
        self._system_prompt = system_prompt
        if call_log is None and log_dir is not None:
            call_log = LLMCallLog(log_dir)
        self._call_log = call_log

    @classmethod
    def from_config(cls, backend: LLMBackend, config: "DecisionConfig", **kwargs: Any) -> "LLMDecisionService":
        """Build from an autonomy DecisionConfig."""
        return cls(
            backend,
            character_name=config.character_name,
            personality_json=config.personality_json,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            **kwargs,
        )

    async def decide(self, query: DecisionQuery) -> Optional[Decision]:
        prompt = build_decision_prompt(
            query,
            character_name=self._character_name,
            personality_json=self._personality_json,
        )
        logger.debug("Decision prompt: %s", prompt)

        started = time.perf_counter()
        raw = await asyncio.to_thread(
            self._backend.generate,
            prompt,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            stop=self._stop,
            system_prompt=self._system_prompt,
        )
        latency = time.perf_counter() - started
        logger.debug("Decision raw output (%.2fs): %s", latency, raw)

        if self._call_log is not None:
            extra: Dict[str, Any] = {
                "context_hash": query.context_hash,
                "is_retry": query.failure_context is not None,
                "memories": len(query.retrieved_memories),
            }
            self._call_log.record(
                role="decision",
                operation="decide",
                prompt=prompt,
                raw_response=raw,
                latency_s=latency,
                extra=extra,
            )

        decision = parse_decision(raw)
        if decision is not None:
            logger.info(
                "Decision: %s (confidence=%.2f) %s",
                decision.action_name,
                decision.confidence,
                decision.thought,
            )
        return decision
