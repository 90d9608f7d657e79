# src/llm_stack/json_utils.py

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


def extract_json_object(raw: str) -> str:
    """
    Try to salvage the first JSON object from a noisy LLM reply
    (markdown fences, leading prose, trailing commentary).

    Scans from the first '{' to its matching '}', honoring strings and
    escapes. Returns the stripped input unchanged when no balanced object
    is found.
    """
    if not raw:
        return raw

    trimmed = raw.strip()
    start = trimmed.find("{")
    if start == -1:
        return trimmed

    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(trimmed)):
        ch = trimmed[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                candidate = trimmed[start : idx + 1]
                logger.debug("extracted JSON candidate: %s", candidate)
                return candidate
    return trimmed


def load_json_or_none(
    raw: str,
    *,
    context: str = "unknown",
) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """
    Best-effort JSON object loader.

    Returns (data, error_message). If parsing fails, or the top-level value
    is not an object, data is None and error_message describes the failure.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        msg = f"{context}: JSONDecodeError at pos {e.pos}: {e.msg}"
        logger.debug("load_json_or_none failed: %s; raw=%r", msg, raw)
        return None, msg
    if not isinstance(data, dict):
        msg = f"{context}: expected a JSON object, got {type(data).__name__}"
        logger.debug("load_json_or_none failed: %s; raw=%r", msg, raw)
        return None, msg
    return data, None
