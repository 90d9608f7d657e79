# src/llm_stack/log_files.py
"""
On-disk record of LLM decision calls.

Each call becomes one pretty-printed JSON file so a human can open a
single decision in an editor; monitoring.tools.iter_llm_logs reads them
back. The directory is bounded: once it holds more than `max_files`
entries the oldest are removed.
"""

from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
LOG_DIR = PROJECT_ROOT / "logs" / "llm"

DEFAULT_MAX_FILES = 500


class LLMCallLog:
    """Writes one JSON file per LLM call under `log_dir`."""

    def __init__(self, log_dir: Optional[Path] = None, max_files: Optional[int] = DEFAULT_MAX_FILES) -> None:
        if max_files is not None and max_files < 1:
            raise ValueError("max_files must be >= 1 or None")
        self.log_dir = Path(log_dir) if log_dir is not None else LOG_DIR
        self.max_files = max_files

    def record(
        self,
        *,
        role: str,
        operation: str,
        prompt: str,
        raw_response: str,
        latency_s: Optional[float] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> Path:
        """Persist one interaction and return the written path."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        ts = time.strftime("%Y%m%dT%H%M%S")
        # monotonic_ns keeps names unique and sortable within one second
        path = self.log_dir / f"{ts}_{time.monotonic_ns():020d}_{role}_{operation}.json"

        entry = {
            "timestamp": ts,
            "pid": os.getpid(),
            "role": role,
            "operation": operation,
            "latency_ms": None if latency_s is None else round(latency_s * 1000.0, 1),
            "prompt": prompt,
            "raw_response": raw_response,
            "extra": extra or {},
        }
        with path.open("w", encoding="utf-8") as f:
            json.dump(entry, f, ensure_ascii=False, indent=2)

        self.prune()
        return path

    def files(self) -> List[Path]:
        """Logged calls, oldest first."""
        if not self.log_dir.exists():
            return []
        return sorted(self.log_dir.glob("*.json"))

    def prune(self) -> int:
        """Delete the oldest files beyond max_files; returns how many went."""
        if self.max_files is None:
            return 0
        excess = self.files()[: -self.max_files]
        removed = 0
        for path in excess:
            try:
                path.unlink()
                removed += 1
            except OSError as exc:
                logger.warning("Could not remove old LLM log %s: %r", path, exc)
        return removed


def log_llm_call(
    *,
    role: str,
    operation: str,
    prompt: str,
    raw_response: str,
    extra: Optional[Dict[str, Any]] = None,
    log_dir: Optional[Path] = None,
) -> Path:
    """One-off variant of LLMCallLog.record without retention."""
    return LLMCallLog(log_dir, max_files=None).record(
        role=role,
        operation=operation,
        prompt=prompt,
        raw_response=raw_response,
        extra=extra,
    )
