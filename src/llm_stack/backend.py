# src/llm_stack/backend.py
"""
Backend interface for local text generation engines.

The decision service only depends on this protocol; the concrete
llama.cpp implementation lives in backend_llamacpp.py so importing the
decision layer never requires llama-cpp-python.
"""

from __future__ import annotations

from typing import List, Optional, Protocol


class LLMBackend(Protocol):
    """Simple interface around a blocking text generation backend."""

    def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
        system_prompt: Optional[str] = None,
    ) -> str:
        """Generate a text completion for the given prompt."""
        ...
