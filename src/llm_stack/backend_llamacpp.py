# src/llm_stack/backend_llamacpp.py

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from llama_cpp import Llama

from .backend import LLMBackend
from .config import MODELS_YAML, ModelConfig, load_model_config

logger = logging.getLogger(__name__)


class LlamaCppBackend(LLMBackend):
    """LLMBackend implementation using llama.cpp local inference.

        backend = LlamaCppBackend.from_profile("cpu_only")

    Calls are blocking; LLMDecisionService runs them in a worker thread.
    Output is constrained to a JSON object so parse_decision sees one.
    """

    def __init__(self, config: ModelConfig) -> None:
        path = config.resolved_path()
        if not path.exists():
            raise FileNotFoundError(path)

        # If gpu_layers is not set, offload all layers and let llama.cpp
        # place as many as VRAM allows.
        gpu_layers = -1 if config.gpu_layers is None else config.gpu_layers

        # Use all but 1 CPU core if not specified
        default_threads = max(1, (os.cpu_count() or 1) - 1)

        self._config = config
        logger.info("Loading local model %s (n_ctx=%d)", path, config.context_length)
        self._llm = Llama(
            model_path=str(path),
            n_ctx=config.context_length,
            n_gpu_layers=gpu_layers,
            n_threads=config.n_threads or default_threads,
            n_batch=config.n_batch or 512,
            verbose=False,
        )

    @classmethod
    def from_profile(cls, profile: Optional[str] = None, path: Path = MODELS_YAML) -> "LlamaCppBackend":
        """Load the named profile (or the file's default) from models.yaml."""
        return cls(load_model_config(profile, path))

    @property
    def config(self) -> ModelConfig:
        return self._config

    def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        stop: Optional[List[str]] = None,
        system_prompt: Optional[str] = None,
    ) -> str:
        """
        Generate text using chat-completion style calls.

        system_prompt (or the config default) becomes the system message,
        prompt the user message; the assistant content is returned stripped.
        """
        messages: List[Dict[str, str]] = []

        system = system_prompt or self._config.system_prompt
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        out: Dict[str, Any] = self._llm.create_chat_completion(
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            stop=stop or self._config.stop or [],
            response_format={"type": "json_object"},
        )

        # OpenAI-style chat completion shape
        choices = out.get("choices") or []
        if not choices:
            logger.warning("llama.cpp returned no choices")
            return ""
        text = choices[0].get("message", {}).get("content")
        return (text or "").strip()
