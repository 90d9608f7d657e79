# src/llm_stack/config.py
"""
Local model configuration.

config/models.yaml holds named profiles; `profile` picks the active one:

    profile: default
    model_profiles:
      default:
        path: models/qwen2.5-3b-instruct-q4_k_m.gguf
        context_length: 4096
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

PROJECT_ROOT = Path(__file__).resolve().parents[2]
MODELS_YAML = PROJECT_ROOT / "config" / "models.yaml"


@dataclass
class ModelConfig:
    """Local model settings used by LlamaCppBackend."""

    path: str

    # context / performance knobs
    context_length: int = 4096
    gpu_layers: Optional[int] = None
    n_threads: Optional[int] = None
    n_batch: Optional[int] = None

    # prompt shaping
    stop: Optional[List[str]] = None
    system_prompt: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelConfig":
        """Build from one YAML profile mapping; relative paths stay as written."""
        if not data.get("path"):
            raise ValueError("ModelConfig requires 'path'")
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown model config keys: {sorted(unknown)}")

        context_length = int(data.get("context_length", 4096))
        if context_length < 256:
            raise ValueError(f"context_length too small: {context_length}")

        stop = data.get("stop")
        if stop is not None and not isinstance(stop, list):
            raise ValueError("stop must be a list of strings")

        return cls(
            path=str(data["path"]),
            context_length=context_length,
            gpu_layers=data.get("gpu_layers"),
            n_threads=data.get("n_threads"),
            n_batch=data.get("n_batch"),
            stop=[str(s) for s in stop] if stop is not None else None,
            system_prompt=data.get("system_prompt"),
        )

    def resolved_path(self, root: Path = PROJECT_ROOT) -> Path:
        """Model file path, relative entries anchored at `root`."""
        p = Path(self.path).expanduser()
        return p if p.is_absolute() else root / p


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def load_model_config(profile: Optional[str] = None, path: Path = MODELS_YAML) -> ModelConfig:
    """
    Resolve one model profile from models.yaml.

    `profile` overrides the file's own `profile` key.
    """
    data = _load_yaml(path)
    name = profile or data.get("profile")
    if not name:
        raise ValueError(f"{path} must define a 'profile' key")

    profiles = data.get("model_profiles")
    if not isinstance(profiles, dict):
        raise ValueError(f"{path} must define a 'model_profiles' mapping")
    if name not in profiles:
        raise KeyError(f"Model profile '{name}' not found in {path}")

    return ModelConfig.from_dict(profiles[name] or {})
