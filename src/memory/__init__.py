# src/memory/__init__.py

from .config import MemoryConfig
from .context import ContextHasher, build_context_hash, calculate_relevance
from .episodic import EpisodicMemory
from .outcome import OutcomeRecord, OutcomeTracker
from .reflection import ReflectionEngine
from .schema import Episode, Skill
from .skills import SkillLibrary
from .store import MemoryStore

__all__ = [
    "MemoryConfig",
    "ContextHasher",
    "build_context_hash",
    "calculate_relevance",
    "EpisodicMemory",
    "OutcomeRecord",
    "OutcomeTracker",
    "ReflectionEngine",
    "Episode",
    "Skill",
    "SkillLibrary",
    "MemoryStore",
]
