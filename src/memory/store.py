# path: src/memory/store.py

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from runtime.failure_mitigation import emit_persistence_failure

from .config import MemoryConfig
from .episodic import EpisodicMemory
from .schema import Episode, Skill
from .skills import SkillLibrary

logger = logging.getLogger(__name__)


class MemoryStore:
    """
    Owner of one EpisodicMemory and one SkillLibrary, plus their JSON
    persistence.

    On-disk format (one file per character):

        {
          "episodes": [Episode.to_dict(), ...],
          "skills":   [Skill.to_dict(), ...]
        }

    Failure policy:
      - load(): missing file -> start fresh; unreadable / corrupt file ->
        warning + PERSISTENCE_FAILURE event, start fresh.
      - save(): write error -> warning + event, keep in-memory state; the
        next save interval tries again.

    Thread-safety: the scheduler drives the store from a single event loop.
    `lock` is still held around every mutation done through the store and
    around the snapshot taken for save(), so a host that calls in from OS
    threads keeps the FIFO and capacity invariants intact.
    """

    def __init__(
        self,
        config: MemoryConfig,
        character_name: str,
        root_dir: Path,
        *,
        bus: Optional[EventBus] = None,
        skill_library: Optional[SkillLibrary] = None,
    ) -> None:
        self._config = config
        self._bus = bus
        self.lock = RLock()
        self.episodic = EpisodicMemory(config)
        self.skills = skill_library or SkillLibrary(config)
        self._path = Path(root_dir) / f"{character_name}_memory.json"
        self._episodes_since_save = 0

    @property
    def config(self) -> MemoryConfig:
        return self._config

    @property
    def path(self) -> Path:
        return self._path

    @property
    def episodes_since_save(self) -> int:
        return self._episodes_since_save

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def load(self) -> bool:
        """
        Load persisted memory. Returns True when a snapshot was applied.
        """
        if not self._config.enable_persistence:
            return False
        if not self._path.exists():
            logger.info("No saved memory at %s, starting fresh.", self._path)
            return False

        try:
            with self._path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                raise ValueError(f"Expected mapping at top of {self._path}, got {type(raw)}")
            episodes = [Episode.from_dict(e) for e in raw.get("episodes") or []]
            skills = [Skill.from_dict(s) for s in raw.get("skills") or []]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Load failed: %r. Starting with empty memory.", exc)
            emit_persistence_failure(
                self._bus,
                operation="load",
                path=str(self._path),
                error_repr=repr(exc),
            )
            return False

        with self.lock:
            self.episodic.load_from(episodes)
            self.skills.load_from(skills)
        logger.info(
            "Loaded %d episodes, %d skills from %s",
            len(self.episodic),
            len(self.skills),
            self._path,
        )
        return True

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        """JSON-safe copy of the whole store."""
        with self.lock:
            return {
                "episodes": [e.to_dict() for e in self.episodic.episodes],
                "skills": [s.to_dict() for s in self.skills.skills],
            }

    def save(self) -> bool:
        """
        Write the store to disk (temp file + atomic replace).

        Returns True on success.
        """
        if not self._config.enable_persistence:
            return False

        data = self.snapshot()
        tmp_name: Optional[str] = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=str(self._path.parent),
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Save failed: %r. Continuing with in-memory only.", exc)
            emit_persistence_failure(
                self._bus,
                operation="save",
                path=str(self._path),
                error_repr=repr(exc),
            )
            return False
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        with self.lock:
            self._episodes_since_save = 0
        logger.info("Saved %d episodes, %d skills.", len(data["episodes"]), len(data["skills"]))
        log_event(
            bus=self._bus,
            module="memory.store",
            event_type=EventType.MEMORY_SAVED,
            message="Memory saved",
            payload={
                "path": str(self._path),
                "episodes": len(data["episodes"]),
                "skills": len(data["skills"]),
            },
        )
        return True

    def on_episode_added(self) -> None:
        """Count a new episode and flush when the save interval is reached."""
        with self.lock:
            self._episodes_since_save += 1
            due = self._episodes_since_save >= self._config.save_interval
        if due:
            self.save()

    # ------------------------------------------------------------------ #
    # Shutdown
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Final flush on shutdown."""
        self.save()

    def __enter__(self) -> "MemoryStore":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()
