# tests/conftest.py

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure src/ is on sys.path for test imports like `import memory`, `import autonomy`,
# and the project root for `tests.fakes` / `tools`.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = PROJECT_ROOT / "src"

for _path in (SRC_ROOT, PROJECT_ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from memory.config import MemoryConfig  # noqa: E402


@pytest.fixture
def memory_config() -> MemoryConfig:
    """Default memory tuning with persistence off so tests never touch disk."""
    return MemoryConfig(enable_persistence=False)
