# src/autonomy/__init__.py

from .bootstrap import AutonomyRuntime, build_autonomy
from .config import (
    AutonomyConfig,
    DecisionConfig,
    SchedulerConfig,
    load_autonomy_config,
)
from .controller import SchedulerController
from .fallback import FallbackActionGenerator, FallbackCategory, pick_category
from .scheduler import CycleResult, IdleScheduler, failure_narrative
from .state import DecisionSource, SchedulerPhase, SchedulerState

__all__ = [
    "AutonomyRuntime",
    "build_autonomy",
    "AutonomyConfig",
    "DecisionConfig",
    "SchedulerConfig",
    "load_autonomy_config",
    "SchedulerController",
    "FallbackActionGenerator",
    "FallbackCategory",
    "pick_category",
    "CycleResult",
    "IdleScheduler",
    "failure_narrative",
    "DecisionSource",
    "SchedulerPhase",
    "SchedulerState",
]
