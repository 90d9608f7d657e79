# src/contracts/__init__.py

"""
Shared contracts for the idle autonomy core.

Re-exports the value types passed between components and the protocols
implemented by external collaborators (decision service, agent body,
world scan).
"""

from __future__ import annotations

from .types import (
    ActionId,
    ActionLifecycle,
    AutonomousAction,
    Decision,
    DECISION_ACTIONS,
    EntityRef,
    Vec3,
)
from .decision import DecisionQuery, DecisionService
from .world import AgentBody, WorldQuery

__all__ = [
    "ActionId",
    "ActionLifecycle",
    "AutonomousAction",
    "Decision",
    "DECISION_ACTIONS",
    "EntityRef",
    "Vec3",
    "DecisionQuery",
    "DecisionService",
    "AgentBody",
    "WorldQuery",
]
