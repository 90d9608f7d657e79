# src/actions/__init__.py
"""
Action bus used to dispatch autonomous actions and observe their lifecycle.
"""

from __future__ import annotations

from .bus import ActionBus, ActionMessage, Subscription

__all__ = [
    "ActionBus",
    "ActionMessage",
    "Subscription",
]
