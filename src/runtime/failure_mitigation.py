# path: src/runtime/failure_mitigation.py

"""
Failure handling helpers for the autonomy core.

This module centralizes how recoverable failures are turned into structured
monitoring events. It DOES NOT detect failures itself; the scheduler, the
decision service and the memory store call these helpers when they hit
trouble, then continue on their degraded path.

Failure classes covered (all non-fatal):

1) Decision unavailable
   - transport / timeout / parse failure of the decision query
   - emit_decision_failure(subtype="DECISION_UNAVAILABLE", ...)

2) Low-confidence decision
   - emit_decision_failure(subtype="DECISION_LOW_CONFIDENCE", ...)

3) Unmapped action
   - decision names an action outside the whitelist
   - emit_decision_failure(subtype="DECISION_UNMAPPED_ACTION", ...)

4) Action outcome failure
   - the dispatched action failed in the world
   - emit_action_failure(...)

5) Persistence failure
   - memory file read / write error
   - emit_persistence_failure(...)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event


JsonDict = Dict[str, Any]

DECISION_UNAVAILABLE = "DECISION_UNAVAILABLE"
DECISION_LOW_CONFIDENCE = "DECISION_LOW_CONFIDENCE"
DECISION_UNMAPPED_ACTION = "DECISION_UNMAPPED_ACTION"
ACTION_FAILED = "ACTION_FAILED"
PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"


# ------------------------------------------------------------------------------
# 1-3. Decision failures
# ------------------------------------------------------------------------------

def emit_decision_failure(
    bus: Optional[EventBus],
    *,
    subtype: str,
    cycle_id: Optional[str],
    context_hash: str,
    error_repr: Optional[str] = None,
    meta: Optional[JsonDict] = None,
) -> None:
    """
    Emit a DECISION_REJECTED event describing why the scheduler fell back
    to the weighted-random generator.

    Example:

        try:
            decision = await asyncio.wait_for(service.decide(query), timeout)
        except asyncio.TimeoutError as exc:
            emit_decision_failure(
                bus,
                subtype=DECISION_UNAVAILABLE,
                cycle_id=cycle_id,
                context_hash=context_hash,
                error_repr=repr(exc),
                meta={"timeout_s": timeout},
            )
    """
    payload: JsonDict = {
        "subtype": subtype,
        "context_hash": context_hash,
        "error": error_repr,
        "meta": meta or {},
    }

    log_event(
        bus=bus,
        module="autonomy.decision",
        event_type=EventType.DECISION_REJECTED,
        message=f"Decision rejected ({subtype}); falling back",
        payload=payload,
        correlation_id=cycle_id,
    )


# ------------------------------------------------------------------------------
# 4. Action outcome failure
# ------------------------------------------------------------------------------

def emit_action_failure(
    bus: Optional[EventBus],
    *,
    cycle_id: Optional[str],
    action_name: str,
    target: Optional[str],
    error_repr: Optional[str],
    will_retry: bool,
    module_name: str = "autonomy.scheduler",
) -> None:
    """
    Emit a LOG event for an autonomous action that failed in the world.

    `will_retry` records whether a ReAct retry has been scheduled for it.
    """
    payload: JsonDict = {
        "subtype": ACTION_FAILED,
        "action_name": action_name,
        "target": target,
        "success": False,
        "error": error_repr,
        "will_retry": will_retry,
    }

    log_event(
        bus=bus,
        module=module_name,
        event_type=EventType.LOG,
        message=f"Action failed: {action_name}",
        payload=payload,
        correlation_id=cycle_id,
    )


# ------------------------------------------------------------------------------
# 5. Persistence failure
# ------------------------------------------------------------------------------

def emit_persistence_failure(
    bus: Optional[EventBus],
    *,
    operation: str,
    path: str,
    error_repr: str,
) -> None:
    """
    Emit a LOG event when loading or saving the memory file fails.

    operation is "load" (store starts fresh) or "save" (store stays
    resident and retries on the next save interval).
    """
    payload: JsonDict = {
        "subtype": PERSISTENCE_FAILURE,
        "operation": operation,
        "path": path,
        "error": error_repr,
    }

    log_event(
        bus=bus,
        module="memory.store",
        event_type=EventType.LOG,
        message=f"Memory {operation} failed; continuing in memory",
        payload=payload,
        correlation_id=None,
    )
