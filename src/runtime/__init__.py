# path: src/runtime/__init__.py

"""
Runtime support shared by the autonomy packages.

failure_mitigation holds the structured failure events (decision
rejected, action failed, persistence failure) emitted by the scheduler
and the memory store.
"""
