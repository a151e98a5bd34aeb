"""
Replay: rebuild router state from the ledger after a restart.

Replay must be 100% deterministic: same ledger -> same context window.
"""

from .runner import ReplayResult, restore_context, restore_router

__all__ = [
    "ReplayResult",
    "restore_context",
    "restore_router",
]
