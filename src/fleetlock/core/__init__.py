"""Core lock coordination and rerun decision logic.

- lock_manager: lock acquisition, release and inspection
- ledger: rerun ledger persisted per agent
- guard: guarded execution of resource actions
- process_gate: process-gated run/defer decisions
- serializer: the two caller-facing serialization modes
"""

from .guard import ActionGuard
from .ledger import RerunLedger
from .lock_manager import LockCoordinator, lock_path_for
from .process_gate import ProcessGate, decide
from .serializer import Serializer

__all__ = [
    "ActionGuard",
    "LockCoordinator",
    "ProcessGate",
    "RerunLedger",
    "Serializer",
    "decide",
    "lock_path_for",
]
