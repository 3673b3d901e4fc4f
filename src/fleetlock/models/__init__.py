"""Pydantic data models for fleetlock.

This package defines the data structures shared by the engine:
- Lock entries as persisted by the file coordination store (LockEntry)
- Rerun ledger records (RerunRecord, RerunState)
- Process matching patterns (ProcessPattern)
- Process-gated decisions and their outcome (Decision, GateOutcome, GateResult)
"""

from .decision import Decision, GateOutcome, GateResult
from .lock import LockEntry
from .process import RECOGNIZED_PATTERN_KEYS, ProcessPattern
from .rerun import RerunRecord, RerunState

__all__ = [
    "RECOGNIZED_PATTERN_KEYS",
    "Decision",
    "GateOutcome",
    "GateResult",
    "LockEntry",
    "ProcessPattern",
    "RerunRecord",
    "RerunState",
]
