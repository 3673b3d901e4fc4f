"""Outcomes of a process-gated serialization."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class Decision(str, Enum):
    """Whether a process-gated action must run now."""

    RUN = "run"
    DEFER = "defer"


class GateOutcome(str, Enum):
    """What a process-gated invocation ended up doing."""

    RAN = "ran"
    DEFERRED = "deferred"
    ABORTED = "aborted"  # lock not held by this owner; retry later


class GateResult(BaseModel):
    """Report of one process-gated invocation."""

    lock_path: str
    outcome: GateOutcome
    changed: bool = False
    process_start: datetime | None = None
    lock_ctime: datetime | None = None
    rerun_time: datetime | None = None
