"""Rerun ledger models.

A record exists for a lock path while a guarded action still owes a run
because this agent failed to get the lock for it.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class RerunRecord(BaseModel):
    """Failure memory for one lock path."""

    fails: int = Field(default=0, ge=0, description="Failed acquisitions since last clear")
    last_attempt: datetime = Field(default_factory=lambda: datetime.now(UTC))


class RerunState(BaseModel):
    """On-disk layout of the rerun ledger."""

    failed_locks: dict[str, RerunRecord] = Field(default_factory=dict)
