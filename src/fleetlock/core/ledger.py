"""Rerun ledger.

Remembers, per lock path, that this agent failed to get a lock it needed
so that a later invocation still performs the owed action. The ledger
lives in a JSON file local to the agent; without a file it is kept in
memory for the lifetime of the object.
"""

import logging
import os
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from ..errors import LedgerError
from ..models import RerunRecord, RerunState

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RerunLedger:
    """Failure counters and last-attempt times keyed by lock path."""

    def __init__(
        self,
        state_file: Path | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.state_file = Path(state_file) if state_file is not None else None
        self._clock = clock
        self._memory = RerunState()

    def _load(self) -> RerunState:
        if self.state_file is None:
            return self._memory
        if not self.state_file.exists():
            return RerunState()
        try:
            return RerunState.model_validate_json(self.state_file.read_text())
        except (OSError, ValidationError) as e:
            raise LedgerError(f"Cannot read rerun ledger {self.state_file}: {e}") from e

    def _save(self, state: RerunState) -> None:
        if self.state_file is None:
            self._memory = state
            return
        tmp_file = self.state_file.with_name(self.state_file.name + ".tmp")
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_file.write_text(state.model_dump_json(indent=2))
            os.replace(tmp_file, self.state_file)
        except OSError as e:
            raise LedgerError(f"Cannot write rerun ledger {self.state_file}: {e}") from e

    def record_failure(self, path: str) -> RerunRecord:
        """Count a failed lock acquisition for ``path``."""
        state = self._load()
        record = state.failed_locks.get(path, RerunRecord())
        record = RerunRecord(fails=record.fails + 1, last_attempt=self._clock())
        state.failed_locks[path] = record
        self._save(state)
        logger.info(f"Recorded rerun for {path} (failures: {record.fails})")
        return record

    def get(self, path: str) -> RerunRecord | None:
        return self._load().failed_locks.get(path)

    def last_attempt(self, path: str) -> datetime | None:
        """Return when acquisition of ``path`` last failed, None if nothing is owed."""
        record = self.get(path)
        return record.last_attempt if record else None

    def clear(self, path: str) -> bool:
        """Forget ``path``; returns False if there was no record."""
        state = self._load()
        if state.failed_locks.pop(path, None) is None:
            return False
        self._save(state)
        logger.info(f"Cleared rerun state for {path}")
        return True

    def records(self) -> dict[str, RerunRecord]:
        return dict(self._load().failed_locks)
