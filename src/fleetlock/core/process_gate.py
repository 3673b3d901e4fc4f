"""Process-gated serialization.

Decides whether an action tied to a process's lifecycle (typically a
service restart) must run now. Three timestamps drive the decision:

- process_start: when the observed process last started
- lock_ctime: when the lock this agent holds was created
- rerun_time: when this agent last failed to get the lock

If the process started after the lock was created and after any recorded
failure, the restart the lock was taken for has already happened and
repeating it would only cause a restart storm.
"""

import logging
from datetime import datetime

from ..constants import BEGINNING_OF_TIME, UNIX_EPOCH
from ..models import Decision, GateOutcome, GateResult, ProcessPattern
from ..services.processes import ProcessObserver
from ..services.resources import TargetResource
from .guard import ActionGuard
from .ledger import RerunLedger
from .lock_manager import LockCoordinator

logger = logging.getLogger(__name__)


def decide(
    process_start: datetime | None,
    lock_ctime: datetime | None,
    rerun_time: datetime | None,
) -> Decision:
    """Decide whether a process-gated action runs now or is deferred."""
    if process_start is None:
        return Decision.RUN

    lock_and_rerun = lock_ctime is not None and process_start <= (rerun_time or BEGINNING_OF_TIME)
    if lock_and_rerun or process_start <= (lock_ctime or UNIX_EPOCH):
        return Decision.RUN
    return Decision.DEFER


class ProcessGate:
    """Runs, defers or aborts an action based on process and lock state."""

    def __init__(
        self,
        coordinator: LockCoordinator,
        ledger: RerunLedger,
        observer: ProcessObserver,
    ) -> None:
        self.coordinator = coordinator
        self.ledger = ledger
        self.observer = observer
        self.guard = ActionGuard(coordinator)

    def run(
        self,
        lock_path: str,
        resource: TargetResource,
        verb: str,
        owner_data: str,
        pattern: ProcessPattern,
    ) -> GateResult:
        """Evaluate the gate for one invocation.

        A process that is not running has nothing to coordinate around, so
        the action runs without touching the lock. A running process is
        only acted upon while this owner holds the lock; otherwise a rerun
        is recorded and the invocation aborts for a later pass to finish.
        """
        process_start = self.observer.start_time_of(pattern)
        lock_ctime = None

        if process_start is not None:
            if not self.coordinator.matches(lock_path, owner_data):
                record = self.ledger.record_failure(lock_path)
                logger.warning(
                    f"Lock {lock_path} is not held by {owner_data}; "
                    f"leaving {verb} of {resource.name} for a later run "
                    f"(failures: {record.fails})"
                )
                return GateResult(
                    lock_path=lock_path,
                    outcome=GateOutcome.ABORTED,
                    process_start=process_start,
                    rerun_time=record.last_attempt,
                )
            lock_ctime = self.coordinator.creation_time(lock_path)
            logger.info(f"Holding lock {lock_path} created at {lock_ctime}")

        rerun_time = self.ledger.last_attempt(lock_path)
        decision = decide(process_start, lock_ctime, rerun_time)
        summary = (
            f"lock time {lock_ctime}; rerun state {rerun_time}; process started {process_start}"
        )

        if decision is Decision.DEFER:
            logger.warning(f"Not running {verb} on {resource.name}: {summary}")
            self.coordinator.release(lock_path, owner_data)
            return GateResult(
                lock_path=lock_path,
                outcome=GateOutcome.DEFERRED,
                process_start=process_start,
                lock_ctime=lock_ctime,
                rerun_time=rerun_time,
            )

        logger.warning(f"Running {verb} on {resource.name}: {summary}")
        running = process_start is not None
        changed = self.guard.run(
            resource,
            verb,
            lock_path,
            owner_data,
            lock_held=running,
            coordinated=running,
        )
        self.ledger.clear(lock_path)
        return GateResult(
            lock_path=lock_path,
            outcome=GateOutcome.RAN,
            changed=changed,
            process_start=process_start,
            lock_ctime=lock_ctime,
            rerun_time=rerun_time,
        )
