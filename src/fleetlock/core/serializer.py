"""Entry points for serializing actions across a fleet.

Two modes are offered:

- serialize: acquire the lock, run the action, release; fail loudly if the
  lock never comes free.
- serialize_on_process_state: consult the observed process and the lock
  this agent already holds, then run, defer or abort (see process_gate).
"""

import logging
import time
from collections.abc import Callable, Mapping

from ..constants import DEFAULT_ACQUIRE_TIMEOUT, DEFAULT_LOCK_ROOT, DEFAULT_POLL_INTERVAL
from ..errors import LockAcquisitionTimeout
from ..models import GateResult, ProcessPattern
from ..services.processes import ProcessObserver, PsutilProcessObserver
from ..services.resources import ResourceRegistry
from ..services.store import CoordinationClient
from .guard import ActionGuard
from .ledger import RerunLedger
from .lock_manager import LockCoordinator, lock_path_for
from .process_gate import ProcessGate

logger = logging.getLogger(__name__)


class Serializer:
    """Serialize resource actions through a coordination store.

    Args:
        client: Coordination store shared by the fleet
        registry: Resources actions can target
        ledger: This agent's rerun ledger
        observer: Process observer for process-gated actions
        lock_root: Store path locks are created under
        clock: Monotonic seconds for acquisition deadlines
        sleep: Sleep function used between acquisition attempts
    """

    def __init__(
        self,
        client: CoordinationClient,
        registry: ResourceRegistry,
        ledger: RerunLedger | None = None,
        observer: ProcessObserver | None = None,
        lock_root: str = DEFAULT_LOCK_ROOT,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.registry = registry
        self.ledger = ledger or RerunLedger()
        self.lock_root = lock_root
        self.coordinator = LockCoordinator(client, clock=clock, sleep=sleep)
        self.guard = ActionGuard(self.coordinator)
        self.gate = ProcessGate(
            self.coordinator,
            self.ledger,
            observer or PsutilProcessObserver(),
        )

    def lock_path(self, name: str, lock_name: str | None = None) -> str:
        return lock_path_for(self.lock_root, name, lock_name)

    def serialize(
        self,
        name: str,
        resource: str,
        action: str,
        owner_data: str,
        lock_name: str | None = None,
        timeout: float = DEFAULT_ACQUIRE_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        skip_coordination: bool = False,
    ) -> bool:
        """Run ``action`` on ``resource`` while holding the lock for ``name``.

        Returns:
            Whether the action changed system state

        Raises:
            ResourceNotFound: If ``resource`` is not registered; raised
                before the lock is touched.
            LockAcquisitionTimeout: If the lock was not acquired within
                ``timeout``; a rerun is recorded first.
        """
        target = self.registry.resolve(resource)
        lock_path = self.lock_path(name, lock_name)

        if skip_coordination:
            logger.warning(f"Restart coordination disabled -- skipping lock acquisition on {lock_path}")
            return self.guard.run(
                target, action, lock_path, owner_data, lock_held=False, coordinated=False
            )

        held = self.coordinator.acquire(lock_path, owner_data, timeout, poll_interval)
        if not held:
            self.ledger.record_failure(lock_path)
            raise LockAcquisitionTimeout(lock_path, f"{name} ({resource})", timeout)

        return self.guard.run(target, action, lock_path, owner_data, lock_held=True)

    def serialize_on_process_state(
        self,
        name: str,
        resource: str,
        action: str,
        owner_data: str,
        process_pattern: Mapping[str, str] | ProcessPattern,
        lock_name: str | None = None,
    ) -> GateResult:
        """Run ``action`` only if the process has not restarted since it was owed.

        Raises:
            ConfigurationError: If ``process_pattern`` is empty or uses
                unrecognized keys.
            ResourceNotFound: If ``resource`` is not registered.
        """
        if isinstance(process_pattern, ProcessPattern):
            pattern = process_pattern
        else:
            pattern = ProcessPattern.from_mapping(process_pattern)
        target = self.registry.resolve(resource)
        lock_path = self.lock_path(name, lock_name)
        return self.gate.run(lock_path, target, action, owner_data, pattern)
