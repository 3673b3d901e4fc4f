"""Guarded execution of a resource action under a lock."""

import logging

from ..errors import GuardError
from ..services.resources import TargetResource
from .lock_manager import LockCoordinator

logger = logging.getLogger(__name__)


class ActionGuard:
    """Run an action exactly once and release its lock afterwards.

    The guard does not retry: idempotency and retries of the action belong
    to the caller. Errors raised by the action propagate unchanged, after
    the lock has been released.
    """

    def __init__(self, coordinator: LockCoordinator) -> None:
        self.coordinator = coordinator

    def run(
        self,
        resource: TargetResource,
        verb: str,
        lock_path: str,
        owner_data: str,
        lock_held: bool,
        coordinated: bool = True,
    ) -> bool:
        """Perform ``verb`` on ``resource``.

        Args:
            resource: Resolved target resource
            verb: Action to perform
            lock_path: Lock guarding the action
            owner_data: Owner the lock is held as
            lock_held: Whether the caller holds the lock
            coordinated: False when the caller deliberately runs without
                coordination (disabled, or nothing to coordinate around)

        Returns:
            Whether the action changed system state

        Raises:
            GuardError: If coordination is on and the lock is not held.
        """
        if coordinated and not lock_held:
            raise GuardError(
                f"Refusing to {verb} {resource.name}: lock {lock_path} is not held"
            )

        try:
            changed = resource.execute(verb)
        finally:
            if lock_held:
                self.coordinator.release(lock_path, owner_data)

        logger.info(f"{resource.name} {verb}: {'changed' if changed else 'unchanged'}")
        return changed
