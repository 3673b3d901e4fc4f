"""Lock coordination over a shared store.

Locks are entries in the coordination store whose value names the owner.
Acquisition relies on the store's atomic create-if-absent: at most one
agent can create a given path, everyone else polls at a fixed interval
until a deadline passes. A lock left behind by a crashed run of the same
owner is reclaimed immediately; a lock owned by anyone else is never
broken.
"""

import logging
import posixpath
import re
import time
from collections.abc import Callable
from datetime import datetime

from ..constants import DEFAULT_ACQUIRE_TIMEOUT, DEFAULT_LOCK_ROOT, DEFAULT_POLL_INTERVAL
from ..errors import CoordinationError, ReleaseError
from ..services.store import CoordinationClient, split_path

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s")


def lock_path_for(root: str, name: str, lock_name: str | None = None) -> str:
    """Compute the store path of the lock guarding ``name``.

    Whitespace in ``name`` is replaced by ``:`` so human-readable resource
    names map to a single path segment. An explicit ``lock_name`` is used
    as given: relative names are placed under ``root``, absolute ones are
    used verbatim.

    Args:
        root: Store path all locks live under
        name: Human-readable name of the serialized action
        lock_name: Optional explicit lock name overriding ``name``

    Returns:
        Absolute store path of the lock
    """
    leaf = lock_name or _WHITESPACE.sub(":", name)
    path = leaf if leaf.startswith("/") else posixpath.join(root or DEFAULT_LOCK_ROOT, leaf)
    split_path(path)
    return path


class LockCoordinator:
    """Acquire, inspect and release owner-tagged locks.

    Individual store calls are deliberately not given a timeout: abandoning
    a call midway risks a dangling entry or a broken client connection, so
    the only bound is on the number of attempts, checked between them.

    Args:
        client: Coordination store client
        clock: Monotonic seconds, used for the acquisition deadline
        sleep: Called with the poll interval between attempts
    """

    def __init__(
        self,
        client: CoordinationClient,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self._clock = clock
        self._sleep = sleep

    def matches(self, path: str, owner_data: str) -> bool:
        """Return True if ``path`` is locked by ``owner_data``."""
        return self.client.get(path) == owner_data

    def creation_time(self, path: str) -> datetime | None:
        """Return when the lock at ``path`` was created, None if unlocked."""
        return self.client.creation_time(path)

    def acquire(
        self,
        path: str,
        owner_data: str,
        timeout: float = DEFAULT_ACQUIRE_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> bool:
        """Try to take the lock at ``path`` for ``owner_data``.

        A lock already holding ``owner_data`` is one this owner created in
        an earlier, interrupted run; it counts as held without a create.

        Returns:
            True if the lock is held on return, False once ``timeout``
            seconds passed without a successful create.
        """
        logger.info(f"Acquiring lock {path}")
        if self.matches(path, owner_data):
            logger.info(f"Found stale lock {path} owned by {owner_data}, reclaiming it")
            return True

        deadline = self._clock() + timeout
        attempts = 0
        while True:
            attempts += 1
            if self.client.create_if_absent(path, owner_data):
                logger.info(f"Acquired new lock {path}")
                return True
            logger.debug(f"Lock {path} is busy (attempt {attempts})")
            self._sleep(poll_interval)
            if self._clock() >= deadline:
                break

        logger.warning(f"Could not acquire lock {path} after {attempts} attempts in {timeout:g}s")
        return False

    def release(self, path: str, owner_data: str) -> bool:
        """Release the lock at ``path`` if ``owner_data`` holds it.

        Never raises: a missing or foreign entry, or a store refusing the
        delete, is logged as a warning.

        The ownership check and the delete are separate store calls. If the
        entry is deleted and re-created by another owner between them, that
        owner's lock is removed; the store contract has no compare-and-delete.

        Returns:
            True if an entry was deleted
        """
        try:
            current = self.client.get(path)
            if current is None:
                raise ReleaseError(f"No lock to release at {path}")
            if current != owner_data:
                raise ReleaseError(f"Lock {path} is held by {current!r}, not {owner_data!r}")
            self.client.delete(path)
        except (ReleaseError, CoordinationError) as e:
            logger.warning(str(e))
            return False
        logger.info(f"Released lock {path}")
        return True
