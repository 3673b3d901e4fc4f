"""Exception hierarchy for fleetlock."""


class FleetlockError(Exception):
    """Base exception for fleetlock errors."""


class ConfigurationError(FleetlockError):
    """Raised for invalid configuration such as a bad process pattern."""


class ResourceNotFound(FleetlockError):
    """Raised when a target resource name does not resolve."""


class LockAcquisitionTimeout(FleetlockError):
    """Raised when a lock could not be acquired before the deadline."""

    def __init__(self, path: str, name: str, timeout: float) -> None:
        self.path = path
        self.name = name
        self.timeout = timeout
        super().__init__(
            f"Failed to acquire lock for {name} within {timeout:g}s, path {path}"
        )


class ReleaseError(FleetlockError):
    """Raised internally when a lock entry cannot be released."""


class CoordinationError(FleetlockError):
    """Raised when the coordination store cannot complete an operation."""


class GuardError(FleetlockError):
    """Raised when a guarded action is invoked without holding its lock."""


class ActionError(FleetlockError):
    """Raised when a resource action fails."""


class LedgerError(FleetlockError):
    """Raised when the rerun ledger cannot be read or written."""
