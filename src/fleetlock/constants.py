"""Constants for fleetlock."""

from datetime import UTC, datetime

# Lock acquisition defaults (seconds)
DEFAULT_ACQUIRE_TIMEOUT = 30.0
DEFAULT_POLL_INTERVAL = 0.5

DEFAULT_LOCK_ROOT = "/locking_resource"
DEFAULT_CONFIG_FILE = "fleetlock.toml"
DEFAULT_LEDGER_FILE = ".fleetlock/failed_locks.json"

# Timeout for commands bound to resource actions
ACTION_TIMEOUT = 600  # 10 minutes for service restarts

# Comparison fallbacks for absent timestamps
BEGINNING_OF_TIME = datetime.min.replace(tzinfo=UTC)
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# CLI exit codes
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_RESOURCE_NOT_FOUND = 3
EXIT_RETRY_LATER = 4
