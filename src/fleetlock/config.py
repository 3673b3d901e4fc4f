"""Configuration management for fleetlock."""

import socket
import tomllib
from enum import Enum
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    DEFAULT_ACQUIRE_TIMEOUT,
    DEFAULT_LEDGER_FILE,
    DEFAULT_LOCK_ROOT,
    DEFAULT_POLL_INTERVAL,
)
from .errors import ConfigurationError


class StoreBackend(str, Enum):
    """Coordination store implementations."""

    FILE = "file"
    MEMORY = "memory"


class LockConfig(BaseModel):
    """Lock naming and acquisition settings."""

    root: str = Field(default=DEFAULT_LOCK_ROOT, description="Store path locks live under")
    acquire_timeout: float = Field(default=DEFAULT_ACQUIRE_TIMEOUT, ge=0)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    skip_coordination: bool = False
    owner: str | None = None  # Defaults to the host's FQDN

    def effective_owner(self) -> str:
        """Owner data written into locks this agent creates."""
        return self.owner or socket.getfqdn()


class StoreConfig(BaseModel):
    """Where the shared coordination store lives."""

    backend: StoreBackend = StoreBackend.FILE
    path: Path = Field(
        default=Path("/var/lib/fleetlock"),
        description="Directory shared by every agent (file backend)",
    )


class LedgerConfig(BaseModel):
    """Where this agent keeps its rerun ledger."""

    path: Path = Path(DEFAULT_LEDGER_FILE)


class FleetlockConfig(BaseModel):
    """Root configuration for fleetlock."""

    lock: LockConfig = Field(default_factory=LockConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    # resource name -> {verb: shell command}
    resources: dict[str, dict[str, str]] = Field(default_factory=dict)


def load_config(config_path: Path) -> FleetlockConfig:
    """Load config from a TOML file.

    Args:
        config_path: Path to the config file

    Returns:
        Loaded configuration, or defaults if the file doesn't exist

    Raises:
        ConfigurationError: If the file is not valid TOML or fails validation
    """
    if not config_path.exists():
        return FleetlockConfig()
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        return FleetlockConfig.model_validate(data)
    except (tomllib.TOMLDecodeError, ValidationError) as e:
        raise ConfigurationError(f"Invalid config {config_path}: {e}") from e


def write_config_template(config_path: Path) -> Path:
    """Write a default config template.

    Args:
        config_path: Where to write the template

    Returns:
        Path to the written config file
    """
    template = {
        "lock": {
            "root": DEFAULT_LOCK_ROOT,
            "acquire_timeout": DEFAULT_ACQUIRE_TIMEOUT,
            "poll_interval": DEFAULT_POLL_INTERVAL,
            "skip_coordination": False,
        },
        "store": {"backend": StoreBackend.FILE.value, "path": "/var/lib/fleetlock"},
        "ledger": {"path": DEFAULT_LEDGER_FILE},
        "resources": {
            "service[nginx]": {
                "restart": "systemctl restart nginx",
                "reload": "systemctl reload nginx",
            },
        },
    }
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
