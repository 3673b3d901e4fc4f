"""Build engine objects from configuration."""

import logging

from .config import FleetlockConfig, StoreBackend
from .core import RerunLedger, Serializer
from .services import (
    CommandResource,
    CoordinationClient,
    FileCoordinationClient,
    MemoryCoordinationClient,
    ProcessObserver,
    ResourceRegistry,
)

logger = logging.getLogger(__name__)


def build_client(config: FleetlockConfig) -> CoordinationClient:
    """Create the coordination store client selected by ``config.store``."""
    if config.store.backend is StoreBackend.MEMORY:
        logger.warning("Using in-memory coordination store; locks are not shared")
        return MemoryCoordinationClient()
    return FileCoordinationClient(config.store.path.expanduser())


def build_registry(config: FleetlockConfig) -> ResourceRegistry:
    """Register a CommandResource for every ``[resources.*]`` table."""
    registry = ResourceRegistry()
    for name, actions in config.resources.items():
        registry.register(CommandResource(name, actions))
    return registry


def build_ledger(config: FleetlockConfig) -> RerunLedger:
    return RerunLedger(config.ledger.path.expanduser())


def build_serializer(
    config: FleetlockConfig,
    client: CoordinationClient | None = None,
    observer: ProcessObserver | None = None,
) -> Serializer:
    """Wire a Serializer from configuration, optionally overriding collaborators."""
    return Serializer(
        client=client or build_client(config),
        registry=build_registry(config),
        ledger=build_ledger(config),
        observer=observer,
        lock_root=config.lock.root,
    )
