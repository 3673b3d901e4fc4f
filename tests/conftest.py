"""Shared test fixtures for fleetlock tests."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fleetlock.core import LockCoordinator, RerunLedger, Serializer
from fleetlock.services import (
    MemoryCoordinationClient,
    ResourceRegistry,
    StaticProcessObserver,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def at(minutes: int) -> datetime:
    """Timestamp ``minutes`` after T0."""
    return T0 + timedelta(minutes=minutes)


class FakeClock:
    """Monotonic clock that only advances when sleep() is called."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class CountingClient(MemoryCoordinationClient):
    """Memory store that counts create attempts."""

    def __init__(self, clock: Callable[[], datetime] = lambda: T0) -> None:
        super().__init__(clock=clock)
        self.create_calls = 0

    def create_if_absent(self, path: str, value: str) -> bool:
        self.create_calls += 1
        return super().create_if_absent(path, value)


class RecordingResource:
    """Resource that records every verb it was asked to perform."""

    def __init__(self, name: str = "service[nginx]", changed: bool = True) -> None:
        self.name = name
        self.changed = changed
        self.calls: list[str] = []

    def execute(self, verb: str) -> bool:
        self.calls.append(verb)
        return self.changed


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handlers the CLI installs on the fleetlock logger."""
    yield
    logger = logging.getLogger("fleetlock")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client() -> CountingClient:
    return CountingClient()


@pytest.fixture
def coordinator(client: CountingClient, clock: FakeClock) -> LockCoordinator:
    return LockCoordinator(client, clock=clock, sleep=clock.sleep)


@pytest.fixture
def ledger() -> RerunLedger:
    return RerunLedger(clock=lambda: at(0))


@pytest.fixture
def resource() -> RecordingResource:
    return RecordingResource()


@pytest.fixture
def observer() -> StaticProcessObserver:
    """Observer reporting that no matching process runs."""
    return StaticProcessObserver(None)


@pytest.fixture
def serializer(
    client: CountingClient,
    ledger: RerunLedger,
    observer: StaticProcessObserver,
    resource: RecordingResource,
    clock: FakeClock,
) -> Serializer:
    return Serializer(
        client=client,
        registry=ResourceRegistry({resource.name: resource}),
        ledger=ledger,
        observer=observer,
        clock=clock,
        sleep=clock.sleep,
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a config using a temporary shared store and ledger."""
    config = tmp_path / "fleetlock.toml"
    config.write_text(
        f"""[lock]
root = "/locking_resource"
acquire_timeout = 0.2
poll_interval = 0.05

[store]
backend = "file"
path = "{tmp_path / 'store'}"

[ledger]
path = "{tmp_path / 'ledger.json'}"

[resources.svc]
restart = "true"
broken = "false"
"""
    )
    return config
