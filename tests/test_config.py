"""Tests for fleetlock configuration."""

from pathlib import Path
from unittest import mock

import pytest

from fleetlock.config import (
    FleetlockConfig,
    LockConfig,
    StoreBackend,
    load_config,
    write_config_template,
)
from fleetlock.constants import DEFAULT_ACQUIRE_TIMEOUT, DEFAULT_LOCK_ROOT, DEFAULT_POLL_INTERVAL
from fleetlock.errors import ConfigurationError
from fleetlock.runtime import build_client, build_registry, build_serializer
from fleetlock.services import FileCoordinationClient, MemoryCoordinationClient


def test_defaults() -> None:
    config = FleetlockConfig()
    assert config.lock.root == DEFAULT_LOCK_ROOT
    assert config.lock.acquire_timeout == DEFAULT_ACQUIRE_TIMEOUT
    assert config.lock.poll_interval == DEFAULT_POLL_INTERVAL
    assert config.lock.skip_coordination is False
    assert config.store.backend is StoreBackend.FILE
    assert config.resources == {}


def test_owner_defaults_to_fqdn() -> None:
    with mock.patch("fleetlock.config.socket.getfqdn", return_value="web1.example.com"):
        assert LockConfig().effective_owner() == "web1.example.com"
    assert LockConfig(owner="custom").effective_owner() == "custom"


def test_load_missing_file_returns_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "absent.toml") == FleetlockConfig()


def test_load_config_file(config_file: Path, tmp_path: Path) -> None:
    config = load_config(config_file)
    assert config.lock.acquire_timeout == 0.2
    assert config.store.path == tmp_path / "store"
    assert config.resources["svc"] == {"restart": "true", "broken": "false"}


def test_invalid_toml_raises(tmp_path: Path) -> None:
    config_path = tmp_path / "fleetlock.toml"
    config_path.write_text("[lock\n")
    with pytest.raises(ConfigurationError, match="Invalid config"):
        load_config(config_path)


def test_invalid_values_raise(tmp_path: Path) -> None:
    config_path = tmp_path / "fleetlock.toml"
    config_path.write_text("[lock]\npoll_interval = 0\n")
    with pytest.raises(ConfigurationError):
        load_config(config_path)


def test_template_loads_back(tmp_path: Path) -> None:
    path = write_config_template(tmp_path / "etc" / "fleetlock.toml")
    config = load_config(path)
    assert config.lock.root == DEFAULT_LOCK_ROOT
    assert "service[nginx]" in config.resources
    assert config.resources["service[nginx]"]["restart"] == "systemctl restart nginx"


class TestRuntime:
    """Tests for building engine objects from config."""

    def test_file_backend(self, config_file: Path) -> None:
        client = build_client(load_config(config_file))
        assert isinstance(client, FileCoordinationClient)

    def test_memory_backend(self) -> None:
        config = FleetlockConfig.model_validate({"store": {"backend": "memory"}})
        assert isinstance(build_client(config), MemoryCoordinationClient)

    def test_registry_from_resources(self, config_file: Path) -> None:
        registry = build_registry(load_config(config_file))
        assert registry.names() == ["svc"]
        assert registry.resolve("svc").execute("restart") is True

    def test_serializer_uses_lock_root(self, config_file: Path) -> None:
        serializer = build_serializer(load_config(config_file))
        assert serializer.lock_path("a b") == "/locking_resource/a:b"
