"""Tests for coordination store clients."""

import threading
from datetime import UTC, datetime
from pathlib import Path

import pytest

from fleetlock.errors import ConfigurationError, CoordinationError
from fleetlock.services.store import (
    FileCoordinationClient,
    MemoryCoordinationClient,
    split_path,
)

PATH = "/locking_resource/service[nginx]:restart"


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path: Path):
    """Run each contract test against both backends."""
    if request.param == "memory":
        return MemoryCoordinationClient()
    return FileCoordinationClient(tmp_path / "store")


class TestSplitPath:
    """Tests for split_path function."""

    def test_splits_segments(self) -> None:
        assert split_path("/a/b:c") == ["a", "b:c"]

    @pytest.mark.parametrize("bad", ["relative", "/a//b", "/a/../b", "/", "/a/."])
    def test_rejects_invalid_paths(self, bad: str) -> None:
        with pytest.raises(ConfigurationError):
            split_path(bad)


class TestStoreContract:
    """Behaviour shared by every CoordinationClient."""

    def test_create_if_absent_is_exclusive(self, store) -> None:
        assert store.create_if_absent(PATH, "host-a") is True
        assert store.create_if_absent(PATH, "host-b") is False
        assert store.get(PATH) == "host-a"

    def test_get_missing_is_none(self, store) -> None:
        assert store.get(PATH) is None
        assert store.creation_time(PATH) is None

    def test_creation_time_is_recorded(self, store) -> None:
        before = datetime.now(UTC)
        store.create_if_absent(PATH, "host-a")
        created = store.creation_time(PATH)
        assert created is not None
        assert before <= created <= datetime.now(UTC)

    def test_delete_then_recreate(self, store) -> None:
        store.create_if_absent(PATH, "host-a")
        store.delete(PATH)
        assert store.get(PATH) is None
        assert store.create_if_absent(PATH, "host-b") is True

    def test_delete_missing_raises(self, store) -> None:
        with pytest.raises(CoordinationError, match="No node"):
            store.delete(PATH)

    def test_nested_paths_are_independent(self, store) -> None:
        assert store.create_if_absent("/locks/a", "x") is True
        assert store.create_if_absent("/locks/a/b", "y") is True
        assert store.get("/locks/a") == "x"
        assert store.get("/locks/a/b") == "y"
        assert store.paths() == ["/locks/a", "/locks/a/b"]

    def test_concurrent_creates_have_one_winner(self, store) -> None:
        barrier = threading.Barrier(6)
        wins: list[str] = []

        def create(owner: str) -> None:
            barrier.wait()
            if store.create_if_absent(PATH, owner):
                wins.append(owner)

        threads = [threading.Thread(target=create, args=(f"host-{i}",)) for i in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(wins) == 1
        assert store.get(PATH) == wins[0]


class TestFileCoordinationClient:
    """Tests specific to the shared-directory backend."""

    def test_entries_visible_to_other_clients(self, tmp_path: Path) -> None:
        """Two agents pointing at the same directory share locks."""
        a = FileCoordinationClient(tmp_path)
        b = FileCoordinationClient(tmp_path)
        a.create_if_absent(PATH, "host-a")
        assert b.get(PATH) == "host-a"
        assert b.create_if_absent(PATH, "host-b") is False

    def test_no_temporary_files_left(self, tmp_path: Path) -> None:
        client = FileCoordinationClient(tmp_path)
        client.create_if_absent(PATH, "host-a")
        client.create_if_absent(PATH, "host-b")
        files = [p.name for p in tmp_path.rglob("*") if p.is_file()]
        assert files == ["service[nginx]:restart.lock"]

    def test_corrupted_entry_raises(self, tmp_path: Path) -> None:
        client = FileCoordinationClient(tmp_path)
        client.create_if_absent(PATH, "host-a")
        (tmp_path / "locking_resource" / "service[nginx]:restart.lock").write_text("{")
        with pytest.raises(CoordinationError, match="Corrupted"):
            client.get(PATH)

    def test_paths_on_missing_root(self, tmp_path: Path) -> None:
        assert FileCoordinationClient(tmp_path / "absent").paths() == []


def test_memory_client_uses_clock() -> None:
    stamp = datetime(2020, 1, 1, tzinfo=UTC)
    client = MemoryCoordinationClient(clock=lambda: stamp)
    client.create_if_absent(PATH, "host-a")
    assert client.creation_time(PATH) == stamp
