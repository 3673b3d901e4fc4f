"""Coordination store clients.

The engine only needs four capabilities from a strongly-consistent,
path-addressed store: atomic create-if-absent, read, delete and the
creation time of an entry. Paths are ``/``-delimited strings such as
``/locking_resource/service[nginx]:restart``.
"""

import contextlib
import logging
import os
import threading
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from ..errors import ConfigurationError, CoordinationError
from ..models import LockEntry

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = ".lock"


class CoordinationClient(Protocol):
    """Contract for the shared coordination store."""

    def create_if_absent(self, path: str, value: str) -> bool:
        """Create an entry at path; False if one already exists."""
        ...

    def get(self, path: str) -> str | None:
        """Return the entry's value, or None if there is no entry."""
        ...

    def delete(self, path: str) -> None:
        """Delete the entry at path.

        Raises:
            CoordinationError: If there is no entry or the store refuses.
        """
        ...

    def creation_time(self, path: str) -> datetime | None:
        """Return when the entry was created, or None if there is no entry."""
        ...


def split_path(path: str) -> list[str]:
    """Split a store path into its segments.

    Raises:
        ConfigurationError: If the path is not absolute or contains empty,
            ``.`` or ``..`` segments.
    """
    if not path.startswith("/"):
        raise ConfigurationError(f"Store paths must be absolute: {path!r}")
    segments = path[1:].split("/")
    if any(s in ("", ".", "..") for s in segments):
        raise ConfigurationError(f"Invalid store path: {path!r}")
    return segments


def _utcnow() -> datetime:
    return datetime.now(UTC)


class MemoryCoordinationClient:
    """In-process store, safe to share between threads.

    Useful for tests and for serializing actions among processes that share
    one interpreter. Creation times come from ``clock`` so callers can
    control them.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._entries: dict[str, LockEntry] = {}
        self._mutex = threading.Lock()
        self._clock = clock

    def create_if_absent(self, path: str, value: str) -> bool:
        split_path(path)
        with self._mutex:
            if path in self._entries:
                return False
            self._entries[path] = LockEntry(value=value, created_at=self._clock())
            return True

    def get(self, path: str) -> str | None:
        with self._mutex:
            entry = self._entries.get(path)
        return entry.value if entry else None

    def delete(self, path: str) -> None:
        with self._mutex:
            if self._entries.pop(path, None) is None:
                raise CoordinationError(f"No node at {path}")

    def creation_time(self, path: str) -> datetime | None:
        with self._mutex:
            entry = self._entries.get(path)
        return entry.created_at if entry else None

    def paths(self) -> list[str]:
        with self._mutex:
            return sorted(self._entries)


class FileCoordinationClient:
    """Store backed by a directory, typically on a filesystem every agent mounts.

    Each store path maps to a JSON file holding a LockEntry. Entries are
    written to a private temporary file first and then hard-linked into
    place: ``link()`` fails if the target exists, so creation is atomic and
    readers never observe a partially written entry.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _entry_file(self, path: str) -> Path:
        segments = split_path(path)
        *parents, leaf = segments
        return self.root.joinpath(*parents, leaf + ENTRY_SUFFIX)

    def _read(self, path: str) -> LockEntry | None:
        entry_file = self._entry_file(path)
        try:
            content = entry_file.read_text()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CoordinationError(f"Cannot read {path}: {e}") from e
        try:
            return LockEntry.model_validate_json(content)
        except ValidationError as e:
            raise CoordinationError(f"Corrupted entry at {path}") from e

    def create_if_absent(self, path: str, value: str) -> bool:
        entry_file = self._entry_file(path)
        entry = LockEntry(value=value)
        tmp_file = entry_file.with_name(f".{entry_file.name}.{uuid.uuid4().hex}")
        try:
            entry_file.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(tmp_file), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            try:
                os.write(fd, entry.model_dump_json().encode())
                os.fsync(fd)
            finally:
                os.close(fd)
            try:
                os.link(tmp_file, entry_file)
            except FileExistsError:
                return False
            logger.debug(f"Created {path} in {self.root}")
            return True
        except OSError as e:
            raise CoordinationError(f"Cannot create {path}: {e}") from e
        finally:
            with contextlib.suppress(FileNotFoundError):
                tmp_file.unlink()

    def get(self, path: str) -> str | None:
        entry = self._read(path)
        return entry.value if entry else None

    def delete(self, path: str) -> None:
        try:
            self._entry_file(path).unlink()
        except FileNotFoundError:
            raise CoordinationError(f"No node at {path}") from None
        except OSError as e:
            raise CoordinationError(f"Cannot delete {path}: {e}") from e

    def creation_time(self, path: str) -> datetime | None:
        entry = self._read(path)
        return entry.created_at if entry else None

    def paths(self) -> list[str]:
        """List every entry path currently in the store."""
        if not self.root.exists():
            return []
        found = []
        for entry_file in self.root.rglob(f"*{ENTRY_SUFFIX}"):
            if entry_file.name.startswith("."):
                continue
            relative = entry_file.relative_to(self.root).as_posix()
            found.append("/" + relative[: -len(ENTRY_SUFFIX)])
        return sorted(found)
