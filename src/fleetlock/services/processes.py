"""Process observation.

The engine only asks one question of the process table: when did the
process matching a pattern last start?
"""

import logging
import os
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Protocol

import psutil

from ..models import ProcessPattern

logger = logging.getLogger(__name__)


class ProcessObserver(Protocol):
    """Contract for looking up a process start time."""

    def start_time_of(self, pattern: ProcessPattern) -> datetime | None:
        """Return when the matching process started, or None if none runs."""
        ...


def _matches(info: dict, pattern: ProcessPattern) -> bool:
    if pattern.user is not None and info.get("username") != pattern.user:
        return False
    if pattern.command_string is not None:
        cmdline = " ".join(info.get("cmdline") or [])
        if pattern.command_string not in cmdline:
            return False
    return True


def own_lineage() -> set[int]:
    """PIDs of the current process and every process above it."""
    pids = {os.getpid(), os.getppid()}
    try:
        pids.update(parent.pid for parent in psutil.Process().parents())
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        logger.debug("Could not walk parent processes; ignoring only self and parent")
    return pids


class PsutilProcessObserver:
    """Scan the local process table with psutil.

    When several processes match (a service master and its workers, say),
    the oldest start time wins: workers being respawned is not a restart of
    the service. The calling process and its ancestors are never considered
    a match: their command lines often contain the pattern (`sudo`, `sh -c`,
    cron wrappers).
    """

    ATTRS = ["pid", "username", "cmdline", "create_time"]

    def __init__(self, ignore_pids: Iterable[int] | None = None) -> None:
        self.ignore_pids = set(ignore_pids) if ignore_pids is not None else own_lineage()

    def start_time_of(self, pattern: ProcessPattern) -> datetime | None:
        earliest: float | None = None
        for proc in psutil.process_iter(self.ATTRS):
            try:
                info = proc.info
                if info["pid"] in self.ignore_pids or not _matches(info, pattern):
                    continue
                created = info.get("create_time")
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
            if created is None:
                continue
            if earliest is None or created < earliest:
                earliest = created

        if earliest is None:
            logger.debug(f"No process matches {pattern.as_options()}")
            return None
        started = datetime.fromtimestamp(earliest, UTC)
        logger.debug(f"Process matching {pattern.as_options()} started at {started}")
        return started


class StaticProcessObserver:
    """Observer returning a fixed start time; for dry runs and tests."""

    def __init__(self, start_time: datetime | None = None) -> None:
        self.start_time = start_time
        self.queries: list[ProcessPattern] = []

    def start_time_of(self, pattern: ProcessPattern) -> datetime | None:
        self.queries.append(pattern)
        return self.start_time
