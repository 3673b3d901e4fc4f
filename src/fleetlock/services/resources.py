"""Target resources that guarded actions act upon.

A resource is anything exposing ``execute(verb) -> bool``, the boolean
reporting whether the action changed system state. Resources are looked
up by name in a ResourceRegistry.
"""

import logging
import shlex
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Protocol

from ..constants import ACTION_TIMEOUT
from ..errors import ActionError, ResourceNotFound

logger = logging.getLogger(__name__)


class TargetResource(Protocol):
    """Capability interface for a resource an action is performed on."""

    name: str

    def execute(self, verb: str) -> bool:
        """Perform ``verb`` and report whether anything changed."""
        ...


class CommandResource:
    """Resource whose actions are shell commands, e.g. ``systemctl restart nginx``."""

    def __init__(
        self,
        name: str,
        actions: Mapping[str, str],
        cwd: Path | None = None,
        timeout: int = ACTION_TIMEOUT,
    ) -> None:
        self.name = name
        self.actions = dict(actions)
        self.cwd = cwd
        self.timeout = timeout

    def execute(self, verb: str) -> bool:
        """Run the command bound to ``verb``.

        Returns:
            True when the command exits 0.

        Raises:
            ActionError: If the verb is unknown, the command cannot be
                parsed or started, times out, or exits non-zero.
        """
        command = self.actions.get(verb)
        if command is None:
            raise ActionError(f"{self.name} has no action {verb!r}")

        try:
            args = shlex.split(command)
        except ValueError as e:
            raise ActionError(f"Invalid command syntax for {self.name} {verb}: {e}") from e

        logger.info(f"Running {verb} on {self.name}: {command}")
        try:
            result = subprocess.run(
                args,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ActionError(f"{self.name} {verb} timed out after {self.timeout} seconds") from e
        except FileNotFoundError:
            raise ActionError(f"Command not found: {args[0]}") from None

        if result.returncode != 0:
            raise ActionError(
                f"{self.name} {verb} exited with {result.returncode}: {result.stderr.strip()}"
            )
        return True


class CallableResource:
    """Resource wrapping Python callables, one per verb."""

    def __init__(self, name: str, actions: Mapping[str, Callable[[], bool]]) -> None:
        self.name = name
        self.actions = dict(actions)

    def execute(self, verb: str) -> bool:
        action = self.actions.get(verb)
        if action is None:
            raise ActionError(f"{self.name} has no action {verb!r}")
        return bool(action())


class ResourceRegistry:
    """Name to resource lookup."""

    def __init__(self, resources: Mapping[str, TargetResource] | None = None) -> None:
        self._resources: dict[str, TargetResource] = dict(resources or {})

    def register(self, resource: TargetResource) -> None:
        self._resources[resource.name] = resource

    def resolve(self, name: str) -> TargetResource:
        """Look up a resource by name.

        Raises:
            ResourceNotFound: If no resource is registered under ``name``.
        """
        try:
            return self._resources[name]
        except KeyError:
            raise ResourceNotFound(f"Resource not found: {name}") from None

    def names(self) -> list[str]:
        return sorted(self._resources)
