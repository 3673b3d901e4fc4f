"""Collaborators the engine talks to.

- store: coordination store clients (memory, shared directory)
- processes: process start time lookup
- resources: target resources and their registry
"""

from .processes import ProcessObserver, PsutilProcessObserver, StaticProcessObserver
from .resources import CallableResource, CommandResource, ResourceRegistry, TargetResource
from .store import (
    CoordinationClient,
    FileCoordinationClient,
    MemoryCoordinationClient,
    split_path,
)

__all__ = [
    "CallableResource",
    "CommandResource",
    "CoordinationClient",
    "FileCoordinationClient",
    "MemoryCoordinationClient",
    "ProcessObserver",
    "PsutilProcessObserver",
    "ResourceRegistry",
    "StaticProcessObserver",
    "TargetResource",
    "split_path",
]
