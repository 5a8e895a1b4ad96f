"""PyReplica - continuous one-way mirroring of a folder onto a replica."""

from .exceptions import MirrorConfigError, MirrorRootError, ReplicaError
from .sync import (
    ChangeEvent,
    ChangeKind,
    LogFileSink,
    MemorySink,
    MirrorEngine,
    MirrorPair,
    MirrorScheduler,
)
from .utils import format_size

__version__ = "0.1.0"

__all__ = [
    "MirrorEngine",
    "MirrorPair",
    "MirrorScheduler",
    "ChangeEvent",
    "ChangeKind",
    "LogFileSink",
    "MemorySink",
    "ReplicaError",
    "MirrorConfigError",
    "MirrorRootError",
    "format_size",
]
