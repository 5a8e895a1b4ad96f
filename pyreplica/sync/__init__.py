"""Mirror engine for pyreplica - one-way source to replica reconciliation."""

from .comparator import FileComparator, MirrorAction, MirrorDecision
from .config import load_mirror_pairs_from_json
from .engine import MirrorEngine
from .events import ChangeEvent, ChangeKind
from .operations import MirrorOperations
from .pair import MirrorPair
from .scanner import DirectoryListing, DirectoryScanner, LocalFile
from .scheduler import MirrorScheduler, default_sink_factory
from .sink import ConsoleSink, EventSink, LogFileSink, MemorySink
from .sizing import SizeClass

__all__ = [
    "MirrorEngine",
    "MirrorPair",
    "MirrorScheduler",
    "MirrorOperations",
    "load_mirror_pairs_from_json",
    "DirectoryScanner",
    "DirectoryListing",
    "LocalFile",
    "FileComparator",
    "MirrorAction",
    "MirrorDecision",
    "ChangeEvent",
    "ChangeKind",
    "EventSink",
    "LogFileSink",
    "ConsoleSink",
    "MemorySink",
    "SizeClass",
    "default_sink_factory",
]
