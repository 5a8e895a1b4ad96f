"""Exceptions raised by pyreplica."""


class ReplicaError(Exception):
    """Base exception for all pyreplica errors."""


class MirrorConfigError(ReplicaError, ValueError):
    """Raised when a mirror pair or configuration file is invalid."""


class MirrorRootError(ReplicaError):
    """Raised when a source or replica root is missing or unusable.

    The reconciler assumes both roots exist; this is checked once by the
    caller before a pass starts, never per directory level.
    """

    def __init__(self, message: str, path: object = None):
        super().__init__(message)
        self.path = path
