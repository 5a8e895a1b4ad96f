"""Mirror pair configuration."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from ..exceptions import MirrorConfigError, MirrorRootError
from ..utils import DEFAULT_INTERVAL


@dataclass
class MirrorPair:
    """A source folder mirrored one-way onto a replica folder.

    Examples:
        >>> pair = MirrorPair.parse_literal("/data/src;/backup/src;30;/var/log/m.log")
        >>> pair.interval
        30
    """

    source: Path
    """Source root (ground truth)"""

    replica: Path
    """Replica root kept in conformance with the source"""

    interval: int = DEFAULT_INTERVAL
    """Seconds between two mirror passes"""

    log_file: Optional[Path] = None
    """Log file receiving change lines (never deleted from the replica)"""

    alias: Optional[str] = None
    """Optional display name"""

    strict: bool = False
    """Compare digests of every shared file, ignoring modification times"""

    def __post_init__(self) -> None:
        """Normalize paths and validate the interval."""
        if isinstance(self.source, str):
            self.source = Path(self.source)
        if isinstance(self.replica, str):
            self.replica = Path(self.replica)
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file) if self.log_file else None

        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise MirrorConfigError(f"Interval must be an integer: {self.interval!r}")
        if self.interval < 1:
            raise MirrorConfigError(
                f"Interval must be at least 1 second: {self.interval}"
            )

    @property
    def name(self) -> str:
        """Display name of the pair."""
        return self.alias or self.source.name or str(self.source)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MirrorPair":
        """Create a mirror pair from a dictionary.

        Args:
            data: Dictionary with keys ``source``, ``replica`` and optionally
                ``interval``, ``logFile``, ``alias``, ``strict``

        Returns:
            MirrorPair instance

        Raises:
            MirrorConfigError: If required keys are missing or values invalid
        """
        missing = [key for key in ("source", "replica") if not data.get(key)]
        if missing:
            raise MirrorConfigError(
                f"Mirror pair is missing required field(s): {', '.join(missing)}"
            )

        return cls(
            source=Path(data["source"]),
            replica=Path(data["replica"]),
            interval=data.get("interval", DEFAULT_INTERVAL),
            log_file=data.get("logFile"),
            alias=data.get("alias"),
            strict=bool(data.get("strict", False)),
        )

    @classmethod
    def parse_literal(cls, literal: str) -> "MirrorPair":
        """Parse ``source;replica;interval[;logfile]``.

        Args:
            literal: Semicolon separated pair description

        Returns:
            MirrorPair instance

        Raises:
            MirrorConfigError: If the literal is malformed
        """
        parts = [part.strip() for part in literal.split(";")]
        if len(parts) not in (3, 4):
            raise MirrorConfigError(
                "Invalid input format, expected "
                "'<source>;<replica>;<interval>;<logfile>'"
            )
        if not parts[0] or not parts[1]:
            raise MirrorConfigError("Source and replica must not be empty")

        try:
            interval = int(parts[2])
        except ValueError:
            raise MirrorConfigError("Interval is not a valid integer.") from None

        return cls(
            source=Path(parts[0]),
            replica=Path(parts[1]),
            interval=interval,
            log_file=Path(parts[3]) if len(parts) == 4 and parts[3] else None,
        )

    def validate(self) -> None:
        """Check that both roots and the log directory exist.

        Raises:
            MirrorRootError: If a root or the log directory is missing
            MirrorConfigError: If one root lies inside the other
        """
        if not self.source.is_dir():
            raise MirrorRootError(
                f"Source directory does not exist: {self.source}", self.source
            )
        if not self.replica.is_dir():
            raise MirrorRootError(
                f"Replica directory does not exist: {self.replica}", self.replica
            )
        if self.log_file is not None:
            log_dir = self.log_file.parent
            if not log_dir.is_dir():
                raise MirrorRootError(
                    f"Log directory does not exist: {log_dir}", log_dir
                )

        source = self.source.resolve()
        replica = self.replica.resolve()
        if source == replica:
            raise MirrorConfigError("Source and replica are the same directory")
        if replica.is_relative_to(source) or source.is_relative_to(replica):
            raise MirrorConfigError("Source and replica must not be nested")

    def to_dict(self) -> dict[str, Union[str, int, bool, None]]:
        """Convert the pair to a dictionary (inverse of from_dict)."""
        return {
            "source": str(self.source),
            "replica": str(self.replica),
            "interval": self.interval,
            "logFile": str(self.log_file) if self.log_file else None,
            "alias": self.alias,
            "strict": self.strict,
        }
