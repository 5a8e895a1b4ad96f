"""Directory listing utilities for mirror passes."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class LocalFile:
    """Represents a file on disk with the metadata a pass consults."""

    path: Path
    """Absolute path to the file"""

    relative_path: str
    """Relative path (using forward slashes for cross-platform compatibility)"""

    size: int
    """File size in bytes"""

    mtime_ns: int
    """Last modification time in nanoseconds since the epoch"""

    @property
    def name(self) -> str:
        """Base name of the file."""
        return self.path.name

    @property
    def mtime(self) -> float:
        """Last modification time (Unix timestamp)."""
        return self.mtime_ns / 1_000_000_000

    @classmethod
    def from_path(cls, file_path: Path, base_path: Path) -> "LocalFile":
        """Create LocalFile from a path.

        Args:
            file_path: Absolute path to the file
            base_path: Base path for calculating relative paths

        Returns:
            LocalFile instance
        """
        stat = file_path.stat()
        # Use as_posix() to ensure forward slashes on all platforms
        relative_path = file_path.relative_to(base_path).as_posix()

        return cls(
            path=file_path,
            relative_path=relative_path,
            size=stat.st_size,
            mtime_ns=stat.st_mtime_ns,
        )


@dataclass
class DirectoryListing:
    """Immediate children of one directory, split into files and folders."""

    path: Path
    """Directory that was listed"""

    relative_path: str
    """Directory path relative to the pass root ("" for the root itself)"""

    files: dict[str, LocalFile] = field(default_factory=dict)
    """Files by name"""

    directories: dict[str, Path] = field(default_factory=dict)
    """Subdirectories by name"""

    links: dict[str, Path] = field(default_factory=dict)
    """Symbolic links by name (never followed)"""

    def child_relative_path(self, name: str) -> str:
        """Relative path of a child entry of this directory."""
        if not self.relative_path:
            return name
        return f"{self.relative_path}/{name}"


class DirectoryScanner:
    """Lists one directory level at a time.

    Listings are snapshots: a pass acts on what it saw at listing time, so a
    file vanishing afterwards surfaces as an error on that single item.
    Symbolic links are listed on their own and never followed.

    Examples:
        >>> scanner = DirectoryScanner()
        >>> listing = scanner.list_directory(Path("/data/src"), Path("/data/src"))
        >>> sorted(listing.files)
        ['a.txt', 'b.txt']
    """

    def list_directory(
        self,
        directory: Path,
        base_path: Optional[Path] = None,
        missing_ok: bool = False,
    ) -> DirectoryListing:
        """List immediate files and subdirectories of a directory.

        Args:
            directory: Directory to list
            base_path: Base path for calculating relative paths
                (defaults to directory)
            missing_ok: Return an empty listing instead of raising when the
                directory does not exist (or is not a folder)

        Returns:
            DirectoryListing snapshot

        Raises:
            OSError: If the directory cannot be read
        """
        if base_path is None:
            base_path = directory

        relative = directory.relative_to(base_path).as_posix()
        listing = DirectoryListing(
            path=directory,
            relative_path="" if relative == "." else relative,
        )

        if missing_ok and (directory.is_symlink() or not directory.is_dir()):
            return listing

        for item in directory.iterdir():
            if item.is_symlink():
                listing.links[item.name] = item
            elif item.is_dir():
                listing.directories[item.name] = item
            elif item.is_file():
                try:
                    listing.files[item.name] = LocalFile.from_path(item, base_path)
                except FileNotFoundError:
                    # Removed between iterdir() and stat()
                    logger.debug(f"Vanished while listing: {item}")
            else:
                logger.debug(f"Skipping special file: {item}")

        return listing
