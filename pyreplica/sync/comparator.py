"""Classification of one directory level into mirror decisions."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from .scanner import DirectoryListing, LocalFile


class MirrorAction(str, Enum):
    """Actions that can be taken for one entry of a directory level."""

    CREATE = "create"
    """Copy a source file that is missing from the replica"""

    REFRESH = "refresh"
    """Source file is newer, compare digests and overwrite if they differ"""

    DELETE = "delete"
    """Delete a replica file that has no source counterpart"""

    DESCEND = "descend"
    """Ensure the replica subdirectory exists and reconcile it"""

    DELETE_FOLDER = "delete_folder"
    """Remove a replica subdirectory that has no source counterpart"""

    PRUNE = "prune"
    """Empty a replica-only subdirectory holding the log file, keeping the log"""

    SKIP = "skip"
    """Nothing to do"""


@dataclass
class MirrorDecision:
    """Represents a decision about one entry of a directory level."""

    action: MirrorAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    relative_path: str
    """Path relative to the pass root"""

    replica_path: Path
    """Path of the entry in the replica"""

    source_path: Optional[Path] = None
    """Path of the entry in the source (if it exists there)"""

    source_file: Optional[LocalFile] = None
    """Source file metadata (files only)"""

    replica_file: Optional[LocalFile] = None
    """Replica file metadata (files only)"""

    replaces: bool = False
    """Replica holds an entry of the other type under the same name"""

    replaces_link: bool = False
    """The replaced replica entry is a symbolic link"""


class FileComparator:
    """Compares source and replica listings to determine mirror actions.

    Every name at a level gets exactly one decision. A name that is a file on
    one side and a folder (or symbolic link) on the other is resolved by the
    source-side decision (``replaces=True``), so no second task ever touches
    that path. Symbolic links are never mirrored: source links are skipped
    and replica links are removed.
    """

    def __init__(
        self,
        strict: bool = False,
        protected_name: Optional[str] = None,
        protected_path: Optional[Path] = None,
    ):
        """Initialize file comparator.

        Args:
            strict: Always compare digests of files present on both sides,
                regardless of their modification times
            protected_name: Base name of a replica file that is never deleted
                (the log file)
            protected_path: Resolved path of the log file; replica folders
                containing it are never removed
        """
        self.strict = strict
        self.protected_name = protected_name
        self.protected_path = protected_path

    def compare_level(
        self,
        source: DirectoryListing,
        replica: DirectoryListing,
    ) -> list[MirrorDecision]:
        """Compare the listings of one directory level.

        Args:
            source: Listing of the source directory
            replica: Listing of the matching replica directory

        Returns:
            List of MirrorDecision objects, sorted by action then path
        """
        decisions: list[MirrorDecision] = []

        for name, source_file in source.files.items():
            decisions.append(
                self._compare_source_file(source, replica, name, source_file)
            )

        for name, source_link in source.links.items():
            decisions.append(
                MirrorDecision(
                    action=MirrorAction.SKIP,
                    reason="Symbolic link in source",
                    relative_path=source.child_relative_path(name),
                    replica_path=replica.path / name,
                    source_path=source_link,
                )
            )

        for name, replica_file in replica.files.items():
            if name in source.files or name in source.directories:
                continue
            decisions.append(self._handle_replica_only_file(replica_file))

        for name, replica_link in replica.links.items():
            if name in source.files or name in source.directories:
                continue
            decisions.append(
                MirrorDecision(
                    action=MirrorAction.DELETE,
                    reason="Symbolic link in replica",
                    relative_path=replica.child_relative_path(name),
                    replica_path=replica_link,
                )
            )

        for name, source_dir in source.directories.items():
            replaces_link = name in replica.links
            decisions.append(
                MirrorDecision(
                    action=MirrorAction.DESCEND,
                    reason="Source folder",
                    relative_path=source.child_relative_path(name),
                    replica_path=replica.path / name,
                    source_path=source_dir,
                    replica_file=replica.files.get(name),
                    replaces=name in replica.files or replaces_link,
                    replaces_link=replaces_link,
                )
            )

        for name, replica_dir in replica.directories.items():
            if name in source.directories or name in source.files:
                continue
            decisions.append(
                self._handle_replica_only_folder(source, replica, name, replica_dir)
            )

        decisions.sort(key=lambda d: (d.action.value, d.relative_path))
        return decisions

    def is_stale(self, source_file: LocalFile, replica_file: LocalFile) -> bool:
        """Check whether a replica file may be out of date.

        Staleness is defined purely by timestamp ordering: only a source file
        strictly newer than its replica is a candidate for an update. In
        strict mode every shared file is a candidate.

        Args:
            source_file: Source file
            replica_file: Replica file with the same name

        Returns:
            True if the digests need to be compared
        """
        if self.strict:
            return True
        return source_file.mtime_ns > replica_file.mtime_ns

    def _compare_source_file(
        self,
        source: DirectoryListing,
        replica: DirectoryListing,
        name: str,
        source_file: LocalFile,
    ) -> MirrorDecision:
        """Decide what to do with a file that exists in the source."""
        replica_path = replica.path / name
        replica_file = replica.files.get(name)

        if replica_file is None:
            replaces_folder = name in replica.directories
            replaces_link = name in replica.links
            if replaces_folder:
                reason = "Folder in replica, file in source"
            elif replaces_link:
                reason = "Symbolic link in replica, file in source"
            else:
                reason = "New source file"
            return MirrorDecision(
                action=MirrorAction.CREATE,
                reason=reason,
                relative_path=source_file.relative_path,
                replica_path=replica_path,
                source_path=source_file.path,
                source_file=source_file,
                replaces=replaces_folder or replaces_link,
                replaces_link=replaces_link,
            )

        if self.is_stale(source_file, replica_file):
            return MirrorDecision(
                action=MirrorAction.REFRESH,
                reason="Strict mode" if self.strict else "Source file is newer",
                relative_path=source_file.relative_path,
                replica_path=replica_path,
                source_path=source_file.path,
                source_file=source_file,
                replica_file=replica_file,
            )

        return MirrorDecision(
            action=MirrorAction.SKIP,
            reason="Replica is not older than source",
            relative_path=source_file.relative_path,
            replica_path=replica_path,
            source_path=source_file.path,
            source_file=source_file,
            replica_file=replica_file,
        )

    def _handle_replica_only_file(self, replica_file: LocalFile) -> MirrorDecision:
        """Handle a file that only exists in the replica."""
        if self.protected_name and replica_file.name == self.protected_name:
            return MirrorDecision(
                action=MirrorAction.SKIP,
                reason="Log file",
                relative_path=replica_file.relative_path,
                replica_path=replica_file.path,
                replica_file=replica_file,
            )

        return MirrorDecision(
            action=MirrorAction.DELETE,
            reason="File removed from source",
            relative_path=replica_file.relative_path,
            replica_path=replica_file.path,
            replica_file=replica_file,
        )

    def _handle_replica_only_folder(
        self,
        source: DirectoryListing,
        replica: DirectoryListing,
        name: str,
        replica_dir: Path,
    ) -> MirrorDecision:
        """Handle a folder that only exists in the replica.

        A folder on the way to the log file is pruned instead of removed:
        it is reconciled against an empty source, so everything but the log
        file (and the folders leading to it) goes away.
        """
        relative_path = replica.child_relative_path(name)
        if self.protected_path is not None and self.protected_path.is_relative_to(
            replica_dir.resolve()
        ):
            return MirrorDecision(
                action=MirrorAction.PRUNE,
                reason="Folder contains the log file",
                relative_path=relative_path,
                replica_path=replica_dir,
                source_path=source.path / name,
            )

        return MirrorDecision(
            action=MirrorAction.DELETE_FOLDER,
            reason="Folder removed from source",
            relative_path=relative_path,
            replica_path=replica_dir,
        )
