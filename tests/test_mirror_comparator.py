"""Tests for the FileComparator class."""

from pathlib import Path

from pyreplica.sync.comparator import FileComparator, MirrorAction
from pyreplica.sync.scanner import DirectoryListing, LocalFile


def _local_file(root: str, name: str, mtime_ns: int = 1_000, size: int = 100):
    """Create a LocalFile for testing."""
    return LocalFile(
        path=Path(root) / name,
        relative_path=name,
        size=size,
        mtime_ns=mtime_ns,
    )


def _listing(root: str, files=(), directories=(), links=()) -> DirectoryListing:
    """Create a DirectoryListing for testing."""
    return DirectoryListing(
        path=Path(root),
        relative_path="",
        files={f.name: f for f in files},
        directories={name: Path(root) / name for name in directories},
        links={name: Path(root) / name for name in links},
    )


def _by_path(decisions):
    return {d.relative_path: d for d in decisions}


class TestCompareSourceFiles:
    """Tests for files that exist in the source."""

    def test_source_only_file_is_created(self):
        """A file missing from the replica should be copied."""
        comparator = FileComparator()
        source = _listing("/src", files=[_local_file("/src", "a.txt")])
        replica = _listing("/rep")

        decisions = comparator.compare_level(source, replica)

        assert len(decisions) == 1
        assert decisions[0].action == MirrorAction.CREATE
        assert decisions[0].reason == "New source file"
        assert decisions[0].replica_path == Path("/rep/a.txt")
        assert decisions[0].replaces is False

    def test_newer_source_is_refreshed(self):
        """A strictly newer source file is a candidate for an update."""
        comparator = FileComparator()
        source = _listing("/src", files=[_local_file("/src", "a.txt", mtime_ns=2)])
        replica = _listing("/rep", files=[_local_file("/rep", "a.txt", mtime_ns=1)])

        decision = comparator.compare_level(source, replica)[0]

        assert decision.action == MirrorAction.REFRESH
        assert decision.reason == "Source file is newer"
        assert decision.replica_file is not None

    def test_equal_timestamps_skip(self):
        """Equal timestamps mean no work, whatever the content."""
        comparator = FileComparator()
        source = _listing("/src", files=[_local_file("/src", "a.txt", mtime_ns=5)])
        replica = _listing(
            "/rep", files=[_local_file("/rep", "a.txt", mtime_ns=5, size=999)]
        )

        decision = comparator.compare_level(source, replica)[0]

        assert decision.action == MirrorAction.SKIP

    def test_older_source_skips(self):
        """An older source file is never copied."""
        comparator = FileComparator()
        source = _listing("/src", files=[_local_file("/src", "a.txt", mtime_ns=1)])
        replica = _listing("/rep", files=[_local_file("/rep", "a.txt", mtime_ns=9)])

        decision = comparator.compare_level(source, replica)[0]

        assert decision.action == MirrorAction.SKIP
        assert decision.reason == "Replica is not older than source"

    def test_strict_mode_always_refreshes(self):
        """Strict mode compares digests regardless of timestamps."""
        comparator = FileComparator(strict=True)
        source = _listing("/src", files=[_local_file("/src", "a.txt", mtime_ns=1)])
        replica = _listing("/rep", files=[_local_file("/rep", "a.txt", mtime_ns=9)])

        decision = comparator.compare_level(source, replica)[0]

        assert decision.action == MirrorAction.REFRESH
        assert decision.reason == "Strict mode"

    def test_file_replacing_folder(self):
        """A source file shadowed by a replica folder replaces that folder."""
        comparator = FileComparator()
        source = _listing("/src", files=[_local_file("/src", "item")])
        replica = _listing("/rep", directories=["item"])

        decisions = comparator.compare_level(source, replica)

        assert len(decisions) == 1
        assert decisions[0].action == MirrorAction.CREATE
        assert decisions[0].replaces is True


class TestHandleReplicaOnly:
    """Tests for entries that only exist in the replica."""

    def test_replica_only_file_is_deleted(self):
        comparator = FileComparator()
        replica = _listing("/rep", files=[_local_file("/rep", "orphan.txt")])

        decision = comparator.compare_level(_listing("/src"), replica)[0]

        assert decision.action == MirrorAction.DELETE
        assert decision.reason == "File removed from source"

    def test_protected_name_is_kept(self):
        """The log file is never deleted, even without a source counterpart."""
        comparator = FileComparator(protected_name="run.log")
        replica = _listing(
            "/rep",
            files=[_local_file("/rep", "run.log"), _local_file("/rep", "x.log")],
        )

        decisions = _by_path(comparator.compare_level(_listing("/src"), replica))

        assert decisions["run.log"].action == MirrorAction.SKIP
        assert decisions["run.log"].reason == "Log file"
        assert decisions["x.log"].action == MirrorAction.DELETE

    def test_replica_only_folder_is_deleted(self):
        comparator = FileComparator()
        replica = _listing("/rep", directories=["old"])

        decision = comparator.compare_level(_listing("/src"), replica)[0]

        assert decision.action == MirrorAction.DELETE_FOLDER
        assert decision.relative_path == "old"

    def test_folder_holding_log_file_is_pruned(self):
        """A replica-only folder containing the log file is emptied, not removed."""
        comparator = FileComparator(
            protected_name="run.log",
            protected_path=Path("/rep/logs/run.log"),
        )
        replica = _listing("/rep", directories=["logs", "other"])

        decisions = _by_path(comparator.compare_level(_listing("/src"), replica))

        assert decisions["logs"].action == MirrorAction.PRUNE
        assert decisions["logs"].reason == "Folder contains the log file"
        assert decisions["logs"].source_path == Path("/src/logs")
        assert decisions["other"].action == MirrorAction.DELETE_FOLDER


class TestSourceFolders:
    """Tests for folders that exist in the source."""

    def test_source_folder_descends(self):
        comparator = FileComparator()
        source = _listing("/src", directories=["docs"])

        decision = comparator.compare_level(source, _listing("/rep"))[0]

        assert decision.action == MirrorAction.DESCEND
        assert decision.source_path == Path("/src/docs")
        assert decision.replica_path == Path("/rep/docs")
        assert decision.replaces is False

    def test_existing_replica_folder_descends(self):
        comparator = FileComparator()
        source = _listing("/src", directories=["docs"])
        replica = _listing("/rep", directories=["docs"])

        decisions = comparator.compare_level(source, replica)

        assert [d.action for d in decisions] == [MirrorAction.DESCEND]

    def test_folder_replacing_file(self):
        """A source folder shadowed by a replica file gets one decision only."""
        comparator = FileComparator()
        source = _listing("/src", directories=["item"])
        replica = _listing("/rep", files=[_local_file("/rep", "item")])

        decisions = comparator.compare_level(source, replica)

        assert len(decisions) == 1
        assert decisions[0].action == MirrorAction.DESCEND
        assert decisions[0].replaces is True


class TestIsStale:
    """Tests for the timestamp gate."""

    def test_strictly_newer(self):
        comparator = FileComparator()
        assert comparator.is_stale(
            _local_file("/src", "a", mtime_ns=2), _local_file("/rep", "a", mtime_ns=1)
        )

    def test_not_newer(self):
        comparator = FileComparator()
        assert not comparator.is_stale(
            _local_file("/src", "a", mtime_ns=1), _local_file("/rep", "a", mtime_ns=1)
        )


class TestSymbolicLinks:
    """Tests for symbolic links on either side."""

    def test_source_link_is_skipped(self):
        comparator = FileComparator()
        source = _listing("/src", links=["shortcut"])

        decision = comparator.compare_level(source, _listing("/rep"))[0]

        assert decision.action == MirrorAction.SKIP
        assert decision.reason == "Symbolic link in source"

    def test_replica_only_link_is_deleted(self):
        """A replica link is unlinked, never treated as a folder."""
        comparator = FileComparator()
        replica = _listing("/rep", links=["link"])

        decisions = comparator.compare_level(_listing("/src"), replica)

        assert len(decisions) == 1
        assert decisions[0].action == MirrorAction.DELETE
        assert decisions[0].replica_path == Path("/rep/link")

    def test_file_replacing_link(self):
        comparator = FileComparator()
        source = _listing("/src", files=[_local_file("/src", "item")])
        replica = _listing("/rep", links=["item"])

        decisions = comparator.compare_level(source, replica)

        assert len(decisions) == 1
        assert decisions[0].action == MirrorAction.CREATE
        assert decisions[0].replaces is True
        assert decisions[0].replaces_link is True

    def test_folder_replacing_link(self):
        comparator = FileComparator()
        source = _listing("/src", directories=["item"])
        replica = _listing("/rep", links=["item"])

        decisions = comparator.compare_level(source, replica)

        assert len(decisions) == 1
        assert decisions[0].action == MirrorAction.DESCEND
        assert decisions[0].replaces is True
        assert decisions[0].replaces_link is True
