"""Core mirror engine reconciling a replica tree with its source tree."""

import logging
import threading
import time
from collections import defaultdict
from concurrent.futures import (
    FIRST_COMPLETED,
    Future,
    ThreadPoolExecutor,
    as_completed,
    wait,
)
from pathlib import Path
from typing import Callable, Optional, cast

from ..output import OutputFormatter
from ..utils import DEFAULT_MAX_WORKERS
from .comparator import FileComparator, MirrorAction, MirrorDecision
from .events import ChangeEvent, ChangeKind
from .operations import MirrorOperations
from .pair import MirrorPair
from .scanner import DirectoryListing, DirectoryScanner, LocalFile
from .sink import EventSink
from .sizing import SizeClass

logger = logging.getLogger(__name__)

_STAT_FOR_KIND = {
    ChangeKind.FILE_CREATED: "copied",
    ChangeKind.FILE_UPDATED: "updated",
    ChangeKind.FILE_DELETED: "deleted_files",
    ChangeKind.DIRECTORY_DELETED: "deleted_folders",
}


class _PassContext:
    """State shared by all tasks of one reconciliation pass.

    The stats are the only mutable state besides the sink; both are guarded
    by their own locks.
    """

    def __init__(
        self,
        source_root: Path,
        replica_root: Path,
        sink: EventSink,
        comparator: FileComparator,
        output: OutputFormatter,
        dry_run: bool,
    ):
        self.source_root = source_root
        self.replica_root = replica_root
        self.sink = sink
        self.comparator = comparator
        self.output = output
        self.dry_run = dry_run
        self.stats: dict = {
            "copied": 0,
            "updated": 0,
            "deleted_files": 0,
            "deleted_folders": 0,
            "bytes_copied": 0,
            "skipped": 0,
            "errors": 0,
            "failures": [],
        }
        self._lock = threading.Lock()

    def record(self, event: ChangeEvent) -> None:
        """Count a change and hand it to the sink (or just show it in dry run)."""
        with self._lock:
            self.stats[_STAT_FOR_KIND[event.kind]] += 1
        if self.dry_run:
            self.output.info(f"[dry-run] {event.to_line()}")
        else:
            self.sink.emit(event)

    def transferred(self, size: int) -> None:
        with self._lock:
            self.stats["bytes_copied"] += size

    def skip(self, count: int = 1) -> None:
        with self._lock:
            self.stats["skipped"] += count

    def fail(self, relative_path: str, error: BaseException) -> None:
        """Report a failed item as a diagnostic without raising."""
        name = relative_path or "."
        if isinstance(error, FileNotFoundError):
            message = f"'{name}' was deleted during the backup process."
        elif isinstance(error, PermissionError):
            message = f"Access to '{name}' was denied."
        else:
            message = f"Unexpected error while processing '{name}': {error}"

        with self._lock:
            self.stats["errors"] += 1
            self.stats["failures"].append(message)

        logger.debug(f"{message} ({type(error).__name__})")
        self.output.error(message)

    def snapshot(self) -> dict:
        with self._lock:
            stats = dict(self.stats)
            stats["failures"] = list(self.stats["failures"])
        return stats


class MirrorEngine:
    """Core engine that mirrors a source tree onto a replica tree.

    Each directory level is handled in passes (create/update files, delete
    files, prepare subfolders, delete folders). Every pass fans out one task
    per item into a bounded I/O pool and is joined before the next one
    starts. Subfolders are reconciled by a second bounded pool of directory
    walkers; a walker returns the child pairs it prepared instead of waiting
    for them, so deep trees never exhaust the pools.
    """

    def __init__(
        self,
        output: Optional[OutputFormatter] = None,
        operations: Optional[MirrorOperations] = None,
        scanner: Optional[DirectoryScanner] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        strict: bool = False,
    ):
        """Initialize mirror engine.

        Args:
            output: Output formatter for displaying progress/status
            operations: File system operations (copy, hash, delete)
            scanner: Directory scanner used to list each level
            max_workers: Size of the I/O pool and of the directory walker pool
            strict: Always compare digests of files present on both sides
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1: {max_workers}")
        self.output = output or OutputFormatter()
        self.operations = operations or MirrorOperations()
        self.scanner = scanner or DirectoryScanner()
        self.max_workers = max_workers
        self.strict = strict

    def mirror_pair(
        self,
        pair: MirrorPair,
        sink: EventSink,
        dry_run: bool = False,
    ) -> dict:
        """Validate a mirror pair and run one reconciliation pass for it.

        Args:
            pair: Mirror pair to reconcile
            sink: Sink receiving change events
            dry_run: If True, only show what would be done

        Returns:
            Dictionary with pass statistics

        Raises:
            MirrorRootError: If a root or the log directory is missing
            MirrorConfigError: If the roots are nested

        Examples:
            >>> engine = MirrorEngine()
            >>> pair = MirrorPair(Path("/data"), Path("/backup"), log_file=log)
            >>> stats = engine.mirror_pair(pair, LogFileSink(log))
            >>> print(f"Copied {stats['copied']} files")
        """
        pair.validate()

        if not self.output.quiet:
            self.output.info(f"Mirroring: {pair.source} -> {pair.replica}")
            if dry_run:
                self.output.info("Dry run: No changes will be made")

        stats = self.reconcile(
            pair.source,
            pair.replica,
            sink,
            protected_file=pair.log_file,
            dry_run=dry_run,
            strict=pair.strict or self.strict,
        )

        if not self.output.quiet:
            self._display_summary(stats, dry_run)

        return stats

    def reconcile(
        self,
        source: Path,
        replica: Path,
        sink: EventSink,
        protected_file: Optional[Path] = None,
        dry_run: bool = False,
        strict: Optional[bool] = None,
    ) -> dict:
        """Bring the replica tree into conformance with the source tree.

        Both roots must exist. Failures of single items are reported and
        counted but never abort the pass.

        Args:
            source: Source root
            replica: Replica root
            sink: Sink receiving change events
            protected_file: Log file that must survive in the replica
            dry_run: If True, classify and compare but change nothing
            strict: Override the engine's strict setting for this pass

        Returns:
            Dictionary with pass statistics
        """
        comparator = FileComparator(
            strict=self.strict if strict is None else strict,
            protected_name=protected_file.name if protected_file else None,
            protected_path=protected_file.resolve() if protected_file else None,
        )
        run = _PassContext(
            source_root=source,
            replica_root=replica,
            sink=sink,
            comparator=comparator,
            output=self.output,
            dry_run=dry_run,
        )

        start_time = time.time()
        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="pyreplica-io"
        ) as io_pool, ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="pyreplica-dir"
        ) as dir_pool:
            pending: dict[Future, str] = {
                dir_pool.submit(
                    self._reconcile_level, run, io_pool, source, replica
                ): ""
            }
            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    relative_path = pending.pop(future)
                    try:
                        children = future.result()
                    except Exception as e:
                        run.fail(relative_path, e)
                        continue
                    for child_source, child_replica, source_missing in children:
                        child_future = dir_pool.submit(
                            self._reconcile_level,
                            run,
                            io_pool,
                            child_source,
                            child_replica,
                            source_missing,
                        )
                        pending[child_future] = child_source.relative_to(
                            source
                        ).as_posix()

        elapsed = time.time() - start_time
        stats = run.snapshot()
        logger.debug(
            f"Reconciled {source} -> {replica} in {elapsed:.2f}s: "
            f"{stats['copied']} copied, {stats['updated']} updated, "
            f"{stats['deleted_files']} file(s) and "
            f"{stats['deleted_folders']} folder(s) deleted, "
            f"{stats['errors']} error(s)"
        )
        return stats

    def _reconcile_level(
        self,
        run: _PassContext,
        io_pool: ThreadPoolExecutor,
        source_dir: Path,
        replica_dir: Path,
        source_missing: bool = False,
    ) -> list[tuple[Path, Path, bool]]:
        """Reconcile one directory level.

        Args:
            run: State of the pass
            io_pool: Pool running the per-item tasks
            source_dir: Source folder of this level
            replica_dir: Replica folder of this level
            source_missing: Reconcile against an empty source (a replica-only
                folder holding the log file)

        Returns:
            (source, replica, source_missing) triples of the subfolders to
            reconcile next
        """
        if source_missing:
            source_listing = DirectoryListing(
                path=source_dir,
                relative_path=source_dir.relative_to(run.source_root).as_posix(),
            )
        else:
            source_listing = self.scanner.list_directory(source_dir, run.source_root)
        replica_listing = self.scanner.list_directory(
            replica_dir, run.replica_root, missing_ok=run.dry_run
        )

        decisions = run.comparator.compare_level(source_listing, replica_listing)
        by_action: dict[MirrorAction, list[MirrorDecision]] = defaultdict(list)
        for decision in decisions:
            by_action[decision.action].append(decision)

        counts = ", ".join(
            f"{action.value}={len(items)}" for action, items in by_action.items()
        )
        logger.debug(f"Level '{source_listing.relative_path or '.'}': {counts}")

        run.skip(len(by_action[MirrorAction.SKIP]))

        self._fan_out(
            io_pool, run, self._create_file, by_action[MirrorAction.CREATE]
        )
        self._fan_out(
            io_pool, run, self._refresh_file, by_action[MirrorAction.REFRESH]
        )
        self._fan_out(
            io_pool, run, self._delete_file, by_action[MirrorAction.DELETE]
        )
        prepared = self._fan_out(
            io_pool, run, self._prepare_folder, by_action[MirrorAction.DESCEND]
        )
        self._fan_out(
            io_pool, run, self._delete_folder, by_action[MirrorAction.DELETE_FOLDER]
        )

        children: list[tuple[Path, Path, bool]] = []
        for decision in prepared:
            source_path = cast(Path, decision.source_path)
            children.append((source_path, decision.replica_path, False))
        for decision in by_action[MirrorAction.PRUNE]:
            source_path = cast(Path, decision.source_path)
            children.append((source_path, decision.replica_path, True))
        return children

    def _fan_out(
        self,
        io_pool: ThreadPoolExecutor,
        run: _PassContext,
        task: Callable[[_PassContext, MirrorDecision], None],
        decisions: list[MirrorDecision],
    ) -> list[MirrorDecision]:
        """Run one task per decision and wait for all of them.

        Returns:
            Decisions whose task completed without error
        """
        if not decisions:
            return []

        futures = {
            io_pool.submit(task, run, decision): decision for decision in decisions
        }
        succeeded: list[MirrorDecision] = []
        for future in as_completed(futures):
            decision = futures[future]
            try:
                future.result()
            except Exception as e:
                run.fail(decision.relative_path, e)
            else:
                succeeded.append(decision)
        return succeeded

    def _create_file(self, run: _PassContext, decision: MirrorDecision) -> None:
        """Copy a source file that is missing from the replica."""
        source_file = cast(LocalFile, decision.source_file)
        size_class = SizeClass.for_size(source_file.size)

        if decision.replaces_link:
            if not run.dry_run:
                self.operations.delete_file(decision.replica_path)
            run.record(ChangeEvent(ChangeKind.FILE_DELETED, decision.relative_path))
        elif decision.replaces:
            if not run.dry_run:
                self.operations.delete_tree(decision.replica_path)
            run.record(
                ChangeEvent(ChangeKind.DIRECTORY_DELETED, decision.relative_path)
            )

        if not run.dry_run:
            copied = self.operations.copy_file(
                source_file.path,
                decision.replica_path,
                size_class.buffer_size,
            )
            run.transferred(copied)
            logger.debug(
                f"Copied {decision.relative_path} "
                f"({size_class.value}, {size_class.buffer_size} byte buffer)"
            )
        run.record(ChangeEvent(ChangeKind.FILE_CREATED, decision.relative_path))

    def _refresh_file(self, run: _PassContext, decision: MirrorDecision) -> None:
        """Overwrite a replica file if its content differs from the source.

        Only reached for files whose source timestamp is newer (or in strict
        mode). A touched but unchanged file costs two digests and no copy.
        """
        source_file = cast(LocalFile, decision.source_file)
        size_class = SizeClass.for_size(source_file.size)
        buffer_size = size_class.buffer_size

        source_digest = self.operations.file_digest(source_file.path, buffer_size)
        replica_digest = self.operations.file_digest(
            decision.replica_path, buffer_size
        )
        if source_digest == replica_digest:
            logger.debug(f"Unchanged content: {decision.relative_path}")
            run.skip()
            return

        if not run.dry_run:
            copied = self.operations.copy_file(
                source_file.path, decision.replica_path, buffer_size
            )
            run.transferred(copied)
        run.record(ChangeEvent(ChangeKind.FILE_UPDATED, decision.relative_path))

    def _delete_file(self, run: _PassContext, decision: MirrorDecision) -> None:
        """Delete a replica file that has no source counterpart."""
        if not run.dry_run:
            self.operations.delete_file(decision.replica_path)
        run.record(ChangeEvent(ChangeKind.FILE_DELETED, decision.relative_path))

    def _prepare_folder(self, run: _PassContext, decision: MirrorDecision) -> None:
        """Ensure the replica folder exists before it is reconciled."""
        if decision.replaces:
            if not run.dry_run:
                self.operations.delete_file(decision.replica_path)
            run.record(ChangeEvent(ChangeKind.FILE_DELETED, decision.relative_path))

        if not run.dry_run:
            self.operations.make_directory(decision.replica_path)

    def _delete_folder(self, run: _PassContext, decision: MirrorDecision) -> None:
        """Remove a replica folder that has no source counterpart."""
        if not run.dry_run:
            self.operations.delete_tree(decision.replica_path)
        run.record(
            ChangeEvent(ChangeKind.DIRECTORY_DELETED, decision.relative_path)
        )

    def _display_summary(self, stats: dict, dry_run: bool) -> None:
        """Display pass summary.

        Args:
            stats: Statistics dictionary
            dry_run: Whether this was a dry run
        """
        self.output.print("")
        if dry_run:
            self.output.success("Dry run complete!")
        elif stats["errors"]:
            self.output.warning(
                f"Mirror pass finished with {stats['errors']} error(s)"
            )
        else:
            self.output.success("Mirror pass complete!")

        total_actions = (
            stats["copied"]
            + stats["updated"]
            + stats["deleted_files"]
            + stats["deleted_folders"]
        )

        if total_actions > 0:
            self.output.info(f"Total actions: {total_actions}")
            if stats["copied"] > 0:
                self.output.info(f"  Copied: {stats['copied']}")
            if stats["updated"] > 0:
                self.output.info(f"  Updated: {stats['updated']}")
            if stats["deleted_files"] > 0:
                self.output.info(f"  Deleted files: {stats['deleted_files']}")
            if stats["deleted_folders"] > 0:
                self.output.info(f"  Deleted folders: {stats['deleted_folders']}")
            if stats["bytes_copied"] > 0:
                transferred = self.output.format_size(stats["bytes_copied"])
                self.output.info(f"  Transferred: {transferred}")
        else:
            self.output.info("No changes needed - replica is up to date!")
