"""Interval loop running mirror passes until asked to stop."""

import logging
import sys
import threading
import time
from typing import Callable, Optional, TextIO

from ..exceptions import MirrorConfigError, MirrorRootError
from ..output import OutputFormatter
from ..utils import format_timestamp
from .engine import MirrorEngine
from .pair import MirrorPair
from .sink import ConsoleSink, EventSink, LogFileSink

logger = logging.getLogger(__name__)

QUIT_COMMAND = "QUIT"


def default_sink_factory(pair: MirrorPair, output: OutputFormatter) -> EventSink:
    """Create the sink for a pair: its log file, or the console if it has none."""
    if pair.log_file is not None:
        return LogFileSink(pair.log_file, output=output)
    return ConsoleSink(output)


class MirrorScheduler:
    """Runs one mirror pass per pair every ``pair.interval`` seconds.

    Stopping is cooperative: ``stop()`` never interrupts a pass in flight, it
    only prevents the next one from starting.
    """

    def __init__(
        self,
        engine: MirrorEngine,
        pairs: list[MirrorPair],
        output: Optional[OutputFormatter] = None,
        sink_factory: Optional[
            Callable[[MirrorPair, OutputFormatter], EventSink]
        ] = None,
    ):
        """Initialize scheduler.

        Args:
            engine: Engine running the passes
            pairs: Mirror pairs to keep in sync
            output: Output formatter for status messages
            sink_factory: Creates the sink of each pair
        """
        if not pairs:
            raise MirrorConfigError("No mirror pairs to run")
        self.engine = engine
        self.pairs = pairs
        self.output = output or engine.output
        factory = sink_factory or default_sink_factory
        self.sinks = [factory(pair, self.output) for pair in pairs]
        self._stop_event = threading.Event()

    @property
    def stopped(self) -> bool:
        """Whether a stop was requested."""
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request the loop to stop after the pass currently running."""
        self._stop_event.set()

    def run_cycle(self, pair: MirrorPair, sink: EventSink) -> Optional[dict]:
        """Run one pass for a pair, framed by start and end banners.

        The pair is validated before anything is written, so a missing log
        directory skips the cycle instead of stopping the loop.

        Args:
            pair: Mirror pair to reconcile
            sink: Sink of the pair

        Returns:
            Pass statistics, or None if the pair's roots or log were unusable
        """
        try:
            pair.validate()
            sink.append(f"[BACKUP] {format_timestamp()} - Starting backup...")
            start_time = time.monotonic()
            stats = self.engine.mirror_pair(pair, sink)
        except (MirrorRootError, MirrorConfigError) as e:
            # A root may be unmounted for a while, try again next cycle
            logger.warning(f"Skipping pass for {pair.name}: {e}")
            self.output.error(str(e))
            self._append(
                pair, sink, f"[BACKUP] {format_timestamp()} - Backup skipped: {e}"
            )
            return None
        except OSError as e:
            logger.warning(f"Skipping pass for {pair.name}: {e}")
            self.output.error(f"Cannot write to the log of {pair.name}: {e}")
            return None

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        if stats["errors"]:
            self._append(
                pair,
                sink,
                f"[BACKUP] {format_timestamp()} - Backup completed with "
                f"{stats['errors']} error(s). Time taken: {elapsed_ms} ms.",
            )
        else:
            self._append(
                pair,
                sink,
                f"[BACKUP] {format_timestamp()} - Backup completed successfully. "
                f"Time taken: {elapsed_ms} ms.",
            )
        return stats

    def _append(self, pair: MirrorPair, sink: EventSink, line: str) -> None:
        """Append a banner, reporting a log that cannot be written."""
        try:
            sink.append(line)
        except OSError as e:
            logger.warning(f"Cannot write banner for {pair.name}: {e}")
            self.output.error(f"Cannot write to the log of {pair.name}: {e}")

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Run passes until stopped.

        Args:
            max_cycles: Stop once every pair ran this many passes
                (None runs until stop() is called)

        Returns:
            Total number of passes run
        """
        counts = [0] * len(self.pairs)
        next_due = [0.0] * len(self.pairs)

        def active() -> list[int]:
            return [
                i
                for i in range(len(self.pairs))
                if max_cycles is None or counts[i] < max_cycles
            ]

        while not self._stop_event.is_set():
            for i in active():
                if self._stop_event.is_set():
                    break
                if time.monotonic() >= next_due[i]:
                    self.run_cycle(self.pairs[i], self.sinks[i])
                    counts[i] += 1
                    next_due[i] = time.monotonic() + self.pairs[i].interval

            remaining = active()
            if not remaining:
                break
            delay = min(next_due[i] for i in remaining) - time.monotonic()
            if delay > 0:
                self._stop_event.wait(delay)

        logger.debug(f"Scheduler finished after {sum(counts)} pass(es)")
        return sum(counts)

    def listen_for_quit(self, stream: Optional[TextIO] = None) -> threading.Thread:
        """Stop the scheduler when a ``QUIT`` line is read from a stream.

        Args:
            stream: Stream to read (defaults to stdin)

        Returns:
            The daemon thread reading the stream
        """
        if stream is None:
            stream = sys.stdin

        def listen() -> None:
            for line in stream:
                if line.strip().upper() == QUIT_COMMAND:
                    self.output.info("[BACKUP] - Stopping backup process...")
                    self.stop()
                    return

        thread = threading.Thread(target=listen, name="pyreplica-quit", daemon=True)
        thread.start()
        return thread
