"""Sinks receiving change events and log lines from mirror passes.

Worker threads call a sink concurrently. Implementations serialize their
writes so that two lines never interleave.
"""

import threading
from pathlib import Path
from typing import Optional

from ..output import OutputFormatter
from .events import ChangeEvent


class EventSink:
    """Base sink: renders events as lines and appends them."""

    def emit(self, event: ChangeEvent) -> None:
        """Record a change event."""
        self.append(event.to_line())

    def append(self, line: str) -> None:
        """Append one raw text line."""
        raise NotImplementedError


class LogFileSink(EventSink):
    """Appends lines to a log file and optionally echoes them to the console."""

    def __init__(
        self,
        path: Path,
        output: Optional[OutputFormatter] = None,
        echo: bool = True,
    ):
        """Initialize log file sink.

        Args:
            path: Log file, created on first append
            output: Output formatter used to echo lines
            echo: Whether to echo lines to the console
        """
        self.path = Path(path)
        self.output = output
        self.echo = echo
        self._lock = threading.Lock()

    def append(self, line: str) -> None:
        """Append a line to the log file.

        The lock is held only for the duration of the single append.
        """
        if self.echo and self.output is not None:
            self.output.print(line)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")


class MemorySink(EventSink):
    """Keeps events and lines in memory, e.g. to inspect a pass afterwards."""

    def __init__(self) -> None:
        self.events: list[ChangeEvent] = []
        self.lines: list[str] = []
        self._lock = threading.Lock()

    def emit(self, event: ChangeEvent) -> None:
        with self._lock:
            self.events.append(event)
        super().emit(event)

    def append(self, line: str) -> None:
        with self._lock:
            self.lines.append(line)

    def clear(self) -> None:
        """Forget everything recorded so far."""
        with self._lock:
            self.events.clear()
            self.lines.clear()


class ConsoleSink(EventSink):
    """Prints lines to the console only (no log file configured)."""

    def __init__(self, output: OutputFormatter):
        self.output = output

    def append(self, line: str) -> None:
        self.output.print(line)
