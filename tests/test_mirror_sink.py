"""Tests for change events and sinks."""

import threading
from unittest.mock import Mock

from pyreplica.output import OutputFormatter
from pyreplica.sync.events import ChangeEvent, ChangeKind
from pyreplica.sync.sink import ConsoleSink, LogFileSink, MemorySink


class TestChangeEvent:
    """Tests for ChangeEvent lines."""

    def test_lines(self):
        assert (
            ChangeEvent(ChangeKind.FILE_CREATED, "a.txt").to_line()
            == "(+) Copied a.txt to replica folder."
        )
        assert (
            ChangeEvent(ChangeKind.FILE_UPDATED, "a.txt").to_line()
            == "(~) Updated a.txt to a newer version."
        )
        assert (
            ChangeEvent(ChangeKind.FILE_DELETED, "a.txt").to_line()
            == "(-) Deleted a.txt from replica."
        )
        assert (
            ChangeEvent(ChangeKind.DIRECTORY_DELETED, "old").to_line()
            == "(-) Deleted folder old from replica."
        )

    def test_events_are_hashable(self):
        events = {
            ChangeEvent(ChangeKind.FILE_CREATED, "a"),
            ChangeEvent(ChangeKind.FILE_CREATED, "a"),
        }
        assert len(events) == 1


class TestLogFileSink:
    """Tests for LogFileSink."""

    def test_appends_lines(self, tmp_path):
        log_file = tmp_path / "mirror.log"
        sink = LogFileSink(log_file)

        sink.append("[BACKUP] start")
        sink.emit(ChangeEvent(ChangeKind.FILE_CREATED, "docs/a.txt"))

        assert log_file.read_text().splitlines() == [
            "[BACKUP] start",
            "(+) Copied docs/a.txt to replica folder.",
        ]

    def test_keeps_existing_content(self, tmp_path):
        log_file = tmp_path / "mirror.log"
        log_file.write_text("earlier line\n")

        LogFileSink(log_file).append("new line")

        assert log_file.read_text() == "earlier line\nnew line\n"

    def test_echoes_to_console(self, tmp_path):
        output = Mock(spec=OutputFormatter)
        sink = LogFileSink(tmp_path / "mirror.log", output=output)

        sink.append("hello")

        output.print.assert_called_once_with("hello")

    def test_echo_disabled(self, tmp_path):
        output = Mock(spec=OutputFormatter)
        sink = LogFileSink(tmp_path / "mirror.log", output=output, echo=False)

        sink.append("hello")

        output.print.assert_not_called()

    def test_concurrent_appends_do_not_interleave(self, tmp_path):
        """Lines written from many threads stay whole."""
        log_file = tmp_path / "mirror.log"
        sink = LogFileSink(log_file)
        payload = "x" * 500

        def writer(worker: int) -> None:
            for i in range(100):
                sink.append(f"{worker:02d}-{i:03d} {payload}")

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        lines = log_file.read_text().splitlines()
        assert len(lines) == 800
        assert all(line.endswith(payload) and len(line) == 507 for line in lines)
        assert len(set(lines)) == 800


class TestMemorySink:
    """Tests for MemorySink."""

    def test_records_events_and_lines(self):
        sink = MemorySink()
        event = ChangeEvent(ChangeKind.FILE_DELETED, "a.txt")

        sink.emit(event)
        sink.append("raw")

        assert sink.events == [event]
        assert sink.lines == ["(-) Deleted a.txt from replica.", "raw"]

    def test_clear(self):
        sink = MemorySink()
        sink.emit(ChangeEvent(ChangeKind.FILE_DELETED, "a.txt"))

        sink.clear()

        assert sink.events == []
        assert sink.lines == []


def test_console_sink_prints():
    output = Mock(spec=OutputFormatter)
    ConsoleSink(output).emit(ChangeEvent(ChangeKind.FILE_UPDATED, "b"))

    output.print.assert_called_once_with("(~) Updated b to a newer version.")
