"""Tests for the report sink adapters."""

import io
import os
import threading
from pathlib import Path

import pytest

from suitelog.adapters.sink.file import FileSink, UniqueNameFileSink
from suitelog.adapters.sink.named_pipe import NamedPipeSink
from suitelog.adapters.sink.stdout import StdoutSink


class TestFileSink:
    """Test FileSink writes."""

    def test_write_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "out" / "report.ndjson"

        FileSink(str(target)).write(b"{}\n")

        assert target.read_bytes() == b"{}\n"

    def test_write_replaces_previous_contents(self, tmp_path: Path) -> None:
        target = tmp_path / "report.ndjson"
        sink = FileSink(str(target))

        sink.write(b"first\n")
        sink.write(b"second\n")

        assert target.read_bytes() == b"second\n"

    def test_directory_path_is_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="must name a file"):
            FileSink(str(tmp_path))

    def test_write_failure_is_raised(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        sink = FileSink(str(blocker / "report.ndjson"))

        with pytest.raises(OSError):
            sink.write(b"{}\n")


class TestUniqueNameFileSink:
    """Test UniqueNameFileSink naming."""

    def test_each_write_gets_a_new_file(self, tmp_path: Path) -> None:
        sink = UniqueNameFileSink(str(tmp_path / "traffic"), "har")

        sink.write(b"one")
        first = sink.last_path
        sink.write(b"two")
        second = sink.last_path

        assert first != second
        assert first.read_bytes() == b"one"
        assert second.read_bytes() == b"two"
        assert sorted(p.suffix for p in (tmp_path / "traffic").iterdir()) == [".har", ".har"]

    def test_name_format(self, tmp_path: Path) -> None:
        sink = UniqueNameFileSink(str(tmp_path), ".har", prefix="run")

        name = sink.next_path().name

        prefix, stamp, token = name[: -len(".har")].split("-")
        assert prefix == "run"
        assert len(stamp) == 15 and stamp[8] == "T"
        assert len(token) == 8
        assert name.endswith(".har")

    def test_last_path_is_none_before_write(self, tmp_path: Path) -> None:
        assert UniqueNameFileSink(str(tmp_path), "har").last_path is None


class TestNamedPipeSink:
    """Test NamedPipeSink delivery to a consumer-created FIFO."""

    def test_empty_name_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            NamedPipeSink("")

    def test_missing_pipe_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            NamedPipeSink(str(tmp_path / "absent.pipe")).write(b"{}\n")

    def test_regular_file_is_not_a_pipe(self, tmp_path: Path) -> None:
        regular = tmp_path / "regular"
        regular.write_bytes(b"")

        with pytest.raises(OSError, match="not a named pipe"):
            NamedPipeSink(str(regular)).write(b"{}\n")

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes require POSIX")
    def test_write_reaches_reader(self, tmp_path: Path) -> None:
        pipe = tmp_path / "report.pipe"
        os.mkfifo(pipe)
        received: list[bytes] = []

        def consume() -> None:
            with pipe.open("rb") as reader:
                received.append(reader.read())

        reader_thread = threading.Thread(target=consume)
        reader_thread.start()
        NamedPipeSink(str(pipe)).write(b'{"type": "report"}\n')
        reader_thread.join(timeout=5)

        assert received == [b'{"type": "report"}\n']


class TestStdoutSink:
    """Test StdoutSink stream writes."""

    def test_writes_to_given_stream(self) -> None:
        stream = io.BytesIO()

        StdoutSink(stream).write(b"{}\n")

        assert stream.getvalue() == b"{}\n"
