"""File sink adapters.

FileSink writes the report to a fixed path. UniqueNameFileSink writes
each payload to a freshly named file in a directory, which is how
per-test traffic artifacts are persisted.
"""

import logging
import uuid
from datetime import UTC, datetime
from pathlib import Path

from suitelog.core.ports import SinkPort

logger = logging.getLogger(__name__)


class FileSink(SinkPort):
    """Writes bytes to a single file, replacing previous contents."""

    def __init__(self, path: str):
        """Initialize file sink.

        Args:
            path: Destination file. Parent directories are created on write.

        Raises:
            ValueError: If path names a directory or filesystem root.
        """
        self.path = Path(path).resolve()
        if self.path.parent == self.path or self.path.is_dir():
            raise ValueError(f"path must name a file, got: {path}")

    def write(self, data: bytes) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(data)
        except OSError as e:
            logger.error(
                f"Failed to write report file: {e}",
                extra={"path": str(self.path)},
            )
            raise
        logger.info(f"Wrote {len(data)} bytes to {self.path}")


class UniqueNameFileSink(SinkPort):
    """Writes each payload to a new uniquely named file in a directory."""

    def __init__(self, directory: str, extension: str, prefix: str = "suitelog"):
        """Initialize unique-name file sink.

        Args:
            directory: Target directory, created on first write.
            extension: File extension without the leading dot (e.g. "har").
            prefix: File name prefix.
        """
        self.directory = Path(directory).resolve()
        self.extension = extension.lstrip(".")
        self.prefix = prefix
        self.last_path: Path | None = None

    def next_path(self) -> Path:
        """Compute a fresh file path: prefix-YYYYmmddTHHMMSS-xxxxxxxx.ext"""
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
        return self.directory / f"{self.prefix}-{stamp}-{uuid.uuid4().hex[:8]}.{self.extension}"

    def write(self, data: bytes) -> None:
        path = self.next_path()
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to write {self.extension} file: {e}", extra={"path": str(path)})
            raise
        self.last_path = path
        logger.debug(f"Wrote {len(data)} bytes to {path}")
