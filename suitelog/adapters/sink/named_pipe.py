"""Named pipe sink adapter.

Implements SinkPort by writing the report into a FIFO created by the
consuming process. Opening a FIFO for writing blocks until a reader
has it open, which is the handshake with the consumer.
"""

import logging
import stat
from pathlib import Path

from suitelog.core.ports import SinkPort

logger = logging.getLogger(__name__)


class NamedPipeSink(SinkPort):
    """Writes bytes into an existing named pipe."""

    def __init__(self, pipe_name: str):
        """Initialize named pipe sink.

        Args:
            pipe_name: Path of the FIFO. It is not created here; a missing
                pipe means the consumer is not listening.

        Raises:
            ValueError: If pipe_name is empty.
        """
        if not pipe_name:
            raise ValueError("pipe_name must be a non-empty string")
        self.path = Path(pipe_name)

    def write(self, data: bytes) -> None:
        """Write data into the pipe.

        Raises:
            FileNotFoundError: If the pipe does not exist.
            OSError: If the path is not a FIFO or the write fails.
        """
        if not self.path.exists():
            raise FileNotFoundError(f"Named pipe does not exist: {self.path}")
        if not stat.S_ISFIFO(self.path.stat().st_mode):
            raise OSError(f"Path is not a named pipe: {self.path}")

        with self.path.open("wb") as pipe:
            pipe.write(data)
            pipe.flush()
        logger.info(f"Wrote {len(data)} bytes to pipe {self.path}")
