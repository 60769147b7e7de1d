"""Stdout sink adapter.

Implements SinkPort by writing the encoded report to standard output,
so it can be piped into another tool.
"""

import sys
from typing import BinaryIO

from suitelog.core.ports import SinkPort


class StdoutSink(SinkPort):
    """Writes bytes to a binary stream, stdout by default."""

    def __init__(self, stream: BinaryIO | None = None):
        self.stream = stream

    def write(self, data: bytes) -> None:
        stream = self.stream or sys.stdout.buffer
        stream.write(data)
        stream.flush()
