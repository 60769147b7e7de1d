"""Transaction buffer for traffic captured while a test is open."""

import threading
from collections import deque

from .models import HttpTransaction


def to_text(raw: bytes | str | None) -> str:
    """Render raw HTTP bytes as text without ever failing.

    Valid UTF-8 is decoded as such. Anything else falls back to
    Latin-1, which maps every byte to a code point, so arbitrary
    binary payloads survive and can be recovered with encode("latin-1").
    """
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


class TransactionBuffer:
    """FIFO queue of HTTP transactions for the currently open test.

    Exclusively owned by one builder. Appends may come from traffic
    hooks running on other threads, so access goes through a lock.
    """

    def __init__(self) -> None:
        self._queue: deque[HttpTransaction] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def append(
        self,
        request_method: str,
        request_url: str,
        raw_request: bytes | str | None,
        raw_response: bytes | str | None,
    ) -> HttpTransaction:
        transaction = HttpTransaction(
            request_method=request_method,
            request_url=request_url,
            request=to_text(raw_request),
            response=to_text(raw_response),
        )
        with self._lock:
            self._queue.append(transaction)
        return transaction

    def reset(self) -> None:
        with self._lock:
            self._queue.clear()

    def drain(self) -> tuple[HttpTransaction, ...]:
        """Remove and return all buffered transactions in arrival order."""
        with self._lock:
            drained = tuple(self._queue)
            self._queue.clear()
        return drained
