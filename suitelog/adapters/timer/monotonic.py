"""Monotonic timer adapter.

Implements TimerPort with time.perf_counter, which is unaffected by
wall-clock adjustments during a run.
"""

import time

from suitelog.core.ports import TimerPort


class MonotonicTimer(TimerPort):
    """Measures seconds since the last start()."""

    def __init__(self) -> None:
        self._started_at: float | None = None

    def start(self) -> None:
        self._started_at = time.perf_counter()

    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return time.perf_counter() - self._started_at
