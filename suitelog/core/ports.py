"""Port interfaces for the suitelog report aggregator.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - TimerPort: Elapsed-time measurement per test
   - TrafficCapturePort: Per-test traffic recording artifact
   - SerializerPort: Encode the finished report tree
   - SinkPort: Persist or transmit the encoded report

2. **Driving Ports** (adapters/external systems call into core)
   - LifecycleSink: Receives routed lifecycle events and builds the tree
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from .models import ReportTree

Handler = Callable[[Any], None]


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class TimerPort(ABC):
    """Port for measuring how long a test ran.

    Stateless from the core's point of view: started at test start,
    read at test end.
    """

    @abstractmethod
    def start(self) -> None:
        """Arm the timer for a new test."""

    @abstractmethod
    def elapsed(self) -> float:
        """Return seconds elapsed since the last start().

        Returns:
            Elapsed time in seconds. 0.0 if never started.
        """


class TrafficCapturePort(ABC):
    """Port for the opaque per-test network traffic recorder.

    Implementations must handle:
    - Being started and written once per test, many times per run
    - write() without a prior start() (return None)
    """

    @abstractmethod
    def start(self) -> None:
        """Begin capturing traffic for the test that is starting."""

    @abstractmethod
    def write(self) -> str | None:
        """Stop capturing and persist the captured traffic.

        Returns:
            Path of the persisted capture artifact, or None if
            capture was never started.

        Raises:
            OSError: If the artifact cannot be written.
        """


class SerializerPort(ABC):
    """Port for encoding the finished report tree."""

    @abstractmethod
    def interpret(self, tree: Mapping[str, Any]) -> bytes:
        """Encode a report tree given as nested mapping.

        Args:
            tree: Output of ReportTree.to_dict().

        Returns:
            Encoded bytes ready for a sink.

        Raises:
            ValueError: If the mapping cannot be encoded.
        """


class SinkPort(ABC):
    """Port for the byte-stream destination of the final report.

    write() is invoked exactly once, during orderly shutdown.
    """

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Deliver the encoded report.

        Raises:
            OSError: If the destination is unavailable. Not retried.
        """


# ============================================================================
# DRIVING PORTS (Adapters/external systems call into core)
# ============================================================================


class LifecycleSink(ABC):
    """Port for a lifecycle strategy that turns events into a report tree.

    Each implementation understands one event vocabulary and exposes a
    static routing table. The event router registers that table on a
    dispatcher; the strategy forwards to a ReportTreeBuilder.
    """

    @abstractmethod
    def subscribed_events(self) -> dict[type, tuple[Handler, int]]:
        """Return the routing table: event type -> (handler, priority).

        Lower priority values run earlier among subscribers of the
        same event type.
        """

    @abstractmethod
    def build(self) -> ReportTree:
        """Seal and return the report tree. Called exactly once.

        Raises:
            ReportStateError: If the tree was already built.
        """

    @property
    @abstractmethod
    def orphaned_transactions(self) -> int:
        """Number of traffic transactions rejected for lack of an open test."""
