"""Report session: explicit, single-shot finalization of a run.

A session owns the lifecycle strategy, the serializer and the sink.
finalize() builds the tree, encodes it and writes it exactly once. The
session is a context manager so finalization happens deterministically
at the end of a run instead of as a side effect of object teardown.
Leaving the block with an exception writes nothing.
"""

import logging
from typing import Any

from .builder import ReportStateError
from .models import ReportTree
from .ports import LifecycleSink, SerializerPort, SinkPort, TrafficCapturePort
from .router import EventRouter

logger = logging.getLogger(__name__)


class ReportSession:
    """One run's worth of aggregation, flushed once at shutdown."""

    def __init__(
        self,
        lifecycle: LifecycleSink,
        serializer: SerializerPort,
        sink: SinkPort,
        router: EventRouter | None = None,
        traffic_capture: TrafficCapturePort | None = None,
    ):
        self.lifecycle = lifecycle
        self.traffic_capture = traffic_capture
        self.serializer = serializer
        self.sink = sink
        self.router = (router or EventRouter(lifecycle)).bind()
        self.tree: ReportTree | None = None
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def dispatch(self, event: Any) -> int:
        """Route one lifecycle event to the strategy."""
        return self.router.dispatch(event)

    def finalize(self) -> ReportTree:
        """Build, encode and write the report.

        Failures are logged at CRITICAL and re-raised; there is no retry.

        Raises:
            ReportStateError: If the session was already finalized.
            ValueError: If the tree cannot be encoded.
            OSError: If the sink cannot be written.
        """
        if self._finalized:
            raise ReportStateError("Report session has already been finalized")
        self._finalized = True

        try:
            tree = self.lifecycle.build()
            self.tree = tree
            contents = self.serializer.interpret(tree.to_dict())
            self.sink.write(contents)
        except Exception as e:
            logger.critical(f"Failed to flush report: {e}", exc_info=True)
            raise

        logger.info(
            f"Report written ({len(contents)} bytes)",
            extra={
                "suites": len(tree.suites),
                "orphaned_transactions": self.lifecycle.orphaned_transactions,
            },
        )
        return tree

    def __enter__(self) -> "ReportSession":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        # An aborted run writes nothing
        if exc_type is not None:
            logger.error(
                f"Run aborted by {exc_type.__name__}, report not written",
                extra={"finalized": self._finalized},
            )
            return
        if not self._finalized:
            self.finalize()
