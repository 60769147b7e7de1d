"""Report tree builder: the aggregation state machine.

Receives ordered lifecycle calls and reduces them into an immutable
ReportTree. Suite nesting is tracked with a depth counter rather than
by name, so sibling suites with identical names never collide.

States:
    IDLE -> SUITE_OPEN (depth >= 1) -> TEST_OPEN -> SUITE_OPEN -> ... -> IDLE
    Any state -> FINALIZED on build().
"""

import logging
import threading
from enum import Enum

from .buffer import TransactionBuffer
from .models import (
    HttpTransaction,
    Outcome,
    OutcomeDetail,
    ReportTree,
    SuiteNode,
    TestRecord,
    _DraftSuite,
    _DraftTest,
)
from .ports import TimerPort, TrafficCapturePort

logger = logging.getLogger(__name__)


class ReportStateError(RuntimeError):
    """Raised when the builder or session is used after finalization."""


class BuilderState(Enum):
    IDLE = "idle"
    SUITE_OPEN = "suite_open"
    TEST_OPEN = "test_open"
    FINALIZED = "finalized"


class ReportTreeBuilder:
    """Stateful builder driven by a single ordered event stream.

    All operations hold one re-entrant lock so traffic hooks firing
    from other threads are serialized with lifecycle calls.
    """

    def __init__(
        self,
        timer: TimerPort,
        traffic_capture: TrafficCapturePort | None = None,
        api_version: str | None = None,
    ):
        """Initialize an empty builder.

        Args:
            timer: Timer armed at each test start.
            traffic_capture: Optional per-test traffic recorder.
            api_version: Optional version label stamped on the report.
        """
        self.timer = timer
        self.traffic_capture = traffic_capture
        self.api_version = api_version
        self._buffer = TransactionBuffer()
        self._lock = threading.RLock()
        self._roots: list[SuiteNode] = []
        self._open_suites: list[_DraftSuite] = []
        self._depth = 0
        self._current_test: _DraftTest | None = None
        self._implicit_suite: str | None = None
        self._built = False
        self._orphaned_transactions = 0

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def orphaned_transactions(self) -> int:
        return self._orphaned_transactions

    @property
    def state(self) -> BuilderState:
        if self._built:
            return BuilderState.FINALIZED
        if self._current_test is not None:
            return BuilderState.TEST_OPEN
        if self._depth > 0:
            return BuilderState.SUITE_OPEN
        return BuilderState.IDLE

    def _ensure_not_built(self) -> None:
        if self._built:
            raise ReportStateError("Report tree has already been built")

    # ------------------------------------------------------------------
    # Suites
    # ------------------------------------------------------------------

    def start_suite(self, name: str | None) -> None:
        """Open a top-level suite at depth 0, otherwise a child suite."""
        if not name:
            # Engines wrap runs in a synthetic nameless suite
            logger.debug("Ignoring suite start without a name")
            return

        with self._lock:
            self._ensure_not_built()
            self._open_suites.append(_DraftSuite(name=name))
            self._depth += 1
            logger.debug(f"Opened suite {name!r} at depth {self._depth}")

    def end_suite(self, name: str | None) -> None:
        """Seal the innermost open suite."""
        if not name:
            logger.debug("Ignoring suite end without a name")
            return

        with self._lock:
            self._ensure_not_built()
            if self._current_test is not None:
                logger.warning(
                    f"Suite {name!r} ended while test "
                    f"{self._current_test.name!r} was still open, discarding the test",
                )
                self._discard_current_test()

            if self._depth == 0:
                logger.warning(
                    f"Suite end for {name!r} without an open suite, ignoring",
                    extra={"suite": name},
                )
                return

            draft = self._open_suites.pop()
            self._depth -= 1
            sealed = draft.seal()
            if self._depth == 0:
                self._roots.append(sealed)
            else:
                self._open_suites[-1].children.append(sealed)
            logger.debug(f"Sealed suite {draft.name!r} with {len(sealed.tests)} test(s)")

    # ------------------------------------------------------------------
    # Tests
    # ------------------------------------------------------------------

    def start_test(self, name: str) -> None:
        """Open a test under the innermost suite and arm timer and capture.

        Raises:
            ValueError: If name is empty.
        """
        if not name:
            raise ValueError("test name must be a non-empty string")

        with self._lock:
            self._ensure_not_built()

            if self._current_test is not None:
                logger.warning(
                    f"Test {name!r} started while {self._current_test.name!r} "
                    "was still open, sealing the previous test",
                )
                self.end_test(None)

            if self._depth == 0:
                logger.warning(
                    f"Test {name!r} started outside any suite, "
                    "recording it under an implicit suite",
                )
                self.start_suite(name)
                self._implicit_suite = name

            if self.traffic_capture is not None:
                self.traffic_capture.start()

            self._current_test = _DraftTest(name=name)
            self._buffer.reset()
            self.timer.start()

    def end_test(self, elapsed_time: float | None = None) -> TestRecord | None:
        """Seal the open test with its traffic, timing and outcome.

        Args:
            elapsed_time: Seconds reported by the engine. When None the
                builder's timer reading is used.

        Returns:
            The sealed record, or None if no test was open.
        """
        with self._lock:
            self._ensure_not_built()
            draft = self._current_test
            if draft is None:
                logger.warning("Test end without an open test, ignoring")
                return None

            artifact = None
            if self.traffic_capture is not None:
                try:
                    artifact = self.traffic_capture.write()
                except OSError as e:
                    logger.error(
                        f"Failed to persist traffic for test {draft.name!r}: {e}",
                        extra={"test": draft.name},
                    )

            transactions = self._buffer.drain()
            if elapsed_time is None:
                elapsed_time = self.timer.elapsed()

            record = draft.seal(
                elapsed_time=max(0.0, float(elapsed_time)),
                traffic_artifact=artifact,
                transactions=transactions,
            )
            self._open_suites[-1].tests.append(record)
            self._current_test = None
            logger.debug(
                f"Sealed test {record.name!r}: {record.outcome.value}",
                extra={"transactions": len(transactions)},
            )

            if self._implicit_suite is not None:
                implicit, self._implicit_suite = self._implicit_suite, None
                self.end_suite(implicit)

            return record

    def _discard_current_test(self) -> None:
        """Drop the open test, and its implicit suite if it had one."""
        self._current_test = None
        self._buffer.reset()
        if self._implicit_suite is not None:
            self._implicit_suite = None
            self._open_suites.pop()
            self._depth -= 1

    # ------------------------------------------------------------------
    # Outcomes and traffic
    # ------------------------------------------------------------------

    def add_outcome(
        self,
        kind: Outcome | str,
        exception_class: str,
        message: str,
        trace: str,
        comparison_failure: str | None = None,
    ) -> bool:
        """Attach an outcome to the open test. The first outcome wins.

        For failures, a rendered comparison (expected/actual diff)
        replaces the plain exception message.

        Returns:
            True if the outcome was recorded, False if it was discarded.

        Raises:
            ValueError: If kind is not a non-passing outcome.
        """
        outcome = Outcome(kind)
        if outcome is Outcome.PASSED:
            raise ValueError("passed is the default outcome and cannot be added")

        with self._lock:
            self._ensure_not_built()
            draft = self._current_test
            if draft is None:
                logger.warning(
                    f"Outcome {outcome.value!r} ({exception_class}) without an open test, ignoring",
                )
                return False

            if draft.outcome is not None:
                logger.debug(
                    f"Discarding {outcome.value!r} for {draft.name!r}, "
                    f"already classified as {draft.outcome.value!r}",
                )
                return False

            if outcome is Outcome.FAILURE and comparison_failure:
                message = comparison_failure

            draft.outcome = outcome
            draft.outcome_detail = OutcomeDetail(
                exception_class=exception_class,
                message=message,
                trace=trace,
            )
            return True

    def add_http_transaction(
        self,
        request_method: str,
        request_url: str,
        raw_request: bytes | str | None,
        raw_response: bytes | str | None,
    ) -> HttpTransaction | None:
        """Queue a transaction for the open test.

        Returns:
            The buffered transaction, or None when rejected because no
            test was open.
        """
        with self._lock:
            self._ensure_not_built()
            if self._current_test is None:
                self._orphaned_transactions += 1
                logger.warning(
                    f"Rejected {request_method} {request_url}: no test is open",
                    extra={"orphaned_transactions": self._orphaned_transactions},
                )
                return None
            return self._buffer.append(
                request_method, request_url, raw_request, raw_response
            )

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def build(self) -> ReportTree:
        """Seal and return the report tree. May only be called once.

        Suites still open are sealed with a warning. A test whose end
        never arrived is discarded.

        Raises:
            ReportStateError: If called a second time.
        """
        with self._lock:
            self._ensure_not_built()

            if self._current_test is not None:
                logger.warning(
                    f"Test {self._current_test.name!r} never completed, discarding it"
                )
                self._discard_current_test()

            if self._depth > 0:
                logger.warning(f"Building report with {self._depth} suite(s) still open")
                while self._depth > 0:
                    self.end_suite(self._open_suites[-1].name)

            self._built = True
            tree = ReportTree(suites=tuple(self._roots), api_version=self.api_version)
            logger.info(
                f"Built report tree with {len(tree.suites)} top-level suite(s)",
                extra={"orphaned_transactions": self._orphaned_transactions},
            )
            return tree
