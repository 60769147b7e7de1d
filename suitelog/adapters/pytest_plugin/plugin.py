"""pytest plugin feeding pytest's run hooks into a report session.

Registered through the pytest11 entry point and inert unless the run
is started with --suitelog. Module and class nesting of each test's
node id become nested suites; each test's phases are reduced to one
test record.

Outcome mapping:
- failed call phase raising AssertionError -> failure
- any other failed phase -> error
- skipped -> skipped
- xfailed -> incomplete
- xpassed (non-strict) -> risky
"""

import logging

import pytest
from pydantic import ValidationError

from suitelog.config import load_settings
from suitelog.core.events import (
    SuiteCompleted,
    SuiteStarted,
    TestCompleted,
    TestOutcome,
    TestStarted,
)
from suitelog.core.reporter import ReportSession
from suitelog.main import build_session

logger = logging.getLogger(__name__)

PLUGIN_NAME = "suitelog-reporter"


def suite_path(nodeid: str) -> list[str]:
    """Suite names enclosing a test: its file, then any classes."""
    parts = nodeid.split("::")
    return parts[:-1] if len(parts) > 1 else parts


def leaf_name(nodeid: str) -> str:
    return nodeid.split("::")[-1]


def _comparison_failure(longreprtext: str) -> str | None:
    """Extract pytest's rendered assertion explanation (the "E" lines)."""
    lines = [
        line[1:].strip()
        for line in longreprtext.splitlines()
        if line.startswith("E ")
    ]
    return "\n".join(lines) or None


class SuitelogPlugin:
    """Translates pytest hooks into lifecycle events."""

    def __init__(self, session: ReportSession):
        self.session = session
        self.open_suites: list[str] = []
        self._duration = 0.0

    def _enter_suites(self, path: list[str]) -> None:
        common = 0
        for current, wanted in zip(self.open_suites, path):
            if current != wanted:
                break
            common += 1
        self._leave_suites(common)
        for name in path[common:]:
            self.session.dispatch(SuiteStarted(name=name))
            self.open_suites.append(name)

    def _leave_suites(self, keep: int = 0) -> None:
        while len(self.open_suites) > keep:
            self.session.dispatch(SuiteCompleted(name=self.open_suites.pop()))

    @pytest.hookimpl(hookwrapper=True)
    def pytest_runtest_makereport(self, item, call):
        outcome = yield
        report = outcome.get_result()
        if call.excinfo is not None:
            report.suitelog_exception = (call.excinfo.typename, str(call.excinfo.value))

    def pytest_runtest_logstart(self, nodeid: str, location) -> None:
        self._enter_suites(suite_path(nodeid))
        self._duration = 0.0
        self.session.dispatch(TestStarted(name=leaf_name(nodeid)))

    def pytest_runtest_logreport(self, report) -> None:
        self._duration += getattr(report, "duration", 0.0)
        event = self.classify(report)
        if event is not None:
            self.session.dispatch(event)

    def pytest_runtest_logfinish(self, nodeid: str, location) -> None:
        self.session.dispatch(TestCompleted(elapsed_time=self._duration))

    @staticmethod
    def classify(report) -> TestOutcome | None:
        """Map one phase report to an outcome event, or None if it passed."""
        exception_class, message = getattr(report, "suitelog_exception", ("", ""))
        trace = getattr(report, "longreprtext", "") or ""
        wasxfail = getattr(report, "wasxfail", None)

        if report.passed:
            if report.when == "call" and wasxfail is not None:
                return TestOutcome("risky", "XPassed", wasxfail or "unexpectedly passed", "")
            return None

        if report.skipped:
            if wasxfail is not None:
                return TestOutcome("incomplete", "XFailed", wasxfail or message, trace)
            reason = report.longrepr[2] if isinstance(report.longrepr, tuple) else trace
            return TestOutcome("skipped", exception_class or "Skipped", str(reason), "")

        if report.when == "call" and exception_class == "AssertionError":
            return TestOutcome(
                "failure",
                exception_class,
                message,
                trace,
                comparison_failure=_comparison_failure(trace),
            )
        return TestOutcome("error", exception_class or "Error", message or trace, trace)

    def pytest_sessionfinish(self, session, exitstatus) -> None:
        self._leave_suites()
        try:
            self.session.finalize()
        except Exception:
            # Logged at CRITICAL by the report session
            session.exitstatus = pytest.ExitCode.INTERNAL_ERROR


def pytest_addoption(parser) -> None:
    group = parser.getgroup("suitelog", "hierarchical test report")
    group.addoption(
        "--suitelog",
        action="store_true",
        default=False,
        help="Aggregate this run into a suitelog report.",
    )
    group.addoption(
        "--suitelog-report",
        default=None,
        metavar="PATH",
        help="Write the report to PATH instead of the configured sink.",
    )


def pytest_configure(config) -> None:
    if not config.getoption("suitelog"):
        return

    report_path = config.getoption("suitelog_report")
    overrides = {"sink_backend": "file", "report_path": report_path} if report_path else {}
    try:
        settings = load_settings(**overrides)
    except ValidationError as e:
        raise pytest.UsageError(f"Invalid suitelog configuration: {e}") from e

    session = build_session(settings)
    config.pluginmanager.register(SuitelogPlugin(session), PLUGIN_NAME)


@pytest.fixture
def suitelog_event_hooks(request) -> dict:
    """httpx event_hooks recording traffic into the report, or {} when disabled."""
    plugin = request.config.pluginmanager.get_plugin(PLUGIN_NAME)
    capture = plugin.session.traffic_capture if plugin is not None else None
    if capture is None or not hasattr(capture, "event_hooks"):
        return {}
    return capture.event_hooks()


@pytest.fixture
def suitelog_async_event_hooks(request) -> dict:
    """httpx.AsyncClient event_hooks recording traffic into the report."""
    plugin = request.config.pluginmanager.get_plugin(PLUGIN_NAME)
    capture = plugin.session.traffic_capture if plugin is not None else None
    if capture is None or not hasattr(capture, "async_event_hooks"):
        return {}
    return capture.async_event_hooks()
