"""Lifecycle strategies mapping engine event vocabularies onto the builder.

Both strategies implement LifecycleSink and drive the same
ReportTreeBuilder; they differ only in which events they consume.
"""

import logging

from .builder import ReportTreeBuilder
from .events import (
    FeatureCompleted,
    FeatureStarted,
    ScenarioCompleted,
    ScenarioStarted,
    StepCompleted,
    SuiteCompleted,
    SuiteStarted,
    TestCompleted,
    TestOutcome,
    TestStarted,
    TrafficTransactionCompleted,
)
from .models import Outcome, ReportTree
from .ports import Handler, LifecycleSink
from .router import ROUTER_PRIORITY

logger = logging.getLogger(__name__)


class UnitLifecycleStrategy(LifecycleSink):
    """Consumes fine-grained unit-test events."""

    def __init__(self, builder: ReportTreeBuilder):
        self.builder = builder

    def subscribed_events(self) -> dict[type, tuple[Handler, int]]:
        return {
            SuiteStarted: (self.start_suite, ROUTER_PRIORITY),
            TestStarted: (self.start_test, ROUTER_PRIORITY),
            TestOutcome: (self.add_outcome, ROUTER_PRIORITY),
            TrafficTransactionCompleted: (self.add_http_transaction, ROUTER_PRIORITY),
            TestCompleted: (self.end_test, ROUTER_PRIORITY),
            SuiteCompleted: (self.end_suite, ROUTER_PRIORITY),
        }

    def start_suite(self, event: SuiteStarted) -> None:
        self.builder.start_suite(event.name)

    def end_suite(self, event: SuiteCompleted) -> None:
        self.builder.end_suite(event.name)

    def start_test(self, event: TestStarted) -> None:
        self.builder.start_test(event.name)

    def end_test(self, event: TestCompleted) -> None:
        self.builder.end_test(event.elapsed_time)

    def add_outcome(self, event: TestOutcome) -> None:
        self.builder.add_outcome(
            event.kind,
            event.exception_class,
            event.message,
            event.trace,
            comparison_failure=event.comparison_failure,
        )

    def add_http_transaction(self, event: TrafficTransactionCompleted) -> None:
        self.builder.add_http_transaction(
            event.request_method,
            event.request_url,
            event.raw_request,
            event.raw_response,
        )

    def build(self) -> ReportTree:
        return self.builder.build()

    @property
    def orphaned_transactions(self) -> int:
        return self.builder.orphaned_transactions


# Step status -> outcome; passed steps leave the scenario untouched
STEP_OUTCOMES: dict[str, Outcome] = {
    "failed": Outcome.FAILURE,
    "skipped": Outcome.SKIPPED,
    "pending": Outcome.INCOMPLETE,
    "undefined": Outcome.INCOMPLETE,
}


class BehaviorLifecycleStrategy(LifecycleSink):
    """Consumes the coarser behavior (BDD) event set.

    Features become suites, scenarios become tests, and the first
    non-passing step classifies its scenario.
    """

    def __init__(self, builder: ReportTreeBuilder):
        self.builder = builder

    def subscribed_events(self) -> dict[type, tuple[Handler, int]]:
        return {
            FeatureStarted: (self.start_feature, ROUTER_PRIORITY),
            ScenarioStarted: (self.start_scenario, ROUTER_PRIORITY),
            StepCompleted: (self.add_step, ROUTER_PRIORITY),
            TrafficTransactionCompleted: (self.add_http_transaction, ROUTER_PRIORITY),
            ScenarioCompleted: (self.end_scenario, ROUTER_PRIORITY),
            FeatureCompleted: (self.end_feature, ROUTER_PRIORITY),
        }

    def start_feature(self, event: FeatureStarted) -> None:
        self.builder.start_suite(event.name)

    def end_feature(self, event: FeatureCompleted) -> None:
        self.builder.end_suite(event.name)

    def start_scenario(self, event: ScenarioStarted) -> None:
        self.builder.start_test(event.name)

    def end_scenario(self, event: ScenarioCompleted) -> None:
        self.builder.end_test(event.elapsed_time)

    def add_step(self, event: StepCompleted) -> None:
        if event.status == "passed":
            return
        outcome = STEP_OUTCOMES.get(event.status)
        if outcome is None:
            logger.warning(f"Unknown step status {event.status!r} for step {event.text!r}")
            return
        message = event.message or event.text
        self.builder.add_outcome(
            outcome,
            event.exception_class or outcome.value,
            message,
            event.trace,
        )

    def add_http_transaction(self, event: TrafficTransactionCompleted) -> None:
        self.builder.add_http_transaction(
            event.request_method,
            event.request_url,
            event.raw_request,
            event.raw_response,
        )

    def build(self) -> ReportTree:
        return self.builder.build()

    @property
    def orphaned_transactions(self) -> int:
        return self.builder.orphaned_transactions


STRATEGIES: dict[str, type[LifecycleSink]] = {
    "unit": UnitLifecycleStrategy,
    "behavior": BehaviorLifecycleStrategy,
}
