"""Tests for the unit and behavior lifecycle strategies.

Both strategies are driven through an EventRouter so the routing
tables are exercised together with the builder calls they map to.
"""

import pytest

from suitelog.core.builder import ReportTreeBuilder
from suitelog.core.events import (
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
    BEHAVIOR_EVENTS,
    UNIT_EVENTS,
)
from suitelog.core.models import Outcome
from suitelog.core.router import ROUTER_PRIORITY, EventRouter
from suitelog.core.strategies import (
    STRATEGIES,
    BehaviorLifecycleStrategy,
    UnitLifecycleStrategy,
)
from suitelog.tests.fakes import FakeTimer


@pytest.fixture
def unit() -> UnitLifecycleStrategy:
    return UnitLifecycleStrategy(ReportTreeBuilder(timer=FakeTimer()))


@pytest.fixture
def behavior() -> BehaviorLifecycleStrategy:
    return BehaviorLifecycleStrategy(ReportTreeBuilder(timer=FakeTimer(reading=1.5)))


class TestRoutingTables:
    """Static routing tables cover each vocabulary at router priority."""

    def test_unit_table_covers_unit_events(self, unit: UnitLifecycleStrategy) -> None:
        table = unit.subscribed_events()
        assert set(table) == set(UNIT_EVENTS)
        assert {priority for _, priority in table.values()} == {ROUTER_PRIORITY}

    def test_behavior_table_covers_behavior_events(
        self, behavior: BehaviorLifecycleStrategy
    ) -> None:
        table = behavior.subscribed_events()
        assert set(table) == set(BEHAVIOR_EVENTS)
        assert {priority for _, priority in table.values()} == {ROUTER_PRIORITY}

    def test_strategies_are_selectable_by_name(self) -> None:
        assert STRATEGIES["unit"] is UnitLifecycleStrategy
        assert STRATEGIES["behavior"] is BehaviorLifecycleStrategy


class TestUnitLifecycleStrategy:
    """Unit vocabulary mapped onto the builder."""

    def test_failure_scenario(self, unit: UnitLifecycleStrategy) -> None:
        router = EventRouter(unit).bind()
        for event in [
            SuiteStarted("S"),
            TestStarted("t1"),
            TrafficTransactionCompleted("GET", "/x", b"req", b"res"),
            TestOutcome("failure", "AssertionError", "x!=y", "trace"),
            TestCompleted(0.012),
            SuiteCompleted("S"),
        ]:
            router.dispatch(event)

        tree = unit.build()

        test = tree.suites[0].tests[0]
        assert tree.suites[0].name == "S"
        assert test.name == "t1"
        assert test.outcome == Outcome.FAILURE
        assert test.outcome_detail.exception_class == "AssertionError"
        assert test.outcome_detail.message == "x!=y"
        assert test.elapsed_time == 0.012
        assert [(t.request_method, t.request_url) for t in test.transactions] == [("GET", "/x")]

    def test_comparison_failure_is_forwarded(self, unit: UnitLifecycleStrategy) -> None:
        router = EventRouter(unit).bind()
        router.dispatch(SuiteStarted("S"))
        router.dispatch(TestStarted("t1"))
        router.dispatch(
            TestOutcome("failure", "AssertionError", "plain", "trace", comparison_failure="-1\n+2")
        )
        router.dispatch(TestCompleted(None))
        router.dispatch(SuiteCompleted("S"))

        assert unit.build().suites[0].tests[0].outcome_detail.message == "-1\n+2"

    def test_orphaned_transactions_are_reported(self, unit: UnitLifecycleStrategy) -> None:
        router = EventRouter(unit).bind()
        router.dispatch(TrafficTransactionCompleted("GET", "/nowhere", b"", b""))

        assert unit.orphaned_transactions == 1


class TestBehaviorLifecycleStrategy:
    """Behavior vocabulary: features, scenarios and steps."""

    def test_features_and_scenarios_become_suites_and_tests(
        self, behavior: BehaviorLifecycleStrategy
    ) -> None:
        router = EventRouter(behavior).bind()
        router.dispatch(FeatureStarted("Checkout"))
        router.dispatch(ScenarioStarted("Pay by card"))
        router.dispatch(StepCompleted("Given a cart", "passed"))
        router.dispatch(ScenarioCompleted(None))
        router.dispatch(FeatureCompleted("Checkout"))

        tree = behavior.build()

        feature = tree.suites[0]
        assert feature.name == "Checkout"
        assert feature.tests[0].name == "Pay by card"
        assert feature.tests[0].outcome == Outcome.PASSED
        assert feature.tests[0].elapsed_time == 1.5

    @pytest.mark.parametrize(
        "status, outcome",
        [
            ("failed", Outcome.FAILURE),
            ("skipped", Outcome.SKIPPED),
            ("pending", Outcome.INCOMPLETE),
            ("undefined", Outcome.INCOMPLETE),
        ],
    )
    def test_step_status_classifies_scenario(
        self, behavior: BehaviorLifecycleStrategy, status: str, outcome: Outcome
    ) -> None:
        router = EventRouter(behavior).bind()
        router.dispatch(FeatureStarted("F"))
        router.dispatch(ScenarioStarted("S"))
        router.dispatch(StepCompleted("When something happens", status))
        router.dispatch(ScenarioCompleted(0.2))
        router.dispatch(FeatureCompleted("F"))

        test = behavior.build().suites[0].tests[0]
        assert test.outcome == outcome
        assert test.outcome_detail.message == "When something happens"

    def test_first_failing_step_wins(self, behavior: BehaviorLifecycleStrategy) -> None:
        router = EventRouter(behavior).bind()
        router.dispatch(FeatureStarted("F"))
        router.dispatch(ScenarioStarted("S"))
        router.dispatch(StepCompleted("Given", "passed"))
        router.dispatch(
            StepCompleted("When", "failed", "AssertionError", "expected 200", "trace")
        )
        router.dispatch(StepCompleted("Then", "skipped"))
        router.dispatch(ScenarioCompleted(0.2))
        router.dispatch(FeatureCompleted("F"))

        test = behavior.build().suites[0].tests[0]
        assert test.outcome == Outcome.FAILURE
        assert test.outcome_detail.exception_class == "AssertionError"
        assert test.outcome_detail.message == "expected 200"

    def test_unknown_step_status_is_ignored(self, behavior: BehaviorLifecycleStrategy) -> None:
        router = EventRouter(behavior).bind()
        router.dispatch(FeatureStarted("F"))
        router.dispatch(ScenarioStarted("S"))
        router.dispatch(StepCompleted("Given", "ambiguous"))
        router.dispatch(ScenarioCompleted(0.2))
        router.dispatch(FeatureCompleted("F"))

        assert behavior.build().suites[0].tests[0].outcome == Outcome.PASSED

    def test_scenario_traffic_is_correlated(self, behavior: BehaviorLifecycleStrategy) -> None:
        router = EventRouter(behavior).bind()
        router.dispatch(FeatureStarted("F"))
        router.dispatch(ScenarioStarted("S"))
        router.dispatch(TrafficTransactionCompleted("POST", "/orders", b"{}", b"{}"))
        router.dispatch(ScenarioCompleted(0.2))
        router.dispatch(FeatureCompleted("F"))

        test = behavior.build().suites[0].tests[0]
        assert [t.request_url for t in test.transactions] == ["/orders"]

    def test_unit_events_are_not_routed(self, behavior: BehaviorLifecycleStrategy) -> None:
        router = EventRouter(behavior).bind()
        assert router.dispatch(SuiteStarted("ignored")) == 0
        assert behavior.build().suites == ()
