"""Lifecycle events consumed by the report aggregator.

Two event vocabularies exist. The unit vocabulary mirrors a unit-test
runner (suites, tests, outcomes). The behavior vocabulary mirrors a BDD
runner (features, scenarios, steps). Traffic events are shared.
"""

from dataclasses import dataclass


# ============================================================================
# UNIT VOCABULARY
# ============================================================================


@dataclass(frozen=True)
class SuiteStarted:
    """A test suite is about to run. The engine may send a nameless one."""

    name: str | None


@dataclass(frozen=True)
class SuiteCompleted:
    """A test suite finished running."""

    name: str | None


@dataclass(frozen=True)
class TestStarted:
    """A single test is about to run."""

    __test__ = False

    name: str


@dataclass(frozen=True)
class TestCompleted:
    """A single test finished; elapsed_time is in seconds when known."""

    __test__ = False

    elapsed_time: float | None = None


@dataclass(frozen=True)
class TestOutcome:
    """A non-passing classification for the currently running test.

    kind is one of error, failure, skipped, warning, incomplete, risky.
    comparison_failure carries a rendered expected/actual diff when the
    underlying assertion exposed one.
    """

    __test__ = False

    kind: str
    exception_class: str
    message: str
    trace: str
    comparison_failure: str | None = None


# ============================================================================
# BEHAVIOR VOCABULARY
# ============================================================================


@dataclass(frozen=True)
class FeatureStarted:
    name: str | None


@dataclass(frozen=True)
class FeatureCompleted:
    name: str | None


@dataclass(frozen=True)
class ScenarioStarted:
    name: str


@dataclass(frozen=True)
class ScenarioCompleted:
    elapsed_time: float | None = None


@dataclass(frozen=True)
class StepCompleted:
    """One step of a scenario finished.

    status is one of passed, failed, skipped, pending, undefined.
    """

    text: str
    status: str
    exception_class: str = ""
    message: str = ""
    trace: str = ""


# ============================================================================
# SHARED
# ============================================================================


@dataclass(frozen=True)
class TrafficTransactionCompleted:
    """An HTTP request/response pair completed while capturing traffic."""

    request_method: str
    request_url: str
    raw_request: bytes | str
    raw_response: bytes | str


UNIT_EVENTS = (
    SuiteStarted,
    SuiteCompleted,
    TestStarted,
    TestCompleted,
    TestOutcome,
    TrafficTransactionCompleted,
)

BEHAVIOR_EVENTS = (
    FeatureStarted,
    FeatureCompleted,
    ScenarioStarted,
    ScenarioCompleted,
    StepCompleted,
    TrafficTransactionCompleted,
)

EVENT_TYPES: dict[str, type] = {
    event_type.__name__: event_type
    for event_type in (*UNIT_EVENTS, *BEHAVIOR_EVENTS)
}


def event_from_dict(data: dict) -> object:
    """Rebuild an event from {"event": "<ClassName>", ...fields}.

    Raises:
        ValueError: If the event name is unknown or fields do not match.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Event must be a JSON object, got {type(data).__name__}")
    fields = dict(data)
    name = fields.pop("event", None)
    event_type = EVENT_TYPES.get(name) if isinstance(name, str) else None
    if event_type is None:
        raise ValueError(f"Unknown event type: {name!r}")
    try:
        return event_type(**fields)
    except TypeError as e:
        raise ValueError(f"Invalid fields for {name}: {e}") from e
