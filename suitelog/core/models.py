"""Domain models for the suitelog report aggregator.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.

Sealed nodes are frozen dataclasses. The builder accumulates into
private mutable drafts and converts them on their end event.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Outcome(Enum):
    """Terminal classification of a test's result."""

    PASSED = "passed"
    ERROR = "error"
    FAILURE = "failure"
    SKIPPED = "skipped"
    WARNING = "warning"
    INCOMPLETE = "incomplete"
    RISKY = "risky"


class NodeType(Enum):
    """Record type tag used in the persisted report."""

    SUITE = "suite"
    TEST = "test"


@dataclass(frozen=True)
class HttpTransaction:
    """A single request/response pair captured during a test."""

    request_method: str
    request_url: str
    request: str  # text-safe rendering of the raw request
    response: str  # text-safe rendering of the raw response

    def to_dict(self) -> dict[str, str]:
        return {
            "request_method": self.request_method,
            "request_url": self.request_url,
            "request": self.request,
            "response": self.response,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HttpTransaction":
        return cls(
            request_method=data["request_method"],
            request_url=data["request_url"],
            request=data["request"],
            response=data["response"],
        )


@dataclass(frozen=True)
class OutcomeDetail:
    """Exception details attached to a non-passing test."""

    exception_class: str
    message: str
    trace: str

    def to_dict(self) -> dict[str, str]:
        return {
            "exception_class": self.exception_class,
            "message": self.message,
            "trace": self.trace,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OutcomeDetail":
        return cls(
            exception_class=data["exception_class"],
            message=data["message"],
            trace=data["trace"],
        )


@dataclass(frozen=True)
class TestRecord:
    """The sealed result of one executed test."""

    __test__ = False  # not a pytest test class

    name: str
    elapsed_time: float  # seconds
    outcome: Outcome = Outcome.PASSED
    outcome_detail: OutcomeDetail | None = None
    traffic_artifact: str | None = None
    transactions: tuple[HttpTransaction, ...] = ()  # immutable for frozen dataclass

    def __post_init__(self) -> None:
        """Validate test record invariants on creation."""
        if not self.name:
            raise ValueError("test name must be a non-empty string")
        if self.elapsed_time < 0:
            raise ValueError(
                f"elapsed_time must be non-negative, got {self.elapsed_time}"
            )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": NodeType.TEST.value,
            "outcome": self.outcome.value,
            "elapsed_time": self.elapsed_time,
        }
        if self.outcome_detail is not None:
            data["outcome_detail"] = self.outcome_detail.to_dict()
        if self.traffic_artifact is not None:
            data["traffic_artifact"] = self.traffic_artifact
        data["transactions"] = [t.to_dict() for t in self.transactions]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TestRecord":
        detail = data.get("outcome_detail")
        return cls(
            name=data["name"],
            elapsed_time=float(data.get("elapsed_time", 0.0)),
            outcome=Outcome(data.get("outcome", Outcome.PASSED.value)),
            outcome_detail=OutcomeDetail.from_dict(detail) if detail else None,
            traffic_artifact=data.get("traffic_artifact"),
            transactions=tuple(
                HttpTransaction.from_dict(t) for t in data.get("transactions", [])
            ),
        )


@dataclass(frozen=True)
class SuiteNode:
    """A sealed, named grouping of tests and child suites."""

    name: str
    children: tuple["SuiteNode", ...] = ()  # immutable for frozen dataclass
    tests: tuple[TestRecord, ...] = ()  # immutable for frozen dataclass

    def __post_init__(self) -> None:
        """Validate suite invariants on creation."""
        if not self.name:
            raise ValueError("suite name must be a non-empty string")

    def walk(self):
        """Yield this suite and all nested suites in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": NodeType.SUITE.value,
            "children": [child.to_dict() for child in self.children],
            "tests": [test.to_dict() for test in self.tests],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SuiteNode":
        if data.get("type") != NodeType.SUITE.value:
            raise ValueError(f"Expected a suite record, got type={data.get('type')!r}")
        return cls(
            name=data["name"],
            children=tuple(cls.from_dict(c) for c in data.get("children", [])),
            tests=tuple(TestRecord.from_dict(t) for t in data.get("tests", [])),
        )


@dataclass(frozen=True)
class ReportTree:
    """The finalized, immutable hierarchy handed to serialization."""

    suites: tuple[SuiteNode, ...] = ()
    api_version: str | None = None

    def walk(self):
        """Yield every suite in the tree in pre-order."""
        for suite in self.suites:
            yield from suite.walk()

    def to_dict(self) -> dict[str, Any]:
        return {
            "api_version": self.api_version,
            "suites": [suite.to_dict() for suite in self.suites],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReportTree":
        return cls(
            suites=tuple(SuiteNode.from_dict(s) for s in data.get("suites", [])),
            api_version=data.get("api_version"),
        )


@dataclass
class _DraftTest:
    """Mutable accumulator for the currently open test."""

    name: str
    outcome: Outcome | None = None
    outcome_detail: OutcomeDetail | None = None

    def seal(
        self,
        elapsed_time: float,
        traffic_artifact: str | None,
        transactions: tuple[HttpTransaction, ...],
    ) -> TestRecord:
        return TestRecord(
            name=self.name,
            elapsed_time=elapsed_time,
            outcome=self.outcome or Outcome.PASSED,
            outcome_detail=self.outcome_detail,
            traffic_artifact=traffic_artifact,
            transactions=transactions,
        )


@dataclass
class _DraftSuite:
    """Mutable accumulator for an open suite."""

    name: str
    children: list[SuiteNode] = field(default_factory=list)
    tests: list[TestRecord] = field(default_factory=list)

    def seal(self) -> SuiteNode:
        return SuiteNode(
            name=self.name,
            children=tuple(self.children),
            tests=tuple(self.tests),
        )
