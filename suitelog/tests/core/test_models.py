"""Tests for domain models, the transaction buffer and event decoding."""

import dataclasses

import pytest

from suitelog.core.buffer import TransactionBuffer, to_text
from suitelog.core.events import SuiteStarted, TestOutcome, event_from_dict
from suitelog.core.models import (
    HttpTransaction,
    Outcome,
    OutcomeDetail,
    ReportTree,
    SuiteNode,
    TestRecord,
)


@pytest.fixture
def tree() -> ReportTree:
    record = TestRecord(
        name="t1",
        elapsed_time=0.012,
        outcome=Outcome.FAILURE,
        outcome_detail=OutcomeDetail("AssertionError", "x!=y", "trace"),
        traffic_artifact="/tmp/t1.har",
        transactions=(HttpTransaction("GET", "/x", "req", "res"),),
    )
    return ReportTree(
        suites=(
            SuiteNode(name="S", children=(SuiteNode(name="Inner"),), tests=(record,)),
        ),
        api_version="v1",
    )


class TestModels:
    """Sealed nodes are immutable and validate their invariants."""

    def test_nodes_are_frozen(self, tree: ReportTree) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            tree.suites[0].name = "renamed"  # type: ignore[misc]

    def test_suite_requires_name(self) -> None:
        with pytest.raises(ValueError):
            SuiteNode(name="")

    def test_record_rejects_negative_elapsed_time(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            TestRecord(name="t", elapsed_time=-1.0)

    def test_record_schema(self, tree: ReportTree) -> None:
        data = tree.suites[0].tests[0].to_dict()

        assert data["type"] == "test"
        assert data["outcome"] == "failure"
        assert data["elapsed_time"] == 0.012
        assert data["traffic_artifact"] == "/tmp/t1.har"
        assert data["outcome_detail"] == {
            "exception_class": "AssertionError",
            "message": "x!=y",
            "trace": "trace",
        }
        assert data["transactions"] == [
            {"request_method": "GET", "request_url": "/x", "request": "req", "response": "res"}
        ]

    def test_passed_record_omits_optional_fields(self) -> None:
        data = TestRecord(name="t", elapsed_time=0.0).to_dict()

        assert data["outcome"] == "passed"
        assert "outcome_detail" not in data
        assert "traffic_artifact" not in data
        assert data["transactions"] == []

    def test_suite_schema_keeps_empty_lists(self) -> None:
        data = SuiteNode(name="Empty").to_dict()

        assert data == {"name": "Empty", "type": "suite", "children": [], "tests": []}

    def test_dict_round_trip(self, tree: ReportTree) -> None:
        assert ReportTree.from_dict(tree.to_dict()) == tree

    def test_suite_from_dict_rejects_tests(self) -> None:
        with pytest.raises(ValueError, match="Expected a suite"):
            SuiteNode.from_dict({"name": "t", "type": "test"})


class TestTransactionBuffer:
    """FIFO buffering and text-safe rendering."""

    def test_drain_preserves_order_and_empties(self) -> None:
        buffer = TransactionBuffer()
        buffer.append("GET", "/1", b"", b"")
        buffer.append("GET", "/2", b"", b"")

        drained = buffer.drain()

        assert [t.request_url for t in drained] == ["/1", "/2"]
        assert len(buffer) == 0

    def test_reset_discards(self) -> None:
        buffer = TransactionBuffer()
        buffer.append("GET", "/1", b"", b"")
        buffer.reset()

        assert buffer.drain() == ()

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (None, ""),
            ("already text", "already text"),
            (b"plain ascii", "plain ascii"),
            ("naïve".encode("utf-8"), "naïve"),
            (b"\xff\xfe\x00", "\xff\xfe\x00"),
        ],
    )
    def test_to_text(self, raw: bytes | str | None, expected: str) -> None:
        assert to_text(raw) == expected


class TestEventDecoding:
    """Replay input lines become event objects."""

    def test_known_event(self) -> None:
        assert event_from_dict({"event": "SuiteStarted", "name": "S"}) == SuiteStarted("S")

    def test_optional_fields(self) -> None:
        event = event_from_dict(
            {
                "event": "TestOutcome",
                "kind": "failure",
                "exception_class": "AssertionError",
                "message": "m",
                "trace": "t",
            }
        )
        assert event == TestOutcome("failure", "AssertionError", "m", "t")

    def test_unknown_event(self) -> None:
        with pytest.raises(ValueError, match="Unknown event type"):
            event_from_dict({"event": "SuiteExploded"})

    def test_bad_fields(self) -> None:
        with pytest.raises(ValueError, match="Invalid fields"):
            event_from_dict({"event": "SuiteStarted", "title": "S"})

    def test_non_object(self) -> None:
        with pytest.raises(ValueError, match="JSON object"):
            event_from_dict(["SuiteStarted"])  # type: ignore[arg-type]
