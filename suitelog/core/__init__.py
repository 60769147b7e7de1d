"""Core domain logic for the suitelog report aggregator.

This package contains zero external dependencies and represents
the pure aggregation logic of the application. All adapters and
external integrations are handled by the adapters package.
"""

from .builder import BuilderState, ReportStateError, ReportTreeBuilder
from .models import (
    HttpTransaction,
    NodeType,
    Outcome,
    OutcomeDetail,
    ReportTree,
    SuiteNode,
    TestRecord,
)

__all__ = [
    "BuilderState",
    "HttpTransaction",
    "NodeType",
    "Outcome",
    "OutcomeDetail",
    "ReportStateError",
    "ReportTree",
    "ReportTreeBuilder",
    "SuiteNode",
    "TestRecord",
]
