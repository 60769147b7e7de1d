"""Fake implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeTimer: Scripted elapsed-time readings
- FakeTrafficCapture: Recorded start/write calls with canned artifacts
- FakeSink: Captured report bytes for assertion
- FakeSerializer: Configurable encoding failures
"""

from .serializer import FakeSerializer
from .sink import FakeSink
from .timer import FakeTimer
from .traffic import FakeTrafficCapture

__all__ = [
    "FakeSerializer",
    "FakeSink",
    "FakeTimer",
    "FakeTrafficCapture",
]
