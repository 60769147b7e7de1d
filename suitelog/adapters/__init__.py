"""External adapters for the suitelog report aggregator.

This package contains all external dependencies (httpx, pytest, the
filesystem, named pipes) and provides implementations of the core port
interfaces.

Adapter Organization:

- timer/: Elapsed-time measurement (monotonic clock)
- serializer/: Report encodings (delimited JSON)
- sink/: Report destinations (named pipe, file, stdout)
- traffic/: Per-test HTTP traffic capture (httpx event hooks, HAR files)
- pytest_plugin/: Event source driven by pytest's run hooks
"""
