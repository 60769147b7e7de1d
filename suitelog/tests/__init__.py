"""Test suite for the suitelog report aggregator.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - No external dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - Real filesystem, httpx MockTransport, fake pytest reports

3. fakes/: Port implementations for testing
   - In-memory implementations of TimerPort, TrafficCapturePort, SinkPort
   - Used by core unit tests
"""
