"""suitelog: hierarchical test-execution reports from engine lifecycle events."""

__version__ = "0.1.0"
