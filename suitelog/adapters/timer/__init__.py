"""Timer adapters for measuring test execution time."""
