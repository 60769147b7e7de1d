"""Traffic capture adapters recording HTTP exchanges per test."""
