"""Sink adapters for delivering the encoded report.

Implementations support multiple destinations:
- Named pipe (consumer-created FIFO)
- File (fixed path, or uniquely named files in a directory)
- Stdout
"""
