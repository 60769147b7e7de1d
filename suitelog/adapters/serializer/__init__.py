"""Serializer adapters for encoding the finished report tree.

Implementations:
- Delimited JSON (one record per line)
"""
