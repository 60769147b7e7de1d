"""Delimited JSON serializer adapter.

Implements SerializerPort by emitting one JSON record per line: a
report header record followed by one record per top-level suite, each
carrying its nested children and tests. parse() reads the same format
back into a ReportTree.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from suitelog.core.models import NodeType, ReportTree, SuiteNode
from suitelog.core.ports import SerializerPort

logger = logging.getLogger(__name__)

NEW_LINE = "\n"
HEADER_TYPE = "report"


def is_safe_delimiter(delimiter: str) -> bool:
    """True if delimiter is made only of control characters (U+0000-U+001F).

    json.dumps escapes every such character inside strings, so they can
    never appear unescaped in record text.
    """
    return bool(delimiter) and all(ord(char) < 0x20 for char in delimiter)


class DelimitedJsonSerializer(SerializerPort):
    """Encodes a report tree as delimiter-separated JSON records."""

    def __init__(self, delimiter: str = NEW_LINE):
        """Initialize the serializer.

        Args:
            delimiter: Record separator made of control characters only
                (e.g. "\\n", "\\r\\n", "\\x1e").

        Raises:
            ValueError: If delimiter is empty or contains a character
                that can occur unescaped in JSON text.
        """
        if not is_safe_delimiter(delimiter):
            raise ValueError(
                f"delimiter must be non-empty control characters, got {delimiter!r}"
            )
        self.delimiter = delimiter

    def records(self, tree: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Flatten a tree mapping into the header plus top-level suite records."""
        header = {"type": HEADER_TYPE, "api_version": tree.get("api_version")}
        return [header, *tree.get("suites", [])]

    def interpret(self, tree: Mapping[str, Any]) -> bytes:
        try:
            lines = [json.dumps(record, ensure_ascii=False) for record in self.records(tree)]
        except (TypeError, ValueError) as e:
            raise ValueError(f"Report tree is not JSON serializable: {e}") from e

        text = self.delimiter.join(lines) + self.delimiter
        logger.debug(f"Encoded {len(lines)} record(s)")
        return text.encode("utf-8")

    def parse(self, data: bytes | str) -> ReportTree:
        """Decode records produced by interpret() back into a tree.

        Raises:
            ValueError: If a record is not valid JSON or not a suite.
        """
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        api_version = None
        suites: list[SuiteNode] = []

        for index, chunk in enumerate(text.split(self.delimiter), 1):
            if not chunk.strip():
                continue
            try:
                record = json.loads(chunk)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in record {index}: {e}") from e

            if record.get("type") == HEADER_TYPE:
                api_version = record.get("api_version")
            elif record.get("type") == NodeType.SUITE.value:
                suites.append(SuiteNode.from_dict(record))
            else:
                raise ValueError(
                    f"Unexpected record type {record.get('type')!r} in record {index}"
                )

        return ReportTree(suites=tuple(suites), api_version=api_version)
