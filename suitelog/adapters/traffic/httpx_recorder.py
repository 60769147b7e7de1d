"""httpx traffic recorder adapter.

Implements TrafficCapturePort on top of httpx event hooks. Every
response that passes through a client built with event_hooks() (or
async_event_hooks() for AsyncClient) is rendered as raw HTTP/1.1 text
and emitted as a TrafficTransactionCompleted event. While a test is
being captured, the exchange is also stored as a HAR entry and written
as one HAR 1.2 document per test.
"""

import json
import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from suitelog import __version__
from suitelog.adapters.sink.file import UniqueNameFileSink
from suitelog.core.buffer import to_text
from suitelog.core.events import TrafficTransactionCompleted
from suitelog.core.ports import TrafficCapturePort

logger = logging.getLogger(__name__)

CRLF = b"\r\n"


def _raw_headers(headers: httpx.Headers) -> bytes:
    return b"".join(name + b": " + value + CRLF for name, value in headers.raw)


def _har_headers(headers: httpx.Headers) -> list[dict[str, str]]:
    return [{"name": name, "value": value} for name, value in headers.multi_items()]


def _request_body(request: httpx.Request) -> bytes:
    try:
        return request.content
    except httpx.RequestNotRead:
        # Streaming uploads cannot be replayed once sent
        return b""


def render_request(request: httpx.Request) -> bytes:
    """Render a request as raw HTTP/1.1 bytes."""
    start_line = request.method.encode("ascii") + b" " + request.url.raw_path + b" HTTP/1.1"
    return start_line + CRLF + _raw_headers(request.headers) + CRLF + _request_body(request)


def render_response(response: httpx.Response) -> bytes:
    """Render a fully read response as raw HTTP bytes."""
    start_line = f"{response.http_version} {response.status_code} {response.reason_phrase}"
    return start_line.encode("ascii") + CRLF + _raw_headers(response.headers) + CRLF + response.content


def _elapsed(response: httpx.Response) -> timedelta:
    try:
        return response.elapsed
    except RuntimeError:
        # Only set once the response stream is closed
        return timedelta(0)


def har_entry(response: httpx.Response) -> dict[str, Any]:
    """Build a HAR 1.2 entry for a completed exchange."""
    request = response.request
    body = _request_body(request)
    elapsed = _elapsed(response)
    elapsed_ms = elapsed.total_seconds() * 1000
    started = datetime.now(UTC) - elapsed

    har_request: dict[str, Any] = {
        "method": request.method,
        "url": str(request.url),
        "httpVersion": "HTTP/1.1",
        "cookies": [],
        "headers": _har_headers(request.headers),
        "queryString": [
            {"name": name, "value": value}
            for name, value in request.url.params.multi_items()
        ],
        "headersSize": -1,
        "bodySize": len(body),
    }
    if body:
        har_request["postData"] = {
            "mimeType": request.headers.get("content-type", ""),
            "text": to_text(body),
        }

    return {
        "startedDateTime": started.isoformat(),
        "time": elapsed_ms,
        "request": har_request,
        "response": {
            "status": response.status_code,
            "statusText": response.reason_phrase,
            "httpVersion": response.http_version,
            "cookies": [],
            "headers": _har_headers(response.headers),
            "content": {
                "size": len(response.content),
                "mimeType": response.headers.get("content-type", ""),
                "text": to_text(response.content),
            },
            "redirectURL": response.headers.get("location", ""),
            "headersSize": -1,
            "bodySize": len(response.content),
        },
        "cache": {},
        "timings": {"send": 0, "wait": elapsed_ms, "receive": 0},
    }


class HttpxTrafficRecorder(TrafficCapturePort):
    """Records httpx exchanges per test and persists them as HAR files."""

    def __init__(
        self,
        sink: UniqueNameFileSink,
        emit: Callable[[TrafficTransactionCompleted], Any] | None = None,
    ):
        """Initialize the recorder.

        Args:
            sink: Where HAR documents are written, one file per test.
            emit: Callback receiving a TrafficTransactionCompleted per
                exchange, usually ReportSession.dispatch. Can be set later.
        """
        self.sink = sink
        self.emit = emit
        self._entries: list[dict[str, Any]] = []
        self._capturing = False
        self._lock = threading.Lock()

    @property
    def capturing(self) -> bool:
        return self._capturing

    def event_hooks(self) -> dict[str, list[Callable[[httpx.Response], None]]]:
        """Hooks for httpx.Client(event_hooks=...)."""
        return {"response": [self._on_response]}

    def async_event_hooks(self) -> dict[str, list[Callable[[httpx.Response], Any]]]:
        """Hooks for httpx.AsyncClient(event_hooks=...)."""
        return {"response": [self._on_async_response]}

    def _on_response(self, response: httpx.Response) -> None:
        response.read()
        self.record(response)

    async def _on_async_response(self, response: httpx.Response) -> None:
        await response.aread()
        self.record(response)

    def record(self, response: httpx.Response) -> TrafficTransactionCompleted:
        """Store and emit one completed exchange. The body must be read."""
        request = response.request
        event = TrafficTransactionCompleted(
            request_method=request.method,
            request_url=str(request.url),
            raw_request=render_request(request),
            raw_response=render_response(response),
        )

        with self._lock:
            if self._capturing:
                self._entries.append(har_entry(response))

        if self.emit is not None:
            self.emit(event)
        return event

    def start(self) -> None:
        with self._lock:
            self._entries = []
            self._capturing = True

    def write(self) -> str | None:
        with self._lock:
            if not self._capturing:
                return None
            self._capturing = False
            entries, self._entries = self._entries, []

        document = {
            "log": {
                "version": "1.2",
                "creator": {"name": "suitelog", "version": __version__},
                "pages": [],
                "entries": entries,
            }
        }
        self.sink.write(json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8"))
        logger.debug(f"Persisted {len(entries)} HAR entr(ies) to {self.sink.last_path}")
        return str(self.sink.last_path)
