"""Composition root for the suitelog report aggregator.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Adapter instantiation (timer, serializer, sink, traffic recorder)
- Lifecycle strategy selection and session wiring
- Replay entry point for recorded event streams
"""

import argparse
import json
import logging
import sys
from collections.abc import Iterator
from typing import TextIO

from pydantic import ValidationError

from suitelog.adapters.serializer.delimited_json import DelimitedJsonSerializer
from suitelog.adapters.sink.file import FileSink, UniqueNameFileSink
from suitelog.adapters.sink.named_pipe import NamedPipeSink
from suitelog.adapters.sink.stdout import StdoutSink
from suitelog.adapters.timer.monotonic import MonotonicTimer
from suitelog.adapters.traffic.httpx_recorder import HttpxTrafficRecorder
from suitelog.config import Settings, load_settings
from suitelog.core.builder import ReportTreeBuilder
from suitelog.core.events import event_from_dict
from suitelog.core.ports import SinkPort, TimerPort, TrafficCapturePort
from suitelog.core.reporter import ReportSession
from suitelog.core.strategies import STRATEGIES

logger = logging.getLogger(__name__)


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Logs go to stderr because stdout may be the report sink.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


def build_sink(settings: Settings) -> SinkPort:
    """Select the report sink based on config."""
    if settings.sink_backend == "pipe":
        return NamedPipeSink(settings.pipe_name)
    if settings.sink_backend == "file":
        return FileSink(settings.report_path)
    if settings.sink_backend == "stdout":
        return StdoutSink()
    raise ValueError(f"Unknown sink backend: {settings.sink_backend}")


def build_traffic_recorder(settings: Settings) -> HttpxTrafficRecorder:
    """Create the httpx recorder writing HAR files to the traffic directory."""
    return HttpxTrafficRecorder(
        sink=UniqueNameFileSink(settings.traffic_output_dir, "har"),
    )


def build_session(
    settings: Settings,
    timer: TimerPort | None = None,
    traffic_capture: TrafficCapturePort | None = None,
    sink: SinkPort | None = None,
) -> ReportSession:
    """Wire a report session from settings.

    Explicit collaborators take precedence over what settings select.
    When traffic logging is enabled and no capture port is given, an
    httpx recorder is created and its events are routed into the session.

    Args:
        settings: Validated configuration.
        timer: Timer override (defaults to MonotonicTimer).
        traffic_capture: Capture port override.
        sink: Sink override.

    Returns:
        A session with its router bound, ready to receive events.
    """
    recorder: HttpxTrafficRecorder | None = None
    if traffic_capture is None and settings.traffic_logging_enabled:
        recorder = build_traffic_recorder(settings)
        traffic_capture = recorder

    builder = ReportTreeBuilder(
        timer=timer or MonotonicTimer(),
        traffic_capture=traffic_capture,
        api_version=settings.api_version,
    )
    lifecycle = STRATEGIES[settings.strategy](builder)

    session = ReportSession(
        lifecycle=lifecycle,
        serializer=DelimitedJsonSerializer(settings.record_delimiter),
        sink=sink or build_sink(settings),
        traffic_capture=traffic_capture,
    )

    if recorder is not None:
        recorder.emit = session.dispatch

    logger.info(
        f"Report session ready: strategy={settings.strategy}, sink={settings.sink_backend}, "
        f"traffic={'on' if traffic_capture is not None else 'off'}"
    )
    return session


def read_events(stream: TextIO) -> Iterator[object]:
    """Parse newline-delimited JSON events, skipping blank lines.

    Raises:
        ValueError: If a line is not valid JSON or names an unknown event.
    """
    for lineno, line in enumerate(stream, 1):
        if not line.strip():
            continue
        try:
            yield event_from_dict(json.loads(line))
        except ValueError as e:
            raise ValueError(f"line {lineno}: {e}") from e


def replay(stream: TextIO, settings: Settings) -> int:
    """Feed a recorded event stream through a session and write the report.

    A malformed stream aborts the run before anything is written.

    Returns:
        Process exit code: 0 on success, 1 on bad input or flush failure.
    """
    session = build_session(settings)
    count = 0
    try:
        with session:
            for event in read_events(stream):
                session.dispatch(event)
                count += 1
    except ValueError as e:
        logger.error(f"Invalid event stream: {e}")
        return 1
    except OSError:
        # Already logged at CRITICAL by the session
        return 1

    logger.info(f"Replayed {count} event(s)")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Application entry point.

    Exit codes:
        0: Report written
        1: Fatal configuration, input or flush error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    parser = argparse.ArgumentParser(prog="suitelog")
    subcommands = parser.add_subparsers(dest="command", required=True)
    replay_parser = subcommands.add_parser(
        "replay", help="Build a report from a newline-delimited JSON event stream"
    )
    replay_parser.add_argument("events", help="Event file, or - for stdin")
    replay_parser.add_argument("--env-file", default=None, help="Alternate .env file")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.env_file)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.log_level, settings.log_format)

    try:
        if args.events == "-":
            code = replay(sys.stdin, settings)
        else:
            with open(args.events, encoding="utf-8") as stream:
                code = replay(stream, settings)
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except OSError as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
