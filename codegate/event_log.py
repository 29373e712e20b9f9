"""
Structured request events.

Every event is a record {timestamp, level, type, data}. Records are written as
JSON lines to LOG_DIR/server.log and echoed to the console as "[LEVEL] TYPE".

Callers never wait on the sinks: events go through a QueueHandler and a
QueueListener thread does the actual I/O. A failing sink is reported by
logging's own handleError and does not raise into the caller.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import queue
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from codegate import config

EVENT_LOGGER_NAME = "codegate.events"
LOG_FILE_NAME = "server.log"

_LEVEL_NAMES = {
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}

_events = logging.getLogger(EVENT_LOGGER_NAME)
_events.propagate = False

_listener: Optional[logging.handlers.QueueListener] = None
_queue_handler: Optional[logging.handlers.QueueHandler] = None

log = logging.getLogger(__name__)


def _level_name(record: logging.LogRecord) -> str:
    return _LEVEL_NAMES.get(record.levelno, record.levelname)


class JsonLineFormatter(logging.Formatter):
    """One JSON object per line in the {timestamp, level, type, data} shape."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "timestamp": ts.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": _level_name(record),
            "type": getattr(record, "event_type", None) or record.getMessage(),
            "data": getattr(record, "event_data", None),
        }
        return json.dumps(entry, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        level = _level_name(record)
        etype = getattr(record, "event_type", None) or record.getMessage()
        line = f"[{level}] {etype}"
        if record.levelno >= logging.ERROR:
            data = getattr(record, "event_data", None)
            line += ": " + json.dumps(data, ensure_ascii=False, indent=2, default=str)
        return line


def _build_sinks(log_dir: Optional[str], to_file: bool, console: bool) -> List[logging.Handler]:
    sinks: List[logging.Handler] = []
    if console:
        stream = logging.StreamHandler(sys.stdout)
        stream.setFormatter(ConsoleFormatter())
        sinks.append(stream)
    if to_file and log_dir:
        try:
            path = Path(log_dir)
            path.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(path / LOG_FILE_NAME, mode="a", encoding="utf-8")
        except OSError as exc:
            log.warning("event_log: file sink disabled (%s): %r", log_dir, exc)
        else:
            fh.setFormatter(JsonLineFormatter())
            sinks.append(fh)
    return sinks


def setup(
    *,
    log_dir: Optional[str] = None,
    to_file: Optional[bool] = None,
    console: bool = True,
    force: bool = False,
) -> None:
    """Attach the sinks. Safe to call more than once; pass force=True to rebuild."""
    global _listener, _queue_handler
    if _listener is not None and not force:
        return
    shutdown()

    if log_dir is None:
        log_dir = config.LOG_DIR
    if to_file is None:
        to_file = config.LOG_TO_FILE

    sinks = _build_sinks(log_dir, to_file, console)
    q: "queue.SimpleQueue[logging.LogRecord]" = queue.SimpleQueue()
    _queue_handler = logging.handlers.QueueHandler(q)
    _events.addHandler(_queue_handler)
    _events.setLevel(logging.INFO)
    _listener = logging.handlers.QueueListener(q, *sinks, respect_handler_level=False)
    _listener.start()


def shutdown() -> None:
    """Flush pending events and detach the sinks."""
    global _listener, _queue_handler
    if _listener is not None:
        _listener.stop()
        for h in _listener.handlers:
            h.close()
        _listener = None
    if _queue_handler is not None:
        _events.removeHandler(_queue_handler)
        _queue_handler = None


def emit(level: int, event_type: str, data: Any = None) -> None:
    _events.log(level, event_type, extra={"event_type": event_type, "event_data": data})


def info(event_type: str, data: Any = None) -> None:
    emit(logging.INFO, event_type, data)


def warn(event_type: str, data: Any = None) -> None:
    emit(logging.WARNING, event_type, data)


def error(event_type: str, data: Any = None) -> None:
    emit(logging.ERROR, event_type, data)
