"""Application-wide logging helpers.

``setup_logging()``  configures a :class:`RotatingFileHandler` on the root
logger, optionally mirroring records to stderr.

``safe_print(msg, level)``  emits a log entry at the requested level.

``StructuredFormatter`` outputs JSON log lines for machine-readable logs.

``request_context`` / ``timed`` provide observability helpers for tracing
and performance measurement, and ``logging_observer`` is the default
stage-boundary observer for the repair pipeline.
"""

from __future__ import annotations

import contextlib
import json
import logging
import time
import uuid
from collections.abc import Generator
from logging.handlers import RotatingFileHandler
from typing import Any

from planforge.config import get_settings

# Simple module-level correlation id; one request is traced at a time per process
_request_id: str = ""

# Extras copied from a record into the JSON line when present
_EXTRA_FIELDS = ("duration_ms", "provider", "model", "step", "error", "stage", "schema", "attempt")

_HUMAN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

pipeline_logger = logging.getLogger("planforge.repair")


# ── Structured JSON Formatter ───────────────────────────────────────────


class StructuredFormatter(logging.Formatter):
    """Emit each log record as a single JSON line.

    Fields: timestamp, level, logger, message, request_id, and any extras
    passed via the ``extra`` kwarg on the logging call.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if _request_id:
            log_entry["request_id"] = _request_id

        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = str(record.exc_info[1])

        return json.dumps(log_entry, ensure_ascii=False, default=str)


# ── Setup ───────────────────────────────────────────────────────────────


def setup_logging(*, json_format: bool | None = None, console: bool = False, level: int = logging.INFO) -> None:
    """Initialise the root logger with a rotating file handler.

    Args:
        json_format: Use StructuredFormatter (JSON lines) when True, the classic
                     human-readable format when False.  Defaults to ``log_json``.
        console: Also mirror records to stderr (human-readable).
        level: Root logger level.
    """
    settings = get_settings()
    if json_format is None:
        json_format = settings.log_json

    root = logging.getLogger()
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()

    handler = RotatingFileHandler(
        settings.log_file,
        mode="a",
        encoding="utf-8",
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
    )
    if json_format:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(_HUMAN_FORMAT))
    root.addHandler(handler)

    if console:
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter(_HUMAN_FORMAT))
        root.addHandler(stream)

    root.setLevel(level)


def safe_print(text: str, level: int = logging.INFO) -> None:
    """Emit *text* through the logging system (or fallback to print)."""
    try:
        if logging.getLogger().handlers:
            logging.log(level, text)
        else:
            print(text)
    except Exception:
        pass


# ── Observability helpers ───────────────────────────────────────────────


def set_request_id(rid: str | None = None) -> str:
    """Set a correlation ID for the current request.  Returns the ID."""
    global _request_id
    _request_id = rid or uuid.uuid4().hex[:12]
    return _request_id


def get_request_id() -> str:
    """Return the current request correlation ID (empty if unset)."""
    return _request_id


def clear_request_id() -> None:
    """Clear the current request ID."""
    global _request_id
    _request_id = ""


@contextlib.contextmanager
def request_context(rid: str | None = None) -> Generator[str, None, None]:
    """Context manager that sets and clears a request correlation ID.

    Usage::

        with request_context() as rid:
            safe_print(f"Generating sprint plan {rid}")
            # all log lines within will include request_id
    """
    token = set_request_id(rid)
    try:
        yield token
    finally:
        clear_request_id()


@contextlib.contextmanager
def timed(operation: str, **extra: Any) -> Generator[None, None, None]:
    """Context manager that logs the duration of an operation.

    Usage::

        with timed("generate_structured", provider="gemini"):
            result = do_work()

    Emits an INFO log with ``duration_ms`` at the end.
    """
    start = time.perf_counter()
    safe_print(f"[START] {operation}", logging.INFO)
    logger = logging.getLogger("planforge.timing")
    try:
        yield
    except Exception:
        elapsed = (time.perf_counter() - start) * 1000
        logger.error(
            f"[FAILED] {operation} after {elapsed:.0f}ms",
            extra={"duration_ms": round(elapsed), "step": operation, **extra},
        )
        raise
    else:
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            f"[DONE] {operation} in {elapsed:.0f}ms",
            extra={"duration_ms": round(elapsed), "step": operation, **extra},
        )


def logging_observer(event: Any) -> None:
    """Default pipeline observer: log a stage-boundary event.

    Fallback use is logged at INFO and strict-mode rejections at WARNING so
    that unrecoverable completions stay visible; everything else is DEBUG.
    """
    stage = getattr(event.stage, "value", event.stage)
    detail = dict(event.detail or {})
    if stage == "fallback":
        level = logging.INFO
    elif event.outcome == "rejected":
        level = logging.WARNING
    else:
        level = logging.DEBUG
    pipeline_logger.log(
        level,
        f"[{stage}] {event.outcome} {detail}" if detail else f"[{stage}] {event.outcome}",
        extra={"stage": stage, "schema": detail.get("schema"), "attempt": detail.get("attempt")},
    )
