"""
Centralized logging system with structured JSON output and per-request trace IDs.
"""
from __future__ import annotations

import contextvars
import json
import logging
import logging.handlers
import queue
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

_trace_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "splenex_trace_id", default=None
)

SENSITIVE_PATTERNS = (
    "key", "secret", "token", "password", "passphrase",
    "private", "mnemonic", "seed", "jwt", "authorization",
)

# Token addresses are public; keep them readable in logs
NON_SENSITIVE_KEYS = {"from_token", "to_token", "token_in", "token_out"}


def get_trace_id() -> Optional[str]:
    """Return the trace ID bound to the current request context, if any."""
    return _trace_id_var.get()


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """
    Bind a trace ID to the current context.

    Args:
        trace_id: Existing trace ID to reuse (generated if None)

    Returns:
        The trace ID that was set
    """
    value = trace_id or str(uuid.uuid4())
    _trace_id_var.set(value)
    return value


def reset_trace_id() -> None:
    """Clear the trace ID of the current context."""
    _trace_id_var.set(None)


class StructuredFormatter(logging.Formatter):
    """
    Custom formatter that outputs structured JSON logs with correlation IDs.
    """

    context_fields = ("provider", "chain_id", "request_id", "phase")

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as structured JSON.

        Args:
            record: Log record to format

        Returns:
            JSON formatted log string
        """
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
        }

        trace_id = getattr(record, "trace_id", None) or get_trace_id()
        if trace_id is not None:
            log_data["trace_id"] = trace_id

        for field in self.context_fields:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, dict):
            log_data.update(
                {k: self._redact_sensitive(k, v) for k, v in extra_data.items()}
            )

        return json.dumps(log_data, default=str, separators=(",", ":"))

    def _redact_sensitive(self, key: str, value: Any) -> Any:
        """
        Redact sensitive information from log values.

        Args:
            key: Field name
            value: Field value

        Returns:
            Redacted value if sensitive, original value otherwise
        """
        lowered = key.lower()
        if lowered in NON_SENSITIVE_KEYS:
            return value
        if any(pattern in lowered for pattern in SENSITIVE_PATTERNS):
            return "[REDACTED]"
        return value


class TraceIdFilter(logging.Filter):
    """Attach the context trace ID to records before they cross the queue."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "trace_id", None) is None:
            record.trace_id = get_trace_id()
        return True


_queue_listener: Optional[logging.handlers.QueueListener] = None


def setup_logging(
    log_level: str = "INFO",
    debug: bool = False,
    environment: str = "development",
    log_dir: Optional[Path] = None,
    retention_days: int = 30,
) -> None:
    """
    Set up centralized logging with structured JSON output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        debug: Enable human-readable console output
        environment: Environment name for logging context
        log_dir: Directory for rotating JSONL files; no file output when None
        retention_days: Number of daily files to keep

    When log_dir is given two files are written, rotated at UTC midnight:
    - app.jsonl: All log levels
    - errors.jsonl: ERROR and above only
    """
    global _queue_listener

    cleanup_logging()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    formatter = StructuredFormatter()
    handlers = []

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)

        app_handler = logging.handlers.TimedRotatingFileHandler(
            filename=str(log_dir / "app.jsonl"),
            when="midnight",
            backupCount=retention_days,
            encoding="utf-8",
            utc=True,
        )
        app_handler.setFormatter(formatter)
        app_handler.setLevel(logging.DEBUG)

        error_handler = logging.handlers.TimedRotatingFileHandler(
            filename=str(log_dir / "errors.jsonl"),
            when="midnight",
            backupCount=retention_days,
            encoding="utf-8",
            utc=True,
        )
        error_handler.setFormatter(formatter)
        error_handler.setLevel(logging.ERROR)
        handlers.extend([app_handler, error_handler])

    console_handler = logging.StreamHandler()
    if debug:
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
    else:
        console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    # Queue handler so request coroutines never block on file I/O
    log_queue: queue.Queue = queue.Queue(-1)
    queue_handler = logging.handlers.QueueHandler(log_queue)
    queue_handler.addFilter(TraceIdFilter())
    root_logger.addHandler(queue_handler)

    _queue_listener = logging.handlers.QueueListener(
        log_queue, *handlers, respect_handler_level=True
    )
    _queue_listener.start()

    logging.getLogger(__name__).info(
        "Logging system initialized",
        extra={
            "extra_data": {
                "log_level": log_level,
                "debug": debug,
                "environment": environment,
                "file_output": log_dir is not None,
            }
        },
    )


def cleanup_logging() -> None:
    """
    Stop the queue listener on shutdown.
    """
    global _queue_listener

    if _queue_listener is not None:
        _queue_listener.stop()
        _queue_listener = None


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
