"""Structured JSON logging.

Fields bound with ``LogContext`` live in a context variable, so concurrent
requests each log their own ``request_id`` and ``data_source``.
"""

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("satvik_log_context", default={})

# Keys written at the top level of a JSON entry, from ``extra=`` or the bound context.
PROMOTED_FIELDS = (
    "request_id",
    "data_source",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "error",
)


def current_log_context() -> dict[str, Any]:
    """Fields bound by the enclosing ``LogContext`` blocks."""
    return dict(_log_context.get())


class ContextFilter(logging.Filter):
    """Snapshot the bound context onto each record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = current_log_context()
        return True


class StructuredLogFormatter(logging.Formatter):
    """
    JSON log formatter.

    Each entry carries the timestamp, level, logger, message and source
    location. Catalog fields (request id, data source, HTTP details) are
    lifted to the top level; any other bound context goes under
    ``context``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        context = getattr(record, "context", None)
        if context is None:
            context = current_log_context()
        context = dict(context)

        for field in PROMOTED_FIELDS:
            value = getattr(record, field, None)
            if value is None:
                value = context.get(field)
            context.pop(field, None)
            if value is not None:
                entry[field] = value

        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    module_levels: dict[str, str] | None = None,
) -> None:
    """
    Configure root logging for the catalog service.

    Args:
        level: Default log level.
        json_format: Emit JSON lines; otherwise a plain text layout.
        module_levels: Per-module log levels (e.g., {"satvik_catalog.sources": "DEBUG"}).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())
    if json_format:
        handler.setFormatter(StructuredLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-7s [%(name)s] %(message)s")
        )
    root_logger.addHandler(handler)

    for module, mod_level in (module_levels or {}).items():
        logging.getLogger(module).setLevel(getattr(logging, mod_level.upper()))

    # Outbound calls to Sanity and the commerce service are logged by the adapters
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, json=%s", level, json_format
    )


class LogContext:
    """
    Bind fields to every log line emitted inside the block.

    Nested blocks merge with the enclosing one; inner keys win.

    Usage:
        with LogContext(data_source="sanity"):
            logger.info("Refreshing catalog")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self._token: Token | None = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set({**_log_context.get(), **self.fields})
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None
