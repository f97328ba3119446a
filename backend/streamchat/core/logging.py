"""
Logging setup for streamchat.

Records carry the request id and, while a chat stream runs, the stream id.
Structured fields are passed as ``logger.info("msg", data={...})``.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, Dict, Optional

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
stream_id_ctx: ContextVar[Optional[str]] = ContextVar("stream_id", default=None)

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


class ContextFilter(logging.Filter):
    """Copies the context ids onto every record passing through a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()
        record.stream_id = stream_id_ctx.get()
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ("request_id", "stream_id", "data"):
            value = getattr(record, key, None)
            if value:
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Coloured single-line output for local development."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        when = datetime.fromtimestamp(record.created, UTC).strftime("%H:%M:%S.%f")[:-3]
        request_id = (getattr(record, "request_id", None) or "-")[:8]
        parts = [
            when,
            f"{color}{record.levelname:<8}{self.RESET}",
            request_id,
            record.name,
            record.getMessage(),
        ]
        data = getattr(record, "data", None)
        if data:
            parts.append(json.dumps(data, default=str, ensure_ascii=False))
        line = " | ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ContextLogger(logging.LoggerAdapter):
    """Adapter that moves a ``data`` keyword into the record's extras."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        data = kwargs.pop("data", None)
        if data is not None:
            kwargs["extra"] = {**kwargs.get("extra", {}), "data": data}
        return msg, kwargs


_loggers: Dict[str, ContextLogger] = {}


def get_logger(name: str) -> ContextLogger:
    """Shared adapter for ``name``."""
    adapter = _loggers.get(name)
    if adapter is None:
        adapter = _loggers[name] = ContextLogger(logging.getLogger(name), {})
    return adapter


def _handler(handler: logging.Handler, formatter: logging.Formatter) -> logging.Handler:
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    return handler


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Replace root handlers: stdout (JSON or console), plus an optional JSON file."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    root.handlers.clear()

    console_format = StructuredFormatter() if json_output else ConsoleFormatter()
    root.addHandler(_handler(logging.StreamHandler(sys.stdout), console_format))
    if log_file:
        root.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), StructuredFormatter()))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
