"""
JSON logging for the API process.

structlog renders every record, including plain ``logging.getLogger()``
calls and their ``extra=`` fields, as one JSON object per line on stderr
and in a size-rotated file. Request and correlation ids come from the
context vars set by CorrelationMiddleware.
"""
from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import time
from contextvars import ContextVar
from typing import List, Optional

import structlog

from feedboard import __version__

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

APP_VERSION = __version__
SERVICE_NAME = "feedboard-backend"

_QUIET_LOGGERS = ("httpcore", "httpx", "urllib3", "asyncio", "watchfiles", "alembic")

_started_at = time.monotonic()


def get_uptime_s() -> float:
    return time.monotonic() - _started_at


def _add_request_context(logger_name: str, method_name: str, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", APP_VERSION)
    for key, var in (("request_id", request_id_var), ("correlation_id", correlation_id_var)):
        value = var.get()
        if value:
            event_dict[key] = value
    return event_dict


def _shared_processors() -> List:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_request_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _rotating_file_handler(path: str, max_bytes: int, backup_count: int) -> Optional[logging.Handler]:
    """None when the log directory cannot be created or written."""
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        return logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    except OSError:
        return None


def setup_logging(
    log_dir: str = "logs",
    log_file: str = "feedboard.jsonl",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    log_level: int | str = logging.INFO,
) -> None:
    """Route structlog and stdlib logging through one JSON formatter.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output.
    """
    processors = _shared_processors()

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*processors, structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    )

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_handler = _rotating_file_handler(os.path.join(log_dir, log_file), max_bytes, backup_count)
    if file_handler is not None:
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
