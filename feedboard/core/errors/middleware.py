"""
FastAPI exception handlers producing the uniform JSON error envelope.

Every failure that reaches the API boundary is rendered as::

    {"error": {"code", "title", "message", "retryable",
               "user_action_required", "remediation"[, "fields"]}}

Internal detail (exception text, SQL) is logged, never returned.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from feedboard.core.errors import FeedboardError, ValidationError
from feedboard.core.errors.registry import ErrorEntry, error_registry

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "FBK-SYS-001"


def _lookup(code: str) -> ErrorEntry | None:
    if not len(error_registry):
        error_registry.load()
    return error_registry.get(code)


def _envelope(entry: ErrorEntry, **extra) -> dict:
    body = {
        "code": entry.code,
        "title": entry.title,
        "message": entry.safe_message,
        "retryable": entry.retryable,
        "user_action_required": entry.user_action_required,
        "remediation": entry.remediation,
    }
    body.update(extra)
    return {"error": body}


def _generic_500(code: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": code,
                "title": "Internal error",
                "message": "An unexpected error occurred.",
                "retryable": False,
                "user_action_required": False,
                "remediation": [],
            }
        },
    )


async def feedboard_error_handler(request: Request, exc: FeedboardError) -> JSONResponse:
    """Convert FeedboardError into a structured JSON response."""
    entry = _lookup(exc.code)

    if entry is None:
        logger.error(
            "unregistered_error_code",
            extra={"error.code": exc.code, "error.message": exc.detail},
        )
        return _generic_500(exc.code)

    log_extra = {
        "error.code": exc.code,
        "error.kind": type(exc).__name__,
        "error.message_safe": entry.safe_message,
        "error.message": exc.detail,
        "http.path": request.url.path,
        **{f"error.ctx.{k}": v for k, v in exc.context.items()},
    }
    _severity_to_log_fn(entry.severity)(entry.title, extra=log_extra)

    extra = {}
    if isinstance(exc, ValidationError):
        extra["fields"] = exc.fields

    return JSONResponse(status_code=entry.http_status, content=_envelope(entry, **extra))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Framework-level parse failures (bad JSON, non-numeric query) become 400s."""
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
    return await feedboard_error_handler(request, ValidationError(fields))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log with traceback, return a bare 500 envelope."""
    logger.exception(
        "unhandled_exception",
        extra={"error.kind": type(exc).__name__, "http.path": request.url.path},
    )
    entry = _lookup(INTERNAL_ERROR_CODE)
    if entry is None:
        return _generic_500(INTERNAL_ERROR_CODE)
    return JSONResponse(status_code=entry.http_status, content=_envelope(entry))


def _severity_to_log_fn(severity: str):
    """Map registry severity to logger method."""
    return {
        "DEBUG": logger.debug,
        "INFO": logger.info,
        "WARN": logger.warning,
        "ERROR": logger.error,
        "CRITICAL": logger.critical,
    }.get(severity, logger.error)
