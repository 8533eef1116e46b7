from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from feedboard.config import settings
from feedboard.core.errors import FeedboardError
from feedboard.core.errors.middleware import (
    feedboard_error_handler,
    request_validation_handler,
    unhandled_error_handler,
)
from feedboard.core.errors.registry import error_registry
from feedboard.core.log_middleware import CorrelationMiddleware
from feedboard.core.structured_logging import APP_VERSION, setup_logging
from feedboard.routers import feedback, health, users
from feedboard.storage import reset_storage, select_storage, set_storage

# Initialize structured logging before any logger calls
setup_logging(log_dir=settings.log_dir, log_level=settings.log_level.upper())

logger = logging.getLogger(__name__)

API_TITLE = "Feedboard API"

API_DESCRIPTION = """
## Feedboard - Categorized Feedback

Submit suggestions, bug reports and feature requests, and browse them with
category filtering, sorting and pagination.

Errors use a uniform envelope: `{"error": {"code", "title", "message", ...}}`.
"""

TAGS_METADATA = [
    {"name": "health", "description": "Liveness and active storage backend."},
    {"name": "feedback", "description": "Submit and list feedback."},
    {"name": "users", "description": "Signup and user lookup."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Loads the error registry and selects the storage backend.
    """
    logger.info("Starting Feedboard API v%s...", APP_VERSION)

    error_registry.load()

    storage = select_storage(settings)
    set_storage(storage)
    logger.info("Storage backend: %s", storage.name)

    yield

    logger.info("Shutting down Feedboard API...")
    reset_storage()


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=APP_VERSION,
    openapi_tags=TAGS_METADATA,
    lifespan=lifespan,
)

app.add_exception_handler(FeedboardError, feedboard_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

app.add_middleware(CorrelationMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(feedback.router, prefix="/api", tags=["feedback"])
app.include_router(users.router, prefix="/api", tags=["users"])


@app.get("/", tags=["health"])
async def root():
    return {
        "name": API_TITLE,
        "version": APP_VERSION,
        "status": "running",
        "docs": "/docs",
    }


def run() -> None:
    """Console entry point: serve with uvicorn."""
    import uvicorn

    uvicorn.run("feedboard.main:app", host="0.0.0.0", port=8000, log_config=None)
