"""
Storage selection.

``select_storage()`` is the single decision point choosing the backend at
startup. ``get_storage()`` is the FastAPI dependency handing the active
backend to routers; it selects lazily if startup has not run yet.
"""

import logging
from typing import Optional

from feedboard.config import Settings, settings as default_settings
from feedboard.core.database import redact_url
from feedboard.core.errors import StorageUnavailableError
from feedboard.storage.base import FeedbackPage, FeedbackStorage, count_pages
from feedboard.storage.memory import InMemoryStorage
from feedboard.storage.relational import RelationalStorage

logger = logging.getLogger(__name__)

__all__ = [
    "FeedbackPage",
    "FeedbackStorage",
    "InMemoryStorage",
    "RelationalStorage",
    "count_pages",
    "get_storage",
    "reset_storage",
    "select_storage",
    "set_storage",
]

_storage: Optional[FeedbackStorage] = None


def select_storage(settings: Optional[Settings] = None) -> FeedbackStorage:
    """
    Pick the storage backend for this process.

    Tries the relational store first. If it is unreachable and fallback is
    enabled, returns an InMemoryStorage and logs the degradation; data
    written while degraded does not survive a restart.

    Raises:
        StorageUnavailableError: relational store unreachable and
            ``storage_fallback`` disabled (or ``storage_backend=relational``).
    """
    settings = settings or default_settings

    if settings.storage_backend == "memory":
        logger.info("storage_selected", extra={"backend": InMemoryStorage.name, "reason": "configured"})
        return InMemoryStorage()

    url = settings.resolve_database_url()
    storage = RelationalStorage.from_url(url, echo=settings.debug)
    try:
        storage.initialize()
    except StorageUnavailableError as exc:
        storage.close()
        if settings.storage_backend == "relational" or not settings.storage_fallback:
            logger.critical(
                "storage_unavailable",
                extra={"database": redact_url(url), "error.message": exc.detail},
            )
            raise
        logger.warning(
            "storage_degraded",
            extra={
                "database": redact_url(url),
                "backend": InMemoryStorage.name,
                "error.message": exc.detail,
            },
        )
        return InMemoryStorage()

    logger.info("storage_selected", extra={"backend": storage.name, "database": redact_url(url)})
    return storage


def set_storage(storage: Optional[FeedbackStorage]) -> None:
    global _storage
    _storage = storage


def reset_storage() -> None:
    """Close and forget the active backend."""
    global _storage
    if _storage is not None:
        _storage.close()
    _storage = None


def get_storage() -> FeedbackStorage:
    """FastAPI dependency — the active storage backend."""
    global _storage
    if _storage is None:
        _storage = select_storage()
    return _storage
