"""
Health check endpoint.

- GET /api/health — process alive, version, uptime, active storage backend.
  Status is "degraded" while serving from the in-memory fallback or when
  the relational store stops answering.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from feedboard.core.structured_logging import APP_VERSION, SERVICE_NAME, get_uptime_s
from feedboard.storage import FeedbackStorage, InMemoryStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health_check(storage: FeedbackStorage = Depends(get_storage)):
    storage_ok = storage.ping()
    degraded = isinstance(storage, InMemoryStorage) or not storage_ok
    return {
        "status": "degraded" if degraded else "ok",
        "version": APP_VERSION,
        "service": SERVICE_NAME,
        "storage": storage.name,
        "uptime_s": round(get_uptime_s(), 1),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
