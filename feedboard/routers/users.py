"""
Users Router
============

    POST /api/users          — signup
    GET  /api/users/{id}     — public profile
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, status

from feedboard.core.errors import NotFoundError
from feedboard.schemas import UserRead, validate_user
from feedboard.storage import FeedbackStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def signup(
    payload: Any = Body(..., examples=[{"username": "ada", "password": "s3cret"}]),
    storage: FeedbackStorage = Depends(get_storage),
):
    user = validate_user(payload)
    record = storage.create_user(user)
    logger.info("user_created", extra={"user.id": record.id, "storage": storage.name})
    return UserRead.model_validate(record)


@router.get("/users/{user_id}", response_model=UserRead)
def get_user(user_id: int, storage: FeedbackStorage = Depends(get_storage)):
    record = storage.get_user(user_id)
    if record is None:
        raise NotFoundError(detail=f"user {user_id} not found", context={"user_id": user_id})
    return UserRead.model_validate(record)
