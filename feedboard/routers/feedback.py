"""
Feedback Router
===============

    POST /api/feedback         — submit feedback
    GET  /api/feedback         — list with category filter, sort, pagination
    GET  /api/feedback/schema  — validation rules for client-side forms
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from feedboard.schemas import (
    FeedbackPageResponse,
    FeedbackRead,
    feedback_form_schema,
    validate_feedback,
    validate_feedback_query,
)
from feedboard.storage import FeedbackStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/feedback",
    response_model=FeedbackRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_feedback(
    payload: Any = Body(..., examples=[{
        "name": "Ada",
        "email": "ada@example.com",
        "category": "bug",
        "message": "The export button does nothing.",
    }]),
    storage: FeedbackStorage = Depends(get_storage),
):
    """Validate and store a feedback submission."""
    feedback = validate_feedback(payload)
    record = storage.create_feedback(feedback)
    logger.info(
        "feedback_created",
        extra={"feedback.id": record.id, "feedback.category": record.category, "storage": storage.name},
    )
    return FeedbackRead.model_validate(record.model_dump())


@router.get("/feedback", response_model=FeedbackPageResponse)
def list_feedback(
    category: Optional[str] = Query(None, description='suggestion, bug, feature or "all"'),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="newest or oldest"),
    page: Optional[str] = Query(None, description="1-indexed page number"),
    limit: Optional[str] = Query(None, description="Page size"),
    storage: FeedbackStorage = Depends(get_storage),
):
    """List feedback entries, newest first by default."""
    query = validate_feedback_query(
        {"category": category, "sortBy": sort_by, "page": page, "limit": limit}
    )
    result = storage.get_feedback(
        category=query.category,
        sort_by=query.sort_by,
        page=query.page,
        limit=query.limit,
    )
    return FeedbackPageResponse(
        feedbacks=[FeedbackRead.model_validate(fb.model_dump()) for fb in result.feedbacks],
        total_count=result.total_count,
        page_count=result.page_count,
    )


@router.get("/feedback/schema")
def get_feedback_schema() -> Dict[str, Any]:
    """Validation rules shared with the submission form."""
    return feedback_form_schema()
