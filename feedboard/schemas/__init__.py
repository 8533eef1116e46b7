from feedboard.schemas.feedback import (
    ALL_CATEGORIES,
    FeedbackCategory,
    FeedbackCreate,
    FeedbackPageResponse,
    FeedbackQuery,
    FeedbackRead,
    SortOrder,
    feedback_form_schema,
    validate_feedback,
    validate_feedback_query,
)
from feedboard.schemas.user import UserCreate, UserRead, validate_user

__all__ = [
    "ALL_CATEGORIES",
    "FeedbackCategory",
    "FeedbackCreate",
    "FeedbackPageResponse",
    "FeedbackQuery",
    "FeedbackRead",
    "SortOrder",
    "UserCreate",
    "UserRead",
    "feedback_form_schema",
    "validate_feedback",
    "validate_feedback_query",
    "validate_user",
]
