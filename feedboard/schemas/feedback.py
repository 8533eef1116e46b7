"""
Feedback Schemas
================

Single source of truth for feedback validation rules. The HTTP API runs
every submission and list query through the functions below, and the
JSON Schema served at ``GET /api/feedback/schema`` is generated from the
same models so form clients enforce identical constraints.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from feedboard.config import settings
from feedboard.core.errors import ValidationError

ALL_CATEGORIES = "all"
MAX_MESSAGE_LENGTH = 5000


class FeedbackCategory(str, Enum):
    SUGGESTION = "suggestion"
    BUG = "bug"
    FEATURE = "feature"


class SortOrder(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"


class FeedbackCreate(BaseModel):
    """A validated submission, ready for insertion."""

    model_config = {"str_strip_whitespace": True, "extra": "ignore"}

    name: str = Field(..., min_length=1, max_length=255, description="Submitter name")
    email: Optional[EmailStr] = Field(default=None, description="Optional contact address")
    category: FeedbackCategory = Field(..., description="suggestion, bug or feature")
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH, description="Feedback body")

    @field_validator("email", mode="before")
    @classmethod
    def _blank_email_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class FeedbackQuery(BaseModel):
    """Parsed list-query parameters."""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    category: str = ALL_CATEGORIES
    sort_by: SortOrder = Field(default=SortOrder.NEWEST, alias="sortBy")
    page: int = Field(default=1, ge=1)
    limit: int = Field(default_factory=lambda: settings.default_page_size, ge=1)

    @field_validator("limit")
    @classmethod
    def _cap_limit(cls, value: int) -> int:
        if value > settings.max_page_size:
            raise ValueError(f"must be at most {settings.max_page_size}")
        return value

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        allowed = [ALL_CATEGORIES] + [c.value for c in FeedbackCategory]
        if value not in allowed:
            raise ValueError(f"must be one of {', '.join(allowed)}")
        return value


class FeedbackRead(BaseModel):
    """A stored feedback record as returned by the API."""

    model_config = {"populate_by_name": True}

    id: int
    name: str
    email: Optional[str] = None
    category: str
    message: str
    created_at: datetime = Field(alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive datetimes; everything is stored in UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class FeedbackPageResponse(BaseModel):
    model_config = {"populate_by_name": True}

    feedbacks: List[FeedbackRead]
    total_count: int = Field(alias="totalCount")
    page_count: int = Field(alias="pageCount")


def pydantic_field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    fields = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "body"
        msg = err.get("msg", "Invalid value")
        # "Value error, must be at most 100" -> "must be at most 100"
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        fields.append({"field": loc, "message": msg})
    return fields


def require_mapping(raw: Any) -> Mapping:
    if not isinstance(raw, Mapping):
        raise ValidationError([{"field": "body", "message": "Expected a JSON object"}])
    return raw


def validate_feedback(raw: Any) -> FeedbackCreate:
    """Validate untyped submission data.

    Raises:
        ValidationError: with one entry per offending field.
    """
    data = require_mapping(raw)
    try:
        return FeedbackCreate.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ValidationError(pydantic_field_errors(exc)) from exc


def validate_feedback_query(raw: Mapping[str, Any]) -> FeedbackQuery:
    """Validate list-query parameters. Blank values fall back to defaults."""
    data = {k: v for k, v in require_mapping(raw).items() if v is not None and v != ""}
    try:
        return FeedbackQuery.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(pydantic_field_errors(exc)) from exc


def feedback_form_schema() -> dict:
    """JSON Schema for the submission form, shared with client-side forms."""
    return {
        "schema": FeedbackCreate.model_json_schema(),
        "categories": [c.value for c in FeedbackCategory],
        "sortOptions": [s.value for s in SortOrder],
        "defaultPageSize": settings.default_page_size,
        "maxPageSize": settings.max_page_size,
    }
