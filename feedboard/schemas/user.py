"""Signup validation and the public user shape."""

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from feedboard.schemas.feedback import pydantic_field_errors, require_mapping
from feedboard.core.errors import ValidationError


class UserCreate(BaseModel):
    model_config = {"extra": "ignore"}

    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)

    @field_validator("username", mode="before")
    @classmethod
    def _strip_username(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


class UserRead(BaseModel):
    """Public view of a user. Never carries the password."""

    model_config = {"from_attributes": True}

    id: int
    username: str


def validate_user(raw: Any) -> UserCreate:
    data = require_mapping(raw)
    try:
        return UserCreate.model_validate(dict(data))
    except PydanticValidationError as exc:
        raise ValidationError(pydantic_field_errors(exc)) from exc
