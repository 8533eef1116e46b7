"""
Feedback Model
==============

Stores user-submitted suggestions, bug reports and feature requests.
Rows are insert-only: nothing in the service updates or deletes them.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Index, Text
from sqlmodel import Field, SQLModel


class Feedback(SQLModel, table=True):
    __tablename__ = "feedback"
    __table_args__ = (Index("ix_feedback_category_created_at", "category", "created_at"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    category: str = Field(max_length=32)  # suggestion, bug, feature
    message: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
