"""
User Model
==========

Accounts created at signup. Immutable after creation; no deletion path.
The password is stored exactly as submitted.
"""

from typing import Optional

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True, max_length=255)
    password: str = Field(max_length=255)
