"""SQLModel tables for the relational store."""

from feedboard.models.feedback import Feedback
from feedboard.models.user import User

__all__ = ["Feedback", "User"]
