"""
Feedback Storage Base Class
===========================

Abstract persistence contract implemented by the relational store and the
in-memory fallback. Both return the SQLModel record classes from
``feedboard.models`` so callers never branch on the backend.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from feedboard.models import Feedback, User
from feedboard.schemas import ALL_CATEGORIES, FeedbackCreate, SortOrder, UserCreate


@dataclass
class FeedbackPage:
    """One page of a filtered, sorted feedback listing."""

    feedbacks: List[Feedback] = field(default_factory=list)
    total_count: int = 0
    page_count: int = 0


def count_pages(total_count: int, limit: int) -> int:
    """ceil(total_count / limit); zero records means zero pages."""
    if limit < 1:
        raise ValueError("limit must be >= 1")
    return (total_count + limit - 1) // limit


def page_offset(page: int, limit: int) -> int:
    if page < 1:
        raise ValueError("page must be >= 1")
    return (page - 1) * limit


class FeedbackStorage(ABC):
    """
    Persistence contract for users and feedback.

    Implementations must:
    - assign ``id`` and ``created_at`` on insert
    - keep ``created_at`` non-decreasing with insertion order
    - order listings by ``created_at`` (per ``sort_by``), ties by ``id`` ascending
    - raise ConflictError on duplicate usernames
    - raise StorageOperationError on backend failures
    """

    #: Short backend identifier reported by health checks.
    name: str = "abstract"

    @abstractmethod
    def create_user(self, user: UserCreate) -> User:
        """Insert a user. Raises ConflictError if the username is taken."""

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Return the user with *user_id*, or None."""

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        """Return the user named *username*, or None."""

    @abstractmethod
    def create_feedback(self, feedback: FeedbackCreate) -> Feedback:
        """Persist a validated submission and return the stored record."""

    @abstractmethod
    def get_feedback(
        self,
        category: str = ALL_CATEGORIES,
        sort_by: SortOrder = SortOrder.NEWEST,
        page: int = 1,
        limit: int = 10,
    ) -> FeedbackPage:
        """
        List feedback.

        Args:
            category: Exact category to keep, or "all" for no filter
            sort_by: "newest" (created_at desc) or "oldest" (created_at asc)
            page: 1-indexed page number; pages past the end are empty
            limit: Page size

        Returns:
            FeedbackPage with the slice [(page-1)*limit, page*limit) and
            counts computed before pagination
        """

    def ping(self) -> bool:
        """Cheap liveness check."""
        return True

    def close(self) -> None:
        """Release backend resources."""
