"""
In-memory feedback storage.

Fallback used when the relational store is unreachable at startup. Honours
the same contract as RelationalStorage but keeps everything in process
memory: all data is lost when the process exits.
"""

import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from feedboard.core.errors import ConflictError
from feedboard.models import Feedback, User
from feedboard.schemas import ALL_CATEGORIES, FeedbackCreate, SortOrder, UserCreate
from feedboard.storage.base import FeedbackPage, FeedbackStorage, count_pages, page_offset


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _copy(record):
    """Detached copy so callers cannot mutate stored rows."""
    return type(record)(**record.model_dump())


class InMemoryStorage(FeedbackStorage):
    """Ordered in-process collections guarded by a single lock."""

    name = "memory"

    def __init__(self, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._users: Dict[int, User] = {}
        self._usernames: Dict[str, int] = {}
        self._feedback: List[Feedback] = []
        self._next_user_id = 1
        self._next_feedback_id = 1
        self._last_created_at: Optional[datetime] = None

    # ── Users ──────────────────────────────────────────────────────────
    def create_user(self, user: UserCreate) -> User:
        with self._lock:
            if user.username in self._usernames:
                raise ConflictError(
                    detail=f"username {user.username!r} already exists",
                    context={"field": "username"},
                )
            record = User(id=self._next_user_id, username=user.username, password=user.password)
            self._next_user_id += 1
            self._users[record.id] = record
            self._usernames[record.username] = record.id
            return _copy(record)

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            record = self._users.get(user_id)
            return _copy(record) if record else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            user_id = self._usernames.get(username)
            return _copy(self._users[user_id]) if user_id is not None else None

    # ── Feedback ───────────────────────────────────────────────────────
    def create_feedback(self, feedback: FeedbackCreate) -> Feedback:
        with self._lock:
            created_at = self._clock()
            # Never let a clock step backwards reorder inserts
            if self._last_created_at is not None and created_at < self._last_created_at:
                created_at = self._last_created_at
            self._last_created_at = created_at

            record = Feedback(
                id=self._next_feedback_id,
                name=feedback.name,
                email=feedback.email,
                category=feedback.category.value,
                message=feedback.message,
                created_at=created_at,
            )
            self._next_feedback_id += 1
            self._feedback.append(record)
            return _copy(record)

    def get_feedback(
        self,
        category: str = ALL_CATEGORIES,
        sort_by: SortOrder = SortOrder.NEWEST,
        page: int = 1,
        limit: int = 10,
    ) -> FeedbackPage:
        offset = page_offset(page, limit)
        with self._lock:
            matching = [
                fb for fb in self._feedback
                if category == ALL_CATEGORIES or fb.category == category
            ]

        # Two stable passes: id ascending, then created_at in the requested
        # direction, so equal timestamps keep id-ascending order.
        matching.sort(key=lambda fb: fb.id)
        matching.sort(key=lambda fb: fb.created_at, reverse=SortOrder(sort_by) is SortOrder.NEWEST)

        total = len(matching)
        return FeedbackPage(
            feedbacks=[_copy(fb) for fb in matching[offset:offset + limit]],
            total_count=total,
            page_count=count_pages(total, limit),
        )
