"""
Relational feedback storage.

SQLModel/SQLAlchemy-backed implementation. Each operation opens its own
session. Feedback inserts are serialized inside the process so that ids
and ``created_at`` advance together; separate processes writing to the
same database get no such ordering guarantee.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Generator, Optional

from sqlalchemy import asc, desc
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, func, select

from feedboard.core.database import build_engine, init_schema, probe, redact_url
from feedboard.core.errors import ConflictError, StorageOperationError, StorageUnavailableError
from feedboard.models import Feedback, User
from feedboard.schemas import ALL_CATEGORIES, FeedbackCreate, SortOrder, UserCreate
from feedboard.storage.base import FeedbackPage, FeedbackStorage, count_pages, page_offset

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RelationalStorage(FeedbackStorage):
    """Feedback storage on SQLite or PostgreSQL."""

    name = "relational"

    def __init__(self, engine: Engine, clock: Callable[[], datetime] = _utcnow) -> None:
        self._engine = engine
        self._clock = clock
        self._insert_lock = threading.Lock()
        self._last_created_at: Optional[datetime] = None

    @classmethod
    def from_url(
        cls, url: str, echo: bool = False, clock: Callable[[], datetime] = _utcnow
    ) -> "RelationalStorage":
        return cls(build_engine(url, echo=echo), clock=clock)

    @property
    def engine(self) -> Engine:
        return self._engine

    def initialize(self) -> None:
        """Probe the server and bring the schema up to date.

        Raises:
            StorageUnavailableError: if the database cannot be reached.
        """
        probe(self._engine)
        init_schema(self._engine)
        logger.info("Relational storage ready: %s", redact_url(str(self._engine.url)))

    @contextmanager
    def _session(self, operation: str) -> Generator[Session, None, None]:
        """Session scope mapping driver failures to StorageOperationError."""
        try:
            with Session(self._engine, expire_on_commit=False) as session:
                yield session
        except IntegrityError:
            # Callers decide whether a constraint hit is a conflict
            raise
        except SQLAlchemyError as exc:
            raise StorageOperationError(
                detail=f"{operation} failed: {exc.__class__.__name__}",
                context={"operation": operation},
            ) from exc

    # ── Users ──────────────────────────────────────────────────────────
    def create_user(self, user: UserCreate) -> User:
        record = User(username=user.username, password=user.password)
        try:
            with self._session("create_user") as session:
                session.add(record)
                session.commit()
                session.refresh(record)
        except IntegrityError as exc:
            raise ConflictError(
                detail=f"username {user.username!r} already exists",
                context={"field": "username"},
            ) from exc
        return record

    def get_user(self, user_id: int) -> Optional[User]:
        with self._session("get_user") as session:
            return session.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._session("get_user_by_username") as session:
            return session.exec(select(User).where(User.username == username)).first()

    # ── Feedback ───────────────────────────────────────────────────────
    def create_feedback(self, feedback: FeedbackCreate) -> Feedback:
        # Held through the commit so id order and timestamp order agree
        with self._insert_lock:
            created_at = self._clock()
            if self._last_created_at is not None and created_at < self._last_created_at:
                created_at = self._last_created_at

            record = Feedback(
                name=feedback.name,
                email=feedback.email,
                category=feedback.category.value,
                message=feedback.message,
                created_at=created_at,
            )
            try:
                with self._session("create_feedback") as session:
                    session.add(record)
                    session.commit()
                    session.refresh(record)
            except IntegrityError as exc:
                raise StorageOperationError(
                    detail=f"create_feedback failed: {exc.__class__.__name__}",
                    context={"operation": "create_feedback"},
                ) from exc
            self._last_created_at = created_at
        return record

    def get_feedback(
        self,
        category: str = ALL_CATEGORIES,
        sort_by: SortOrder = SortOrder.NEWEST,
        page: int = 1,
        limit: int = 10,
    ) -> FeedbackPage:
        """One page of feedback plus the filtered total.

        Pages past the end are answered from the count alone and never reach
        the database as an OFFSET. When rows come back, the total is the
        windowed count from that same statement, so it matches the rows.
        """
        offset = page_offset(page, limit)
        order = desc if SortOrder(sort_by) is SortOrder.NEWEST else asc

        count_statement = select(func.count()).select_from(Feedback)
        statement = select(Feedback, func.count().over().label("total"))
        if category != ALL_CATEGORIES:
            count_statement = count_statement.where(Feedback.category == category)
            statement = statement.where(Feedback.category == category)

        with self._session("get_feedback") as session:
            total = session.exec(count_statement).one()
            if offset >= total:
                return FeedbackPage(feedbacks=[], total_count=total, page_count=count_pages(total, limit))

            statement = (
                statement
                .order_by(order(Feedback.created_at), asc(Feedback.id))
                .offset(offset)
                .limit(limit)
            )
            rows = session.exec(statement).all()

        feedbacks = [record for record, _ in rows]
        if rows:
            total = rows[0][1]
        return FeedbackPage(
            feedbacks=feedbacks,
            total_count=total,
            page_count=count_pages(total, limit),
        )

    def ping(self) -> bool:
        try:
            probe(self._engine)
        except StorageUnavailableError:
            return False
        return True

    def close(self) -> None:
        self._engine.dispose()
