"""
Storage contract tests — run against both InMemoryStorage and RelationalStorage.
"""

import math
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import event
from sqlmodel import Session

from feedboard.core.errors import ConflictError, StorageOperationError
from feedboard.models import Feedback
from feedboard.schemas import FeedbackCategory, FeedbackCreate, SortOrder, UserCreate
from feedboard.storage import InMemoryStorage, RelationalStorage, count_pages


def _feedback(category="bug", message="Something broke", **overrides) -> FeedbackCreate:
    data = {"name": "Tester", "email": None, "category": category, "message": message}
    data.update(overrides)
    return FeedbackCreate(**data)


def _seed(storage, categories):
    return [
        storage.create_feedback(_feedback(category=c, message=f"item {i}"))
        for i, c in enumerate(categories)
    ]


def _naive(dt: datetime) -> datetime:
    return dt.replace(tzinfo=None) if dt.tzinfo else dt


# =====================================================================
# Users
# =====================================================================

class TestUsers:
    def test_create_and_get_user(self, storage):
        user = storage.create_user(UserCreate(username="ada", password="pw"))
        assert user.id is not None
        assert user.username == "ada"

        fetched = storage.get_user(user.id)
        assert fetched is not None
        assert fetched.username == "ada"
        assert fetched.password == "pw"

    def test_get_user_by_username(self, storage):
        storage.create_user(UserCreate(username="grace", password="pw"))
        assert storage.get_user_by_username("grace").username == "grace"

    def test_missing_user_is_none(self, storage):
        assert storage.get_user(9999) is None
        assert storage.get_user_by_username("nobody") is None

    def test_duplicate_username_conflicts(self, storage):
        storage.create_user(UserCreate(username="ada", password="pw"))
        with pytest.raises(ConflictError) as exc_info:
            storage.create_user(UserCreate(username="ada", password="other"))
        assert exc_info.value.code == "FBK-DB-001"

    def test_user_ids_unique(self, storage):
        ids = {storage.create_user(UserCreate(username=f"u{i}", password="pw")).id for i in range(5)}
        assert len(ids) == 5


# =====================================================================
# Feedback creation
# =====================================================================

class TestCreateFeedback:
    def test_assigns_id_and_created_at(self, storage):
        record = storage.create_feedback(_feedback(email="ada@example.com"))
        assert record.id is not None
        assert record.created_at is not None
        assert record.category == "bug"
        assert record.email == "ada@example.com"

    def test_ids_unique_and_created_at_non_decreasing(self, storage):
        records = _seed(storage, ["bug", "feature", "suggestion", "bug", "feature", "bug"])
        ids = [r.id for r in records]
        assert len(set(ids)) == len(ids)
        assert ids == sorted(ids)

        stamps = [_naive(r.created_at) for r in records]
        assert stamps == sorted(stamps)

    def test_category_stored_as_plain_value(self, storage):
        record = storage.create_feedback(_feedback(category=FeedbackCategory.FEATURE))
        assert record.category == "feature"


# =====================================================================
# Listing: filter, sort, pagination
# =====================================================================

class TestGetFeedback:
    def test_empty_store(self, storage):
        result = storage.get_feedback("all", SortOrder.NEWEST, 1, 10)
        assert result.feedbacks == []
        assert result.total_count == 0
        assert result.page_count == 0

    def test_newest_first(self, storage):
        records = _seed(storage, ["bug", "suggestion", "feature"])
        result = storage.get_feedback("all", SortOrder.NEWEST, 1, 10)
        assert [f.id for f in result.feedbacks] == [r.id for r in reversed(records)]

    def test_oldest_first(self, storage):
        records = _seed(storage, ["bug", "suggestion", "feature"])
        result = storage.get_feedback("all", SortOrder.OLDEST, 1, 10)
        assert [f.id for f in result.feedbacks] == [r.id for r in records]

    def test_bug_suggestion_bug_scenario(self, storage):
        first, _, second = _seed(storage, ["bug", "suggestion", "bug"])
        result = storage.get_feedback("bug", SortOrder.NEWEST, 1, 10)
        assert [f.id for f in result.feedbacks] == [second.id, first.id]
        assert result.total_count == 2
        assert result.page_count == 1

    def test_category_filter_counts_only_matches(self, storage):
        _seed(storage, ["bug", "feature", "feature", "suggestion", "feature"])
        result = storage.get_feedback("feature", SortOrder.NEWEST, 1, 2)
        assert all(f.category == "feature" for f in result.feedbacks)
        assert len(result.feedbacks) == 2
        assert result.total_count == 3
        assert result.page_count == 2

    def test_five_records_limit_two(self, storage):
        records = _seed(storage, ["bug"] * 5)
        result = storage.get_feedback("all", SortOrder.OLDEST, 3, 2)
        assert result.total_count == 5
        assert result.page_count == 3
        assert [f.id for f in result.feedbacks] == [records[4].id]

    def test_pages_partition_the_result(self, storage):
        records = _seed(storage, ["bug", "feature"] * 4)
        seen = []
        for page in (1, 2, 3):
            seen.extend(f.id for f in storage.get_feedback("all", SortOrder.OLDEST, page, 3).feedbacks)
        assert seen == [r.id for r in records]

    def test_page_beyond_end_is_empty(self, storage):
        _seed(storage, ["bug"] * 3)
        result = storage.get_feedback("all", SortOrder.NEWEST, 7, 2)
        assert result.feedbacks == []
        assert result.total_count == 3
        assert result.page_count == 2

    @pytest.mark.parametrize("page", [2 ** 62, 10 ** 20])
    def test_huge_page_is_empty_not_an_error(self, storage, page):
        _seed(storage, ["bug"])
        result = storage.get_feedback("all", SortOrder.NEWEST, page, 10)
        assert result.feedbacks == []
        assert result.total_count == 1
        assert result.page_count == 1

    def test_huge_page_on_empty_store(self, storage):
        result = storage.get_feedback("bug", SortOrder.OLDEST, 10 ** 20, 10)
        assert (result.feedbacks, result.total_count, result.page_count) == ([], 0, 0)

    @pytest.mark.parametrize("total,limit", [(0, 1), (1, 1), (4, 2), (5, 2), (7, 10), (10, 3)])
    def test_page_count_is_ceiling(self, storage, total, limit):
        _seed(storage, ["suggestion"] * total)
        result = storage.get_feedback("all", SortOrder.NEWEST, 1, limit)
        assert result.total_count == total
        assert result.page_count == math.ceil(total / limit)


# =====================================================================
# Tie-breaking on equal created_at
# =====================================================================

class TestTieBreak:
    def test_memory_ties_break_by_id_ascending(self, step_clock):
        frozen = step_clock(step=timedelta(0))
        storage = InMemoryStorage(clock=frozen)
        records = [storage.create_feedback(_feedback(message=f"m{i}")) for i in range(3)]
        ids = [r.id for r in records]

        assert [f.id for f in storage.get_feedback("all", SortOrder.NEWEST, 1, 10).feedbacks] == ids
        assert [f.id for f in storage.get_feedback("all", SortOrder.OLDEST, 1, 10).feedbacks] == ids

    def test_relational_ties_break_by_id_ascending(self, relational_storage):
        stamp = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        later = datetime(2026, 3, 1, 13, 0, tzinfo=timezone.utc)
        with Session(relational_storage.engine) as session:
            for i in range(3):
                session.add(Feedback(name="t", category="bug", message=f"m{i}", created_at=stamp))
            session.add(Feedback(name="t", category="bug", message="late", created_at=later))
            session.commit()

        newest = [f.message for f in relational_storage.get_feedback("all", SortOrder.NEWEST, 1, 10).feedbacks]
        oldest = [f.message for f in relational_storage.get_feedback("all", SortOrder.OLDEST, 1, 10).feedbacks]
        assert newest == ["late", "m0", "m1", "m2"]
        assert oldest == ["m0", "m1", "m2", "late"]

    def test_memory_clock_going_backwards_is_clamped(self, step_clock):
        clock = step_clock()
        storage = InMemoryStorage(clock=clock)
        first = storage.create_feedback(_feedback())
        clock.now = first.created_at.replace(year=2020)
        second = storage.create_feedback(_feedback())
        assert second.created_at == first.created_at

    def test_relational_clock_going_backwards_is_clamped(self, tmp_path, step_clock):
        clock = step_clock()
        storage = RelationalStorage.from_url(f"sqlite:///{tmp_path / 'clock.db'}", clock=clock)
        storage.initialize()
        try:
            first = storage.create_feedback(_feedback(message="first"))
            clock.now = clock.now.replace(year=2020)
            second = storage.create_feedback(_feedback(message="second"))

            assert _naive(second.created_at) == _naive(first.created_at)
            newest = storage.get_feedback("all", SortOrder.NEWEST, 1, 10).feedbacks
            assert [f.message for f in newest] == ["first", "second"]
        finally:
            storage.close()

    def test_concurrent_inserts_keep_created_at_in_id_order(self, storage):
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda i: storage.create_feedback(_feedback(message=f"m{i}")), range(40)))

        rows = storage.get_feedback("all", SortOrder.OLDEST, 1, 100).feedbacks
        by_id = sorted(rows, key=lambda f: f.id)
        stamps = [_naive(f.created_at) for f in by_id]
        assert len(rows) == 40
        assert stamps == sorted(stamps)


# =====================================================================
# Failure mapping & helpers
# =====================================================================

class TestRelationalFailures:
    def test_query_failure_maps_to_storage_operation_error(self, relational_storage):
        with relational_storage.engine.begin() as conn:
            conn.exec_driver_sql("DROP TABLE feedback")

        with pytest.raises(StorageOperationError) as exc_info:
            relational_storage.get_feedback("all", SortOrder.NEWEST, 1, 10)
        assert exc_info.value.code == "FBK-DB-003"

    def test_ping(self, relational_storage):
        assert relational_storage.ping() is True

    def test_total_matches_rows_when_insert_lands_between_queries(self, relational_storage):
        _seed(relational_storage, ["bug", "bug"])
        engine = relational_storage.engine
        inserted = []

        def insert_after_count(conn, cursor, statement, parameters, context, executemany):
            sql = statement.lower()
            if inserted or "count(" not in sql or " over " in sql:
                return
            inserted.append(True)
            with engine.begin() as other:
                other.execute(
                    Feedback.__table__.insert().values(
                        name="late", category="bug", message="late",
                        created_at=datetime.now(timezone.utc),
                    )
                )

        event.listen(engine, "after_cursor_execute", insert_after_count)
        try:
            result = relational_storage.get_feedback("all", SortOrder.NEWEST, 1, 10)
        finally:
            event.remove(engine, "after_cursor_execute", insert_after_count)

        assert inserted
        assert result.total_count == len(result.feedbacks) == 3
        assert result.page_count == 1


class TestCountPages:
    @pytest.mark.parametrize("total,limit,expected", [(0, 5, 0), (1, 5, 1), (5, 5, 1), (6, 5, 2)])
    def test_count_pages(self, total, limit, expected):
        assert count_pages(total, limit) == expected

    def test_rejects_zero_limit(self):
        with pytest.raises(ValueError):
            count_pages(3, 0)
