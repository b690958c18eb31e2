"""
Integration Tests for SqlReviewStore.

Runs the store against an in-memory SQLite database created from the ORM
models, so no external server is needed.
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from sprachcoach.core.exceptions import TransientStoreError
from sprachcoach.core.models import (
    ChallengeDeliveryLogEntry,
    ChallengeType,
    FeedbackSource,
    PhraseCategory,
)
from sprachcoach.db import (
    FeedbackRecordRow,
    build_engine,
    build_session_factory,
    init_db,
    session_scope,
)
from sprachcoach.store.sql import SqlReviewStore

pytestmark = pytest.mark.integration

BASE_TIME = datetime(2025, 3, 1, 12, 0)


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite:///:memory:")
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sql_store(session_factory):
    return SqlReviewStore(session_factory)


class TestFeedbackPersistence:
    """Feedback round trips through the ORM tables."""

    @pytest.mark.asyncio
    async def test_add_and_fetch(self, sql_store, record_factory):
        record = record_factory("u1", [("a", "b", 5), ("c", "d", None)], BASE_TIME)
        record.categories = [PhraseCategory.IMPROVEMENT, PhraseCategory.GRAMMAR]
        record.source = FeedbackSource.VOICE
        record.original_text = "N/A (voice)"

        stored = await sql_store.add_feedback(record)
        [fetched] = await sql_store.fetch_recent_feedback("u1", 10)

        assert stored.id == fetched.id
        assert fetched.categories == [PhraseCategory.IMPROVEMENT, PhraseCategory.GRAMMAR]
        assert fetched.primary_category is PhraseCategory.IMPROVEMENT
        assert fetched.source is FeedbackSource.VOICE
        assert [(p.original, p.improved, p.importance) for p in fetched.phrases] == [
            ("a", "b", 5),
            ("c", "d", None),
        ]

    @pytest.mark.asyncio
    async def test_newest_first_and_limited(self, sql_store, record_factory):
        for day in range(5):
            await sql_store.add_feedback(
                record_factory("u1", [(f"o{day}", "x", 3)], BASE_TIME + timedelta(days=day))
            )
        await sql_store.add_feedback(record_factory("u2", [("other", "x", 3)], BASE_TIME))

        records = await sql_store.fetch_recent_feedback("u1", 3)

        assert [r.phrases[0].original for r in records] == ["o4", "o3", "o2"]

    @pytest.mark.asyncio
    async def test_increment_newest_match(self, sql_store, session_factory, record_factory):
        await sql_store.add_feedback(record_factory("u1", [("a", "b", 3)], BASE_TIME))
        await sql_store.add_feedback(
            record_factory("u1", [("x", "y", 3), ("a", "b", 3)], BASE_TIME + timedelta(days=1))
        )

        assert await sql_store.increment_phrase_repetition("u1", "a-b") is True
        assert await sql_store.increment_phrase_repetition("u1", "a-b") is True
        assert await sql_store.increment_phrase_repetition("u1", "missing-key") is False

        newest, oldest = await sql_store.fetch_recent_feedback("u1", 10)
        assert [p.repetitions for p in newest.phrases] == [0, 2]
        assert oldest.phrases[0].repetitions == 0

        with session_scope(session_factory) as session:
            totals = session.scalars(
                select(FeedbackRecordRow.repetitions).order_by(FeedbackRecordRow.created_at)
            ).all()
        assert totals == [0, 2]


class TestDeliveryLog:
    """Delivery log and weekly counts."""

    @pytest.mark.asyncio
    async def test_counts_by_user_and_week(self, sql_store):
        for user_id, week in [("u1", 11), ("u1", 11), ("u1", 12), ("u2", 11)]:
            await sql_store.append_delivery_log(
                ChallengeDeliveryLogEntry(user_id, ChallengeType.PRACTICE, week, BASE_TIME)
            )

        assert await sql_store.count_delivery_log_for_week("u1", 11) == 2
        assert await sql_store.count_delivery_log_for_week("u1", 12) == 1
        assert await sql_store.count_delivery_log_for_week("nobody", 11) == 0


class TestSubscriptions:
    """Persisted opt-in state."""

    @pytest.mark.asyncio
    async def test_subscribe_and_unsubscribe(self, sql_store):
        await sql_store.set_subscribed("b", True)
        await sql_store.set_subscribed("a", True)
        await sql_store.set_subscribed("c", True)
        await sql_store.set_subscribed("c", False)

        assert await sql_store.list_subscribers() == ["a", "b"]


class TestFailures:
    """Backend errors surface as TransientStoreError."""

    @pytest.mark.asyncio
    async def test_missing_tables(self):
        engine = build_engine("sqlite:///:memory:")
        store = SqlReviewStore(build_session_factory(engine))

        with pytest.raises(TransientStoreError):
            await store.count_delivery_log_for_week("u1", 11)

        with pytest.raises(TransientStoreError):
            await store.fetch_recent_feedback("u1", 5)
        engine.dispose()
