"""
SQLAlchemy-backed ReviewStore.

Queries run on a synchronous session inside a worker thread so a slow
database never blocks other users' timers on the event loop.
"""
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Callable, TypeVar

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from sprachcoach.core.exceptions import ConfigurationError, TransientStoreError
from sprachcoach.core.models import (
    ChallengeDeliveryLogEntry,
    FeedbackRecord,
    FeedbackSource,
    Phrase,
    PhraseCategory,
    make_phrase_key,
)
from sprachcoach.db.database import session_scope
from sprachcoach.db.models import (
    ChallengeDeliveryRow,
    ChallengeSubscriptionRow,
    FeedbackPhraseRow,
    FeedbackRecordRow,
)
from sprachcoach.store.base import ReviewStore

T = TypeVar("T")


class SqlReviewStore(ReviewStore):
    """ReviewStore over the tables in sprachcoach.db.models."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None):
        self._session_factory = session_factory

    async def _run(self, operation: str, func_: Callable[[Session], T]) -> T:
        def work() -> T:
            with session_scope(self._session_factory) as session:
                return func_(session)

        try:
            return await asyncio.to_thread(work)
        except SQLAlchemyError as exc:
            logger.warning("Store operation {} failed: {}", operation, exc)
            raise TransientStoreError(f"{operation} failed: {exc}") from exc

    # Feedback -----------------------------------------------------------
    async def fetch_recent_feedback(self, user_id: str, max_count: int) -> list[FeedbackRecord]:
        def query(session: Session) -> list[FeedbackRecord]:
            rows = session.scalars(
                select(FeedbackRecordRow)
                .where(FeedbackRecordRow.user_id == user_id)
                .order_by(FeedbackRecordRow.created_at.desc(), FeedbackRecordRow.id.desc())
                .limit(max_count)
                .options(selectinload(FeedbackRecordRow.phrases))
            ).all()
            return [_row_to_record(row) for row in rows]

        return await self._run("fetch_recent_feedback", query)

    async def add_feedback(self, record: FeedbackRecord) -> FeedbackRecord:
        def insert(session: Session) -> FeedbackRecord:
            row = FeedbackRecordRow(
                user_id=record.user_id,
                source=record.source.value,
                categories=",".join(c.value for c in record.categories) or PhraseCategory.GENERAL.value,
                original_text=record.original_text,
                full_feedback=record.full_feedback,
                importance=record.importance,
                created_at=record.created_at,
                phrases=[
                    FeedbackPhraseRow(
                        position=position,
                        original=phrase.original,
                        improved=phrase.improved,
                        category=phrase.category.value,
                        importance=phrase.importance,
                        repetitions=phrase.repetitions,
                    )
                    for position, phrase in enumerate(record.phrases)
                ],
            )
            session.add(row)
            session.flush()
            return _row_to_record(row)

        return await self._run("add_feedback", insert)

    async def increment_phrase_repetition(self, user_id: str, phrase_key: str) -> bool:
        def update(session: Session) -> bool:
            candidates = session.scalars(
                select(FeedbackPhraseRow)
                .join(FeedbackRecordRow)
                .where(FeedbackRecordRow.user_id == user_id)
                .order_by(
                    FeedbackRecordRow.created_at.desc(),
                    FeedbackRecordRow.id.desc(),
                    FeedbackPhraseRow.position,
                )
            ).all()
            for phrase in candidates:
                if make_phrase_key(phrase.original, phrase.improved) == phrase_key:
                    phrase.repetitions += 1
                    phrase.record.repetitions += 1
                    return True
            return False

        return await self._run("increment_phrase_repetition", update)

    # Delivery log -------------------------------------------------------
    async def append_delivery_log(self, entry: ChallengeDeliveryLogEntry) -> None:
        def insert(session: Session) -> None:
            session.add(
                ChallengeDeliveryRow(
                    user_id=entry.user_id,
                    challenge_type=entry.type.value,
                    week_number=entry.week_number,
                    sent_at=entry.timestamp,
                )
            )

        await self._run("append_delivery_log", insert)

    async def count_delivery_log_for_week(self, user_id: str, week_number: int) -> int:
        def count(session: Session) -> int:
            value = session.scalar(
                select(func.count())
                .select_from(ChallengeDeliveryRow)
                .where(
                    ChallengeDeliveryRow.user_id == user_id,
                    ChallengeDeliveryRow.week_number == week_number,
                )
            )
            if value is None or value < 0:
                raise ConfigurationError(f"Invalid delivery count {value!r} for user {user_id}")
            return int(value)

        return await self._run("count_delivery_log_for_week", count)

    # Subscriptions ------------------------------------------------------
    async def list_subscribers(self) -> list[str]:
        def query(session: Session) -> list[str]:
            return list(
                session.scalars(
                    select(ChallengeSubscriptionRow.user_id)
                    .where(ChallengeSubscriptionRow.active.is_(True))
                    .order_by(ChallengeSubscriptionRow.user_id)
                )
            )

        return await self._run("list_subscribers", query)

    async def set_subscribed(self, user_id: str, subscribed: bool) -> None:
        def upsert(session: Session) -> None:
            row = session.get(ChallengeSubscriptionRow, user_id)
            if row is None:
                session.add(
                    ChallengeSubscriptionRow(
                        user_id=user_id, active=subscribed, updated_at=datetime.now()
                    )
                )
            else:
                row.active = subscribed
                row.updated_at = datetime.now()

        await self._run("set_subscribed", upsert)


def _row_to_record(row: FeedbackRecordRow) -> FeedbackRecord:
    categories = [PhraseCategory.parse(c) for c in (row.categories or "").split(",") if c]
    return FeedbackRecord(
        id=str(row.id),
        user_id=row.user_id,
        full_feedback=row.full_feedback,
        original_text=row.original_text,
        source=FeedbackSource(row.source),
        categories=categories,
        importance=row.importance,
        created_at=row.created_at,
        phrases=[
            Phrase(
                original=phrase.original,
                improved=phrase.improved,
                category=PhraseCategory.parse(phrase.category),
                importance=phrase.importance,
                repetitions=phrase.repetitions,
            )
            for phrase in row.phrases
        ],
    )
