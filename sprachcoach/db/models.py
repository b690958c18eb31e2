"""
SQLAlchemy models for coach feedback and automated challenges.

Tables:
- feedback_records: one analyzed text/voice submission
- feedback_phrases: original -> improved pairs extracted from a record
- challenge_deliveries: append-only log of sent automated challenges
- challenge_subscriptions: users who opted in to automated challenges
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Declarative base for all sprachcoach tables."""


class FeedbackRecordRow(Base):
    __tablename__ = "feedback_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    source: Mapped[str] = mapped_column(String(16), nullable=False, default="text")
    # Comma-separated, first entry is the primary category
    categories: Mapped[str] = mapped_column(Text, nullable=False, default="general")
    original_text: Mapped[Optional[str]] = mapped_column(Text)
    full_feedback: Mapped[str] = mapped_column(Text, nullable=False)
    importance: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    repetitions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )

    phrases: Mapped[List["FeedbackPhraseRow"]] = relationship(
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="FeedbackPhraseRow.position",
    )

    __table_args__ = (Index("ix_feedback_records_user_created", "user_id", "created_at"),)


class FeedbackPhraseRow(Base):
    __tablename__ = "feedback_phrases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    record_id: Mapped[int] = mapped_column(
        ForeignKey("feedback_records.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    original: Mapped[str] = mapped_column(Text, nullable=False)
    improved: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="improvement")
    importance: Mapped[Optional[int]] = mapped_column(Integer)
    repetitions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    record: Mapped[FeedbackRecordRow] = relationship(back_populates="phrases")


class ChallengeDeliveryRow(Base):
    __tablename__ = "challenge_deliveries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    challenge_type: Mapped[str] = mapped_column(String(16), nullable=False)
    # year * 100 + week of year, see sprachcoach.core.clock.current_week
    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (Index("ix_challenge_deliveries_user_week", "user_id", "week_number"),)


class ChallengeSubscriptionRow(Base):
    __tablename__ = "challenge_subscriptions"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
