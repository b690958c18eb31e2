"""Persistence capability consumed by the challenge engine."""
from __future__ import annotations

from abc import ABC, abstractmethod

from sprachcoach.core.models import ChallengeDeliveryLogEntry, FeedbackRecord


class ReviewStore(ABC):
    """
    Read/write access to feedback records and challenge-delivery logs.

    Implementations raise TransientStoreError (or a subclass) for any backend
    failure so callers can apply their recovery policy uniformly.
    """

    @abstractmethod
    async def fetch_recent_feedback(self, user_id: str, max_count: int) -> list[FeedbackRecord]:
        """Return up to ``max_count`` feedback records, newest first."""

    @abstractmethod
    async def add_feedback(self, record: FeedbackRecord) -> FeedbackRecord:
        """Persist a feedback record and return it with its id assigned."""

    @abstractmethod
    async def increment_phrase_repetition(self, user_id: str, phrase_key: str) -> bool:
        """Increment the repetition counter of the newest phrase matching ``phrase_key``."""

    @abstractmethod
    async def append_delivery_log(self, entry: ChallengeDeliveryLogEntry) -> None:
        """Record that an automated challenge was sent."""

    @abstractmethod
    async def count_delivery_log_for_week(self, user_id: str, week_number: int) -> int:
        """Count challenges logged for ``user_id`` in ``week_number`` (a ``current_week`` id)."""

    @abstractmethod
    async def list_subscribers(self) -> list[str]:
        """Return users who opted in to automated challenges."""

    @abstractmethod
    async def set_subscribed(self, user_id: str, subscribed: bool) -> None:
        """Persist a user's opt-in state."""
