"""In-process ReviewStore used for dry runs and tests."""
from __future__ import annotations

import itertools
from collections import defaultdict
from dataclasses import replace
from typing import DefaultDict, Dict, List

from sprachcoach.core.models import ChallengeDeliveryLogEntry, FeedbackRecord
from sprachcoach.store.base import ReviewStore


class InMemoryReviewStore(ReviewStore):
    """Keeps feedback, delivery logs and subscriptions in dictionaries."""

    def __init__(self) -> None:
        self._feedback: DefaultDict[str, List[FeedbackRecord]] = defaultdict(list)
        self._deliveries: List[ChallengeDeliveryLogEntry] = []
        self._subscribers: Dict[str, bool] = {}
        self._ids = itertools.count(1)

    @property
    def deliveries(self) -> list[ChallengeDeliveryLogEntry]:
        return list(self._deliveries)

    async def fetch_recent_feedback(self, user_id: str, max_count: int) -> list[FeedbackRecord]:
        # Stable sort keeps insertion order for identical timestamps; reverse for newest first.
        records = sorted(
            enumerate(self._feedback.get(user_id, [])),
            key=lambda pair: (pair[1].created_at, pair[0]),
            reverse=True,
        )
        return [record for _, record in records[:max_count]]

    async def add_feedback(self, record: FeedbackRecord) -> FeedbackRecord:
        stored = replace(record, id=record.id or str(next(self._ids)))
        self._feedback[stored.user_id].append(stored)
        return stored

    async def increment_phrase_repetition(self, user_id: str, phrase_key: str) -> bool:
        for record in await self.fetch_recent_feedback(user_id, len(self._feedback.get(user_id, []))):
            for phrase in record.phrases:
                if phrase.key == phrase_key:
                    phrase.repetitions += 1
                    return True
        return False

    async def append_delivery_log(self, entry: ChallengeDeliveryLogEntry) -> None:
        self._deliveries.append(entry)

    async def count_delivery_log_for_week(self, user_id: str, week_number: int) -> int:
        return sum(
            1
            for entry in self._deliveries
            if entry.user_id == user_id and entry.week_number == week_number
        )

    async def list_subscribers(self) -> list[str]:
        return [user_id for user_id, active in self._subscribers.items() if active]

    async def set_subscribed(self, user_id: str, subscribed: bool) -> None:
        self._subscribers[user_id] = subscribed
