"""
Review Selection for stored feedback phrases.

Picks which recorded corrections to drill next:
1. Only the most recent feedback records are considered (fixed window)
2. Phrases are deduplicated by original/improved pair, newest record wins
3. High importance first, under-practiced first within an importance level
4. Each importance level is occasionally shuffled for variety

Shuffling never moves a phrase across importance levels, so a less important
phrase can not outrank a more important one.
"""
from __future__ import annotations

import random
from collections.abc import Iterable
from itertools import groupby
from typing import Optional

from loguru import logger

from sprachcoach.core.config import ChallengeConfig
from sprachcoach.core.models import (
    FeedbackRecord,
    ReviewCandidate,
    clamp_importance,
)
from sprachcoach.store.base import ReviewStore


def flatten_candidates(records: Iterable[FeedbackRecord]) -> list[ReviewCandidate]:
    """
    Turn records (newest first) into one candidate per distinct phrase key.

    The first occurrence of a key wins, so older duplicates are dropped.
    """
    seen: set[str] = set()
    candidates: list[ReviewCandidate] = []
    for record in records:
        record_importance = clamp_importance(record.importance)
        for phrase in record.phrases:
            if phrase.key in seen:
                continue
            seen.add(phrase.key)
            candidates.append(
                ReviewCandidate(
                    phrase_key=phrase.key,
                    original=phrase.original,
                    improved=phrase.improved,
                    category=phrase.category,
                    importance=clamp_importance(phrase.importance, default=record_importance),
                    repetitions=max(0, phrase.repetitions or 0),
                    source_record_id=record.id,
                )
            )
    return candidates


def prioritize(
    candidates: list[ReviewCandidate],
    rng: random.Random,
    shuffle_probability: float = 0.3,
) -> list[ReviewCandidate]:
    """Order candidates by importance level, shuffling some levels in place."""
    ordered = sorted(candidates, key=lambda c: (-c.importance, c.repetitions))

    result: list[ReviewCandidate] = []
    for _, group_iter in groupby(ordered, key=lambda c: c.importance):
        group = sorted(group_iter, key=lambda c: c.repetitions)
        if len(group) > 1 and rng.random() < shuffle_probability:
            # Fisher-Yates
            for i in range(len(group) - 1, 0, -1):
                j = rng.randint(0, i)
                group[i], group[j] = group[j], group[i]
        result.extend(group)
    return result


class ReviewSelector:
    """Select stored phrases for a review challenge."""

    def __init__(
        self,
        store: ReviewStore,
        rng: Optional[random.Random] = None,
        config: Optional[ChallengeConfig] = None,
    ):
        self.store = store
        self.rng = rng or random.Random()
        self.config = config or ChallengeConfig()

    async def select_review_candidates(self, user_id: str, limit: int) -> list[ReviewCandidate]:
        """
        Return at most ``limit`` candidates in drill order.

        A store failure yields an empty list: a missed review is not fatal to
        the caller.
        """
        if limit <= 0:
            return []
        try:
            records = await self.store.fetch_recent_feedback(user_id, self.config.feedback_window)
        except Exception as exc:  # Intentionally broad - an empty review is the recovery
            logger.error("Error getting review items for user {}: {}", user_id, exc)
            return []

        candidates = flatten_candidates(records)
        if not candidates:
            logger.debug("No review phrases stored for user {}", user_id)
            return []

        selected = prioritize(candidates, self.rng, self.config.shuffle_probability)[:limit]
        logger.debug(
            "Selected {} of {} review phrases for user {}",
            len(selected),
            len(candidates),
            user_id,
        )
        return selected


__all__ = ["ReviewSelector", "flatten_candidates", "prioritize"]
