"""
Challenge Dispatcher.

Composes one automated challenge for a user and records that it was sent:
- Coin flip between a review of stored phrases and a general practice exercise
- Review falls back to practice when no phrases are stored
- Practice falls back to a fixed exercise when generation fails
- The delivery log entry is written after the send, with the path actually taken
"""
from __future__ import annotations

import random
from collections.abc import Sequence
from typing import Optional

from loguru import logger

from sprachcoach.challenges.messages import (
    render_fallback_challenge,
    render_practice_challenge,
    render_review_challenge,
)
from sprachcoach.core.clock import Clock, SystemClock, current_week
from sprachcoach.core.collaborators import ExerciseGenerator, Notifier
from sprachcoach.core.config import ChallengeConfig
from sprachcoach.core.exceptions import DispatchFailure
from sprachcoach.core.models import ChallengeDeliveryLogEntry, ChallengeType, ReviewCandidate
from sprachcoach.review.selector import ReviewSelector
from sprachcoach.store.base import ReviewStore

REVIEW_PROBABILITY = 0.5


class ChallengeDispatcher:
    """Send one automated challenge and log it."""

    def __init__(
        self,
        store: ReviewStore,
        selector: ReviewSelector,
        generator: ExerciseGenerator,
        notifier: Notifier,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        config: Optional[ChallengeConfig] = None,
    ):
        self.store = store
        self.selector = selector
        self.generator = generator
        self.notifier = notifier
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.config = config or ChallengeConfig()

    async def dispatch(self, user_id: str) -> ChallengeType:
        """
        Compose, send and log one challenge.

        Generation and store failures are absorbed here. Only a failed send
        escapes, as DispatchFailure, so the scheduler can retry later.

        Returns:
            The challenge type that was actually sent.
        """
        logger.info("Sending automated challenge to user {}", user_id)

        candidates: list[ReviewCandidate] = []
        if self.rng.random() < REVIEW_PROBABILITY:
            candidates = await self.selector.select_review_candidates(
                user_id, self.config.review_limit
            )
            if not candidates:
                logger.info("No review phrases for user {}, sending practice instead", user_id)

        if candidates:
            challenge_type = ChallengeType.REVIEW
            message = render_review_challenge(candidates)
        else:
            challenge_type = ChallengeType.PRACTICE
            message = await self._practice_message(user_id)

        await self._send(user_id, message)
        logger.info("Sent {} challenge to user {}", challenge_type.value, user_id)

        if candidates:
            await self._mark_practiced(user_id, candidates)
        await self._log_delivery(user_id, challenge_type)
        return challenge_type

    async def _practice_message(self, user_id: str) -> str:
        try:
            exercise = await self.generator.general_practice_prompt(user_id)
        except Exception as exc:  # Intentionally broad - any generator error uses the fixed exercise
            logger.warning("Practice generation failed for user {}: {}", user_id, exc)
            return render_fallback_challenge()
        return render_practice_challenge(exercise)

    async def _send(self, user_id: str, message: str) -> None:
        try:
            await self.notifier.send(user_id, message)
        except DispatchFailure:
            raise
        except Exception as exc:
            raise DispatchFailure(user_id, str(exc)) from exc

    async def _mark_practiced(self, user_id: str, candidates: Sequence[ReviewCandidate]) -> None:
        for item in candidates:
            try:
                updated = await self.store.increment_phrase_repetition(user_id, item.phrase_key)
            except Exception as exc:  # Intentionally broad - counters are best effort
                logger.error("Error updating practice counter for {}: {}", item.phrase_key, exc)
                continue
            if updated:
                logger.debug("Incremented practice counter for phrase: {}", item.original)

    async def _log_delivery(self, user_id: str, challenge_type: ChallengeType) -> None:
        now = self.clock.now()
        entry = ChallengeDeliveryLogEntry(
            user_id=user_id,
            type=challenge_type,
            week_number=current_week(now),
            timestamp=now,
        )
        try:
            await self.store.append_delivery_log(entry)
        except Exception as exc:  # Intentionally broad - a missing log entry only loosens the cap
            logger.error("Error logging challenge for user {}: {}", user_id, exc)
            return
        logger.info("Logged {} challenge for user {}", challenge_type.value, user_id)
