"""Weekly cap on automated challenges."""
from __future__ import annotations

from typing import Optional

from loguru import logger

from sprachcoach.core.clock import Clock, SystemClock, current_week, format_week
from sprachcoach.core.config import ChallengeConfig
from sprachcoach.store.base import ReviewStore


class EligibilityGate:
    """Decide whether a user may receive another automated challenge this week."""

    def __init__(
        self,
        store: ReviewStore,
        clock: Optional[Clock] = None,
        config: Optional[ChallengeConfig] = None,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.config = config or ChallengeConfig()

    async def may_deliver_challenge(self, user_id: str) -> bool:
        """
        True while fewer than ``weekly_cap`` challenges were logged this week.

        Fails open: a read error allows the challenge.
        """
        week = current_week(self.clock.now())
        try:
            sent = await self.store.count_delivery_log_for_week(user_id, week)
        except Exception as exc:  # Intentionally broad - fail open on any read error
            logger.warning("Error checking challenge eligibility for user {}: {}", user_id, exc)
            return True

        logger.info("User {} has received {} challenges in week {}", user_id, sent, format_week(week))
        return sent < self.config.weekly_cap
