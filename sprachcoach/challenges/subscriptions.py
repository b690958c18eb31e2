"""
Persisted opt-in for automated challenges.

The subscription table is the source of truth. A running scheduler follows it
in two ways:
- ``SubscriptionService.watch`` periodically reconciles the active users with
  the table (new subscribers get a timer, unsubscribed users lose theirs)
- ``is_subscribed`` is consulted by the scheduler right before a challenge
  fires, so an opt-out takes effect even between two reconciliations
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger

from sprachcoach.challenges.scheduler import ChallengeScheduler
from sprachcoach.store.base import ReviewStore


async def is_subscribed(store: ReviewStore, user_id: str) -> bool:
    """True if ``user_id`` is opted in. Fails open on a read error."""
    try:
        return user_id in await store.list_subscribers()
    except Exception as exc:  # Intentionally broad - a read error must not drop a user
        logger.warning("Could not check subscription of user {}: {}", user_id, exc)
        return True


class SubscriptionService:
    """Keeps the subscription table and the live scheduler in step."""

    def __init__(self, store: ReviewStore, scheduler: ChallengeScheduler):
        self.store = store
        self.scheduler = scheduler

    async def subscribe(self, user_id: str) -> bool:
        """Opt a user in. Returns False if they were already active."""
        try:
            await self.store.set_subscribed(user_id, True)
        except Exception as exc:  # Intentionally broad - the live schedule still applies
            logger.warning("Could not persist subscription for user {}: {}", user_id, exc)
        return self.scheduler.add_user(user_id)

    async def unsubscribe(self, user_id: str) -> bool:
        """Opt a user out. Returns False if they were not active."""
        try:
            await self.store.set_subscribed(user_id, False)
        except Exception as exc:  # Intentionally broad - the live schedule still applies
            logger.warning("Could not persist unsubscription for user {}: {}", user_id, exc)
        return self.scheduler.remove_user(user_id)

    async def restore(self) -> int:
        """Load persisted subscribers into the scheduler (call before start)."""
        try:
            user_ids = await self.store.list_subscribers()
        except Exception as exc:  # Intentionally broad - start with an empty schedule
            logger.error("Could not load challenge subscribers: {}", exc)
            return 0
        return self.scheduler.restore(user_ids)

    async def sync(self) -> tuple[int, int]:
        """
        Reconcile the running scheduler with the subscription table.

        Returns:
            (added, removed) user counts. A read error changes nothing.
        """
        try:
            subscribed = set(await self.store.list_subscribers())
        except Exception as exc:  # Intentionally broad - keep the current schedule
            logger.warning("Could not reload challenge subscribers: {}", exc)
            return 0, 0

        added = sum(1 for user_id in sorted(subscribed) if self.scheduler.add_user(user_id))
        removed = sum(
            1
            for user_id in self.scheduler.get_status().active_users
            if user_id not in subscribed and self.scheduler.remove_user(user_id)
        )
        if added or removed:
            logger.info("Subscriptions synced: {} added, {} removed", added, removed)
        return added, removed

    async def watch(
        self,
        interval: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Run ``sync`` every ``interval`` seconds until cancelled."""
        while True:
            await sleep(interval)
            await self.sync()
