"""
Unit tests for keeping a running scheduler in step with the subscription table.

Subscriptions are changed directly in the store, the way `coach subscribe` and
`coach unsubscribe` do from another process.
"""
import asyncio
import random
from functools import partial
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from sprachcoach.challenges.scheduler import ChallengeScheduler, SchedulerState
from sprachcoach.challenges.subscriptions import SubscriptionService, is_subscribed
from sprachcoach.core.exceptions import TransientStoreError
from sprachcoach.core.models import ChallengeType


def _challenge_tasks() -> list[asyncio.Task]:
    return [
        t for t in asyncio.all_tasks()
        if t.get_name().startswith("challenge-") and not t.done()
    ]


@pytest.fixture
def dispatcher():
    mock = AsyncMock()
    mock.dispatch.return_value = ChallengeType.PRACTICE
    return mock


@pytest_asyncio.fixture
async def make_scheduler(store, dispatcher, clock, sleep_factory):
    """Schedulers that consult the store before firing; shut down after the test."""
    created = []

    def factory(release: int = 0):
        gate = AsyncMock()
        gate.may_deliver_challenge.return_value = True
        scheduler = ChallengeScheduler(
            gate,
            dispatcher,
            clock=clock,
            rng=random.Random(5),
            sleep=sleep_factory(release=release),
            membership=partial(is_subscribed, store),
        )
        created.append(scheduler)
        return scheduler

    yield factory

    for scheduler in created:
        await scheduler.shutdown()


class TestIsSubscribed:
    """Tests for is_subscribed."""

    @pytest.mark.asyncio
    async def test_reflects_store_flag(self, store):
        await store.set_subscribed("u1", True)
        await store.set_subscribed("u2", False)

        assert await is_subscribed(store, "u1") is True
        assert await is_subscribed(store, "u2") is False
        assert await is_subscribed(store, "unknown") is False

    @pytest.mark.asyncio
    async def test_read_failure_keeps_user(self):
        store = AsyncMock()
        store.list_subscribers.side_effect = TransientStoreError("down")

        assert await is_subscribed(store, "u1") is True


class TestFireChecksSubscription:
    """The scheduler drops users who opted out before their timer expired."""

    @pytest.mark.asyncio
    async def test_unsubscribe_in_store_stops_next_fire(
        self, store, make_scheduler, dispatcher, settle_tasks
    ):
        await store.set_subscribed("u1", True)
        scheduler = make_scheduler(release=1)
        scheduler.add_user("u1")

        await store.set_subscribed("u1", False)
        await settle_tasks()

        dispatcher.dispatch.assert_not_awaited()
        assert scheduler.is_active("u1") is False
        assert scheduler.state_of("u1") is SchedulerState.INACTIVE
        assert _challenge_tasks() == []

    @pytest.mark.asyncio
    async def test_subscribed_user_still_fires(
        self, store, make_scheduler, dispatcher, settle_tasks
    ):
        await store.set_subscribed("u1", True)
        scheduler = make_scheduler(release=1)
        scheduler.add_user("u1")

        await settle_tasks()

        dispatcher.dispatch.assert_awaited_once_with("u1")
        assert scheduler.state_of("u1") is SchedulerState.SCHEDULED


class TestSync:
    """Tests for SubscriptionService.sync and watch."""

    @pytest.mark.asyncio
    async def test_unsubscribe_cancels_pending_timer(
        self, store, make_scheduler, dispatcher, settle_tasks
    ):
        service = SubscriptionService(store, make_scheduler())
        await service.subscribe("u1")
        await settle_tasks()
        assert len(_challenge_tasks()) == 1

        await store.set_subscribed("u1", False)
        assert await service.sync() == (0, 1)
        await settle_tasks()

        assert _challenge_tasks() == []
        assert service.scheduler.get_status().active_users == []
        dispatcher.dispatch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_new_subscriber_gets_a_timer(self, store, make_scheduler, settle_tasks):
        scheduler = make_scheduler()
        service = SubscriptionService(store, scheduler)

        await store.set_subscribed("u2", True)
        assert await service.sync() == (1, 0)
        await settle_tasks()

        assert scheduler.is_active("u2")
        assert scheduler.get_status().scheduled_challenges == 1

    @pytest.mark.asyncio
    async def test_unchanged_subscriptions_are_left_alone(self, store, make_scheduler, settle_tasks):
        scheduler = make_scheduler()
        service = SubscriptionService(store, scheduler)
        await service.subscribe("u1")
        await settle_tasks()

        assert await service.sync() == (0, 0)
        await settle_tasks()

        assert len(_challenge_tasks()) == 1

    @pytest.mark.asyncio
    async def test_read_failure_changes_nothing(self):
        store = AsyncMock()
        store.list_subscribers.side_effect = TransientStoreError("down")
        scheduler = MagicMock()

        assert await SubscriptionService(store, scheduler).sync() == (0, 0)
        scheduler.add_user.assert_not_called()
        scheduler.remove_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_watch_syncs_every_interval(
        self, store, make_scheduler, sleep_factory, settle_tasks
    ):
        scheduler = make_scheduler()
        service = SubscriptionService(store, scheduler)
        await store.set_subscribed("u3", True)
        sleep = sleep_factory(release=1)

        watcher = asyncio.create_task(service.watch(60, sleep=sleep))
        await settle_tasks()
        watcher.cancel()
        await asyncio.gather(watcher, return_exceptions=True)

        assert sleep.delays == [60, 60]
        assert scheduler.is_active("u3")
