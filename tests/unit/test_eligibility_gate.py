"""Unit tests for the weekly challenge cap."""
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from sprachcoach.challenges.eligibility import EligibilityGate
from sprachcoach.core.clock import current_week, format_week, week_of_year
from sprachcoach.core.config import ChallengeConfig
from sprachcoach.core.exceptions import ConfigurationError, TransientStoreError
from sprachcoach.core.models import ChallengeDeliveryLogEntry, ChallengeType


class TestCurrentWeek:
    """Tests for week_of_year, current_week and format_week."""

    def test_first_day_of_year_is_week_one(self):
        assert week_of_year(datetime(2025, 1, 1, 9, 30)) == 1
        assert current_week(datetime(2025, 1, 1, 9, 30)) == 202501

    def test_stable_from_sunday_to_saturday(self):
        sunday = datetime(2025, 3, 9, 0, 5)
        weeks = {current_week(sunday + timedelta(days=d, hours=h)) for d in range(7) for h in (0, 12, 23)}
        assert weeks == {202511}

    def test_increments_at_week_rollover(self):
        assert current_week(datetime(2025, 3, 15, 23, 59)) == 202511
        assert current_week(datetime(2025, 3, 16, 0, 0)) == 202512

    def test_monotonic_over_a_year(self):
        day = datetime(2025, 1, 1, 12)
        weeks = [week_of_year(day + timedelta(days=n)) for n in range(365)]
        assert weeks == sorted(weeks)
        assert all(b - a in (0, 1) for a, b in zip(weeks, weeks[1:]))

    def test_same_week_number_in_different_years_differs(self):
        last_year = datetime(2025, 3, 10, 8, 0)
        this_year = datetime(2026, 3, 10, 8, 0)

        assert week_of_year(last_year) == week_of_year(this_year) == 11
        assert current_week(last_year) != current_week(this_year)

    def test_never_decreases_across_year_boundaries(self):
        day = datetime(2024, 12, 1, 12)
        weeks = [current_week(day + timedelta(days=n)) for n in range(800)]

        assert weeks == sorted(weeks)
        assert current_week(datetime(2025, 12, 31, 23, 59)) < current_week(datetime(2026, 1, 1, 0, 0))

    def test_format_week(self):
        assert format_week(current_week(datetime(2025, 3, 10))) == "2025-W11"


async def _log(store, user_id: str, when: datetime, count: int) -> None:
    for _ in range(count):
        await store.append_delivery_log(
            ChallengeDeliveryLogEntry(
                user_id=user_id,
                type=ChallengeType.PRACTICE,
                week_number=current_week(when),
                timestamp=when,
            )
        )


class TestEligibilityGate:
    """Tests for EligibilityGate.may_deliver_challenge."""

    @pytest.mark.asyncio
    async def test_four_entries_this_week_blocks(self, store, clock):
        await _log(store, "u1", clock.now(), 4)
        gate = EligibilityGate(store, clock=clock)

        assert await gate.may_deliver_challenge("u1") is False

    @pytest.mark.asyncio
    async def test_three_entries_this_week_allows(self, store, clock):
        await _log(store, "u1", clock.now(), 3)
        gate = EligibilityGate(store, clock=clock)

        assert await gate.may_deliver_challenge("u1") is True

    @pytest.mark.asyncio
    async def test_last_week_entries_do_not_count(self, store, clock):
        await _log(store, "u1", clock.now() - timedelta(days=7), 6)
        gate = EligibilityGate(store, clock=clock)

        assert await gate.may_deliver_challenge("u1") is True

    @pytest.mark.asyncio
    async def test_other_users_do_not_count(self, store, clock):
        await _log(store, "someone-else", clock.now(), 5)
        gate = EligibilityGate(store, clock=clock)

        assert await gate.may_deliver_challenge("u1") is True

    @pytest.mark.asyncio
    async def test_cap_is_configurable(self, store, clock):
        await _log(store, "u1", clock.now(), 1)
        gate = EligibilityGate(store, clock=clock, config=ChallengeConfig(weekly_cap=1))

        assert await gate.may_deliver_challenge("u1") is False

    @pytest.mark.asyncio
    async def test_queries_current_week(self, clock):
        store = AsyncMock()
        store.count_delivery_log_for_week.return_value = 0
        gate = EligibilityGate(store, clock=clock)

        await gate.may_deliver_challenge("u1")

        store.count_delivery_log_for_week.assert_awaited_once_with("u1", current_week(clock.now()))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [TransientStoreError("timeout"), ConfigurationError("bad count")])
    async def test_read_failure_fails_open(self, clock, error):
        store = AsyncMock()
        store.count_delivery_log_for_week.side_effect = error
        gate = EligibilityGate(store, clock=clock)

        assert await gate.may_deliver_challenge("u1") is True

    @pytest.mark.asyncio
    async def test_same_week_last_year_does_not_count(self, store, clock_factory):
        await _log(store, "u1", datetime(2025, 3, 10, 10, 0), 4)
        gate = EligibilityGate(store, clock=clock_factory(datetime(2026, 3, 10, 10, 0)))

        assert await gate.may_deliver_challenge("u1") is True

    @pytest.mark.asyncio
    async def test_partial_weeks_around_new_year_count_separately(self, store, clock_factory):
        await _log(store, "u1", datetime(2025, 12, 30, 10, 0), 2)
        await _log(store, "u1", datetime(2026, 1, 2, 10, 0), 2)
        gate = EligibilityGate(store, clock=clock_factory(datetime(2026, 1, 2, 18, 0)))

        assert await gate.may_deliver_challenge("u1") is True
