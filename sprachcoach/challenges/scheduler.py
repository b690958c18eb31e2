"""
Per-User Challenge Scheduler.

Keeps one timer per opted-in user and runs the fire sequence when it expires:

    INACTIVE --add_user--> SCHEDULED --timer--> FIRING
    FIRING --sent or capped--> SCHEDULED   (next fire in 2-4 days)
    FIRING --error--> RETRYING              (next fire in 1 hour)
    RETRYING --timer--> FIRING
    FIRING --no longer subscribed--> INACTIVE
    any --remove_user--> INACTIVE
    any --stop--> PAUSED --start--> SCHEDULED

Timers are asyncio tasks that await an injectable sleep coroutine, so tests can
fast-forward. A timer re-arms itself only after its own handling finished and
only while its entry still owns it, which keeps at most one pending timer per
user.
"""
from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from loguru import logger

from sprachcoach.challenges.dispatcher import ChallengeDispatcher
from sprachcoach.challenges.eligibility import EligibilityGate
from sprachcoach.core.clock import Clock, SystemClock
from sprachcoach.core.config import SECONDS_PER_DAY, ChallengeConfig
from sprachcoach.core.models import ChallengeType

Sleep = Callable[[float], Awaitable[None]]
Membership = Callable[[str], Awaitable[bool]]


class SchedulerState(str, Enum):
    INACTIVE = "inactive"
    SCHEDULED = "scheduled"
    FIRING = "firing"
    RETRYING = "retrying"
    PAUSED = "paused"


@dataclass
class SchedulerEntry:
    """In-memory schedule of one active user."""
    user_id: str
    state: SchedulerState = SchedulerState.PAUSED
    handle: Optional[asyncio.Task] = None
    next_fire_at: Optional[datetime] = None
    failures: int = 0
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def armed(self) -> bool:
        return (
            self.handle is not None
            and not self.handle.done()
            and self.state in (SchedulerState.SCHEDULED, SchedulerState.RETRYING)
        )


@dataclass(frozen=True)
class FireOutcome:
    """Result of one fire sequence and the transition it asks for."""
    state: SchedulerState
    delay: Optional[float]
    sent: Optional[ChallengeType] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class SchedulerStatus:
    active_users: list[str]
    scheduled_challenges: int
    total_users: int


def next_window_time(
    now: datetime,
    rng: random.Random,
    start_hour: int = 9,
    end_hour: int = 20,
) -> datetime:
    """Random minute between ``start_hour`` and ``end_hour`` (inclusive), today or tomorrow."""
    hour = rng.randint(start_hour, end_hour)
    minute = rng.randrange(60)
    fire_at = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if fire_at <= now:
        fire_at += timedelta(days=1)
    return fire_at


class ChallengeScheduler:
    """
    Owns the active-user registry and one timer per active user.

    Public surface: add_user, remove_user, restore, start, stop, get_status.
    Registry mutations are plain synchronous code on the event loop; the fire
    sequence of a user is additionally serialized by a per-user lock.
    """

    def __init__(
        self,
        gate: EligibilityGate,
        dispatcher: ChallengeDispatcher,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        config: Optional[ChallengeConfig] = None,
        sleep: Optional[Sleep] = None,
        membership: Optional[Membership] = None,
    ):
        self.gate = gate
        self.dispatcher = dispatcher
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.config = config or ChallengeConfig()
        self._sleep = sleep or asyncio.sleep
        # Checked before each fire; a False answer deactivates the user
        self._membership = membership
        self._entries: dict[str, SchedulerEntry] = {}

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def add_user(self, user_id: str) -> bool:
        """Activate automated challenges for a user. Returns False if already active."""
        if user_id in self._entries:
            return False
        entry = SchedulerEntry(user_id=user_id)
        self._entries[user_id] = entry
        logger.info("Added user {} to challenge scheduler", user_id)
        self._arm(entry, self.initial_delay(), SchedulerState.SCHEDULED)
        return True

    def remove_user(self, user_id: str) -> bool:
        """Deactivate a user and cancel their pending timer. Returns False if inactive."""
        entry = self._entries.pop(user_id, None)
        if entry is None:
            return False
        self._cancel(entry)
        entry.state = SchedulerState.INACTIVE
        logger.info("Removed user {} from challenge scheduler", user_id)
        return True

    def restore(self, user_ids: Iterable[str]) -> int:
        """Register users without arming timers; ``start`` arms them."""
        restored = 0
        for user_id in user_ids:
            if user_id not in self._entries:
                self._entries[user_id] = SchedulerEntry(user_id=user_id)
                restored += 1
        if restored:
            logger.info("Restored {} users into challenge scheduler", restored)
        return restored

    def is_active(self, user_id: str) -> bool:
        return user_id in self._entries

    def next_fire_at(self, user_id: str) -> Optional[datetime]:
        entry = self._entries.get(user_id)
        return entry.next_fire_at if entry is not None and entry.armed else None

    def state_of(self, user_id: str) -> SchedulerState:
        entry = self._entries.get(user_id)
        return entry.state if entry is not None else SchedulerState.INACTIVE

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Arm an initial timer for every active user that has none."""
        logger.info("Starting challenge scheduler...")
        for entry in self._entries.values():
            if entry.handle is None or entry.handle.done():
                self._arm(entry, self.initial_delay(), SchedulerState.SCHEDULED)

    def stop(self) -> None:
        """Cancel every pending timer, keeping the active users for a later start."""
        logger.info("Stopping challenge scheduler...")
        for entry in self._entries.values():
            self._cancel(entry)
            entry.state = SchedulerState.PAUSED
            entry.next_fire_at = None

    async def shutdown(self) -> None:
        """Stop and wait until every cancelled timer task has finished."""
        handles = [e.handle for e in self._entries.values() if e.handle is not None]
        self.stop()
        if handles:
            await asyncio.gather(*handles, return_exceptions=True)

    def get_status(self) -> SchedulerStatus:
        return SchedulerStatus(
            active_users=sorted(self._entries),
            scheduled_challenges=sum(1 for e in self._entries.values() if e.armed),
            total_users=len(self._entries),
        )

    # ------------------------------------------------------------------
    # Delays
    # ------------------------------------------------------------------

    def initial_delay(self) -> float:
        """Seconds until a random time inside today's (or tomorrow's) challenge window."""
        now = self.clock.now()
        fire_at = next_window_time(
            now, self.rng, self.config.window_start_hour, self.config.window_end_hour
        )
        return (fire_at - now).total_seconds()

    def next_interval(self) -> float:
        """Uniform delay in [min_interval_days, max_interval_days) days."""
        span = self.config.max_interval_days - self.config.min_interval_days
        days = self.config.min_interval_days + self.rng.random() * span
        return days * SECONDS_PER_DAY

    # ------------------------------------------------------------------
    # Fire sequence
    # ------------------------------------------------------------------

    async def fire(self, user_id: str) -> Optional[FireOutcome]:
        """
        Run the fire sequence for a user now and arm the follow-up timer.

        Returns None if the user is not active (or was removed meanwhile
        before the sequence started).
        """
        entry = self._entries.get(user_id)
        if entry is None:
            return None
        async with entry.lock:
            if self._entries.get(user_id) is not entry:
                return None
            entry.state = SchedulerState.FIRING
            outcome = await self._run_sequence(entry)
            if self._entries.get(user_id) is not entry:
                logger.debug("User {} was removed during firing, not rescheduling", user_id)
                return outcome
            self._transition(entry, outcome)
            return outcome

    async def _run_sequence(self, entry: SchedulerEntry) -> FireOutcome:
        user_id = entry.user_id
        try:
            if self._membership is not None and not await self._membership(user_id):
                return FireOutcome(SchedulerState.INACTIVE, None)
            sent: Optional[ChallengeType] = None
            if await self.gate.may_deliver_challenge(user_id):
                sent = await self.dispatcher.dispatch(user_id)
                logger.info("Sent automated challenge to user {}", user_id)
            else:
                logger.info("User {} has already received max challenges this week", user_id)
        except Exception as exc:  # Intentionally broad - every failure becomes a retry
            entry.failures += 1
            logger.error(
                "Error sending challenge to user {} (failure {}): {}",
                user_id,
                entry.failures,
                exc,
            )
            limit = self.config.max_retry_attempts
            if limit is not None and entry.failures > limit:
                return FireOutcome(SchedulerState.INACTIVE, None, error=str(exc))
            return FireOutcome(
                SchedulerState.RETRYING,
                self.config.retry_delay(entry.failures),
                error=str(exc),
            )

        entry.failures = 0
        return FireOutcome(SchedulerState.SCHEDULED, self.next_interval(), sent=sent)

    def _transition(self, entry: SchedulerEntry, outcome: FireOutcome) -> None:
        if outcome.state is SchedulerState.INACTIVE:
            self._entries.pop(entry.user_id, None)
            self._cancel(entry)
            entry.state = SchedulerState.INACTIVE
            if outcome.error is None:
                logger.info("User {} is no longer subscribed, removed from challenge scheduler", entry.user_id)
            else:
                logger.error(
                    "Giving up on user {} after {} consecutive failures",
                    entry.user_id,
                    entry.failures,
                )
            return
        self._arm(entry, outcome.delay, outcome.state)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _arm(self, entry: SchedulerEntry, delay: float, state: SchedulerState) -> None:
        self._cancel(entry)
        delay = max(0.0, delay)
        entry.state = state
        entry.next_fire_at = self.clock.now() + timedelta(seconds=delay)
        entry.handle = asyncio.get_running_loop().create_task(
            self._timer(entry, delay), name=f"challenge-{entry.user_id}"
        )
        logger.info(
            "Scheduling challenge for user {} at {} (in {} minutes)",
            entry.user_id,
            entry.next_fire_at.strftime("%Y-%m-%d %H:%M"),
            round(delay / 60),
        )

    def _cancel(self, entry: SchedulerEntry) -> None:
        handle = entry.handle
        entry.handle = None
        # A firing timer re-arms from inside its own task; never cancel ourselves.
        if handle is not None and handle is not asyncio.current_task() and not handle.done():
            handle.cancel()

    async def _timer(self, entry: SchedulerEntry, delay: float) -> None:
        await self._sleep(delay)
        if self._entries.get(entry.user_id) is not entry or entry.handle is not asyncio.current_task():
            return
        await self.fire(entry.user_id)
