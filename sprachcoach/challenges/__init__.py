"""
Automated challenge delivery.

Modules:
- eligibility: weekly cap per user
- dispatcher: compose, send and log one challenge
- scheduler: per-user timers and retry state machine
- subscriptions: persisted opt-in wired to the scheduler
"""
from sprachcoach.challenges.dispatcher import ChallengeDispatcher
from sprachcoach.challenges.eligibility import EligibilityGate
from sprachcoach.challenges.scheduler import (
    ChallengeScheduler,
    FireOutcome,
    SchedulerState,
    SchedulerStatus,
)
from sprachcoach.challenges.subscriptions import SubscriptionService, is_subscribed

__all__ = [
    "ChallengeDispatcher",
    "ChallengeScheduler",
    "EligibilityGate",
    "FireOutcome",
    "SchedulerState",
    "SchedulerStatus",
    "SubscriptionService",
    "is_subscribed",
]
