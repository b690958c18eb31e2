"""Dependency injection container for CLI commands."""
from __future__ import annotations

import random
from functools import partial
from typing import Optional

from config import Settings, get_settings
from sprachcoach.challenges import (
    ChallengeDispatcher,
    ChallengeScheduler,
    EligibilityGate,
    SubscriptionService,
    is_subscribed,
)
from sprachcoach.core.clock import SystemClock
from sprachcoach.core.collaborators import Notifier
from sprachcoach.core.config import ChallengeConfig
from sprachcoach.feedback import FeedbackRecorder
from sprachcoach.integrations import ConsoleNotifier, GeminiGenerator, TelegramNotifier
from sprachcoach.review import ExerciseService, ReviewSelector
from sprachcoach.store import ReviewStore, SqlReviewStore


class CoachContext:
    """
    Wires the challenge engine from settings.

    Lazily initializes services so commands that only touch the database do
    not build HTTP clients.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        dry_run: bool = False,
        store: Optional[ReviewStore] = None,
    ):
        self.settings = settings or get_settings()
        self.dry_run = dry_run
        self.config = ChallengeConfig.from_settings(self.settings)
        self.clock = SystemClock()
        self.rng = random.Random()
        self._store = store
        self._generator: Optional[GeminiGenerator] = None
        self._notifier: Optional[Notifier] = None
        self._selector: Optional[ReviewSelector] = None
        self._scheduler: Optional[ChallengeScheduler] = None
        self._subscriptions: Optional[SubscriptionService] = None

    @property
    def store(self) -> ReviewStore:
        if self._store is None:
            self._store = SqlReviewStore()
        return self._store

    @property
    def generator(self) -> GeminiGenerator:
        if self._generator is None:
            self._generator = GeminiGenerator(
                self.store,
                api_key=self.settings.gemini_api_key,
                model=self.settings.gemini_model,
                base_url=self.settings.gemini_api_url,
                timeout=self.settings.http_timeout_seconds,
            )
        return self._generator

    @property
    def notifier(self) -> Notifier:
        if self._notifier is None:
            if self.dry_run or not self.settings.has_telegram_configured():
                self._notifier = ConsoleNotifier()
            else:
                self._notifier = TelegramNotifier(
                    self.settings.telegram_bot_token,
                    base_url=self.settings.telegram_api_url,
                    timeout=self.settings.http_timeout_seconds,
                )
        return self._notifier

    @property
    def selector(self) -> ReviewSelector:
        if self._selector is None:
            self._selector = ReviewSelector(self.store, rng=self.rng, config=self.config)
        return self._selector

    @property
    def scheduler(self) -> ChallengeScheduler:
        if self._scheduler is None:
            gate = EligibilityGate(self.store, clock=self.clock, config=self.config)
            dispatcher = ChallengeDispatcher(
                self.store,
                self.selector,
                self.generator,
                self.notifier,
                clock=self.clock,
                rng=self.rng,
                config=self.config,
            )
            self._scheduler = ChallengeScheduler(
                gate,
                dispatcher,
                clock=self.clock,
                rng=self.rng,
                config=self.config,
                membership=partial(is_subscribed, self.store),
            )
        return self._scheduler

    @property
    def subscriptions(self) -> SubscriptionService:
        if self._subscriptions is None:
            self._subscriptions = SubscriptionService(self.store, self.scheduler)
        return self._subscriptions

    @property
    def exercises(self) -> ExerciseService:
        return ExerciseService(
            self.store, self.selector, self.generator, limit=self.settings.review_exercise_limit
        )

    @property
    def recorder(self) -> FeedbackRecorder:
        return FeedbackRecorder(self.store)

    async def aclose(self) -> None:
        if self._scheduler is not None:
            await self._scheduler.shutdown()
        if self._generator is not None:
            await self._generator.aclose()
        if isinstance(self._notifier, TelegramNotifier):
            await self._notifier.aclose()
