"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import asyncio
import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from sprachcoach.core.models import FeedbackRecord, Phrase, PhraseCategory  # noqa: E402
from sprachcoach.store.memory import InMemoryReviewStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (require database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FixedClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FakeSleep:
    """
    Stand-in for asyncio.sleep.

    Records every requested delay. The first ``release`` calls return at once
    (the timer "fires"); later calls block until the task is cancelled.
    """

    def __init__(self, release: int = 0):
        self.delays: list[float] = []
        self.release = release

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if len(self.delays) <= self.release:
            return
        await asyncio.Future()


async def settle(rounds: int = 50) -> None:
    """Let pending tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_record(
    user_id: str,
    phrases: list[tuple[str, str, int]],
    created_at: datetime,
    repetitions: int = 0,
    category: PhraseCategory = PhraseCategory.IMPROVEMENT,
) -> FeedbackRecord:
    return FeedbackRecord(
        user_id=user_id,
        full_feedback="**Statt:** ...",
        phrases=[
            Phrase(
                original=original,
                improved=improved,
                category=category,
                importance=importance,
                repetitions=repetitions,
            )
            for original, improved, importance in phrases
        ],
        categories=[category],
        created_at=created_at,
    )


@pytest.fixture
def clock():
    """Monday 2025-03-10, 08:00 local time."""
    return FixedClock(datetime(2025, 3, 10, 8, 0))


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def store():
    return InMemoryReviewStore()


@pytest.fixture
def sample_feedback():
    """Coach feedback in the format the text analysis prompt asks for."""
    return (
        "**Vorschlag 1: Präziser formulieren**\n"
        '* **Statt:** "Ich mache eine Präsentation"\n'
        '* **Besser:** "Ich halte eine Präsentation"\n'
        "* **Warum:** Kollokation mit halten.\n\n"
        "**Vorschlag 2: Förmlicher**\n"
        '* **Statt:** "Kannst du mir helfen"\n'
        '* **Besser:** "Könnten Sie mich unterstützen"\n'
        "* **Warum:** Geschäftlicher Kontext.\n"
    )


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def sleep_factory():
    return FakeSleep


@pytest.fixture
def settle_tasks():
    return settle


@pytest.fixture
def clock_factory():
    return FixedClock
