"""Interfaces for the text-generation and delivery collaborators."""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from sprachcoach.core.models import ReviewCandidate


class ExerciseGenerator(ABC):
    """Produces exercise text; implementations raise GenerationFailure."""

    @abstractmethod
    async def general_practice_prompt(self, user_id: str) -> str:
        """Create a general practice exercise based on the user's recent feedback."""

    @abstractmethod
    async def review_exercise(self, candidates: Sequence[ReviewCandidate]) -> str:
        """Create an exercise that works the given phrases into a short scenario."""


class Notifier(ABC):
    """Delivers rendered challenge text; implementations raise DispatchFailure."""

    @abstractmethod
    async def send(self, user_id: str, text: str) -> None:
        """Send ``text`` to ``user_id``."""
