"""On-demand review and practice exercises (the /review and /practice commands)."""
from __future__ import annotations

from typing import Optional

from loguru import logger

from sprachcoach.challenges.messages import NO_REVIEW_PHRASES, REVIEW_EXERCISE_ERROR
from sprachcoach.core.collaborators import ExerciseGenerator
from sprachcoach.review.selector import ReviewSelector
from sprachcoach.store.base import ReviewStore

PRACTICE_EXERCISE_ERROR = "Sorry, there was an error generating a practice exercise."


class ExerciseService:
    """Generate exercises a user explicitly asked for."""

    def __init__(
        self,
        store: ReviewStore,
        selector: ReviewSelector,
        generator: ExerciseGenerator,
        limit: Optional[int] = None,
    ):
        self.store = store
        self.selector = selector
        self.generator = generator
        self.limit = limit if limit is not None else 3

    async def review_exercise(self, user_id: str) -> str:
        """Exercise built from the user's highest-priority stored phrases."""
        candidates = await self.selector.select_review_candidates(user_id, self.limit)
        if not candidates:
            return NO_REVIEW_PHRASES

        try:
            exercise = await self.generator.review_exercise(candidates)
        except Exception as exc:  # Intentionally broad - the user gets an apology instead
            logger.error("Error generating review exercise for user {}: {}", user_id, exc)
            return REVIEW_EXERCISE_ERROR

        for item in candidates:
            try:
                await self.store.increment_phrase_repetition(user_id, item.phrase_key)
            except Exception as exc:  # Intentionally broad - counters are best effort
                logger.error("Error updating practice counter for {}: {}", item.phrase_key, exc)
        return exercise

    async def practice_exercise(self, user_id: str) -> str:
        """General practice exercise based on recent feedback."""
        try:
            return await self.generator.general_practice_prompt(user_id)
        except Exception as exc:  # Intentionally broad - the user gets an apology instead
            logger.error("Error generating practice exercise for user {}: {}", user_id, exc)
            return PRACTICE_EXERCISE_ERROR
