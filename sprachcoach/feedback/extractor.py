"""
Phrase extraction from coach feedback.

The coach answers in a fixed Markdown shape:

    **Vorschlag 1: Titel**
    * **Statt:** "original phrase"
    * **Besser:** "improved phrase"
    * **Warum:** one-sentence explanation

Each Statt/Besser pair becomes an improvement phrase. Pronunciation feedback
turns every quoted word into a pronunciation phrase. The detected categories
are stored with the record; the first one is its primary category.
"""
from __future__ import annotations

import re
from typing import Optional

from loguru import logger

from sprachcoach.core.models import (
    DEFAULT_IMPORTANCE,
    FeedbackRecord,
    FeedbackSource,
    Phrase,
    PhraseCategory,
)
from sprachcoach.store.base import ReviewStore

STATT_PATTERN = re.compile(r"\*\*Statt:\*\*\s*[\"']([^\"']+)[\"']")
BESSER_PATTERN = re.compile(r"\*\*Besser:\*\*\s*[\"']([^\"']+)[\"']")
QUOTED_PATTERN = re.compile(r"[\"']([^\"']+)[\"']")

PRONUNCIATION_MARKERS = ("Aussprache", "pronunciation")
GRAMMAR_MARKERS = ("Grammatik", "grammar")
MIN_PRONUNCIATION_WORD_LENGTH = 3


def extract_phrases(feedback: str) -> tuple[list[PhraseCategory], list[Phrase]]:
    """Return (categories, phrases) found in a feedback text."""
    categories: list[PhraseCategory] = []
    phrases: list[Phrase] = []

    if "Statt:" in feedback and "Besser:" in feedback:
        categories.append(PhraseCategory.IMPROVEMENT)
        originals = STATT_PATTERN.findall(feedback)
        improvements = BESSER_PATTERN.findall(feedback)
        for index, original in enumerate(originals):
            improved = improvements[index] if index < len(improvements) else ""
            original, improved = original.strip(), improved.strip()
            if original and improved and original != improved:
                phrases.append(
                    Phrase(
                        original=original,
                        improved=improved,
                        category=PhraseCategory.IMPROVEMENT,
                        importance=DEFAULT_IMPORTANCE,
                    )
                )

    if any(marker in feedback for marker in PRONUNCIATION_MARKERS):
        categories.append(PhraseCategory.PRONUNCIATION)
        for word in QUOTED_PATTERN.findall(feedback):
            word = word.strip()
            if len(word) >= MIN_PRONUNCIATION_WORD_LENGTH:
                phrases.append(
                    Phrase(
                        original=word,
                        improved=word,
                        category=PhraseCategory.PRONUNCIATION,
                        importance=DEFAULT_IMPORTANCE,
                    )
                )

    if any(marker in feedback for marker in GRAMMAR_MARKERS):
        categories.append(PhraseCategory.GRAMMAR)

    if not categories:
        categories.append(PhraseCategory.GENERAL)

    return categories, phrases


class FeedbackRecorder:
    """Turn coach feedback into a stored FeedbackRecord."""

    def __init__(self, store: ReviewStore):
        self.store = store

    async def record(
        self,
        user_id: str,
        original_text: Optional[str],
        feedback: str,
        source: FeedbackSource = FeedbackSource.TEXT,
    ) -> Optional[FeedbackRecord]:
        """
        Extract phrases from ``feedback`` and persist them.

        Returns the stored record, or None if writing failed (logged, not raised).
        """
        categories, phrases = extract_phrases(feedback)
        record = FeedbackRecord(
            user_id=user_id,
            full_feedback=feedback,
            phrases=phrases,
            categories=categories,
            original_text=original_text or "N/A (voice)",
            source=source,
        )
        try:
            stored = await self.store.add_feedback(record)
        except Exception as exc:  # Intentionally broad - feedback was already delivered
            logger.error("Failed to write feedback for user {}: {}", user_id, exc)
            return None
        logger.info(
            "Feedback for user {} logged with {} phrases and categories: {}",
            user_id,
            len(phrases),
            ", ".join(c.value for c in categories),
        )
        return stored
