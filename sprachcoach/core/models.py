"""
Domain models for feedback phrases, review candidates and challenge logs.

Everything here is a plain dataclass; persistence layers convert to and from
these types so the scheduling and selection code never sees ORM rows.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

DEFAULT_IMPORTANCE = 3
MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 5


class PhraseCategory(str, Enum):
    """Kind of correction a phrase represents."""

    IMPROVEMENT = "improvement"
    PRONUNCIATION = "pronunciation"
    GRAMMAR = "grammar"
    GENERAL = "general"

    @classmethod
    def parse(cls, value: str | None) -> "PhraseCategory":
        try:
            return cls(value) if value else cls.GENERAL
        except ValueError:
            return cls.GENERAL


class ChallengeType(str, Enum):
    """Which path an automated challenge took."""

    REVIEW = "review"
    PRACTICE = "practice"


class FeedbackSource(str, Enum):
    TEXT = "text"
    VOICE = "voice"


def make_phrase_key(original: str, improved: str) -> str:
    """Build the dedup key for an original/improved pair."""
    return f"{original}-{improved}"


def clamp_importance(value: int | None, default: int = DEFAULT_IMPORTANCE) -> int:
    if not value:
        return default
    return max(MIN_IMPORTANCE, min(MAX_IMPORTANCE, int(value)))


@dataclass
class Phrase:
    """A single original -> improved correction extracted from feedback."""

    original: str
    improved: str
    category: PhraseCategory = PhraseCategory.IMPROVEMENT
    importance: int | None = None
    repetitions: int = 0

    @property
    def key(self) -> str:
        return make_phrase_key(self.original, self.improved)

    def to_dict(self) -> dict:
        return {
            "original": self.original,
            "improved": self.improved,
            "type": self.category.value,
            "importance": self.importance,
            "repetitions": self.repetitions,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "Phrase":
        return cls(
            original=payload.get("original", ""),
            improved=payload.get("improved", ""),
            category=PhraseCategory.parse(payload.get("type") or payload.get("category")),
            importance=payload.get("importance"),
            repetitions=int(payload.get("repetitions") or 0),
        )


@dataclass
class FeedbackRecord:
    """One analyzed text or voice submission and the phrases found in it."""

    user_id: str
    full_feedback: str
    phrases: list[Phrase] = field(default_factory=list)
    categories: list[PhraseCategory] = field(default_factory=list)
    original_text: str | None = None
    source: FeedbackSource = FeedbackSource.TEXT
    importance: int = DEFAULT_IMPORTANCE
    created_at: datetime = field(default_factory=datetime.now)
    id: str | None = None

    @property
    def primary_category(self) -> PhraseCategory:
        return self.categories[0] if self.categories else PhraseCategory.GENERAL


@dataclass(frozen=True)
class ReviewCandidate:
    """Deduplicated, prioritized view of a phrase for one selection call."""

    phrase_key: str
    original: str
    improved: str
    category: PhraseCategory
    importance: int
    repetitions: int
    source_record_id: str | None = None


@dataclass(frozen=True)
class ChallengeDeliveryLogEntry:
    """Record of one automated challenge that was sent to a user."""

    user_id: str
    type: ChallengeType
    week_number: int
    timestamp: datetime
