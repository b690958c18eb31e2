"""Domain types, errors and tuning shared by the challenge engine."""

from sprachcoach.core.clock import Clock, SystemClock, current_week, format_week, week_of_year
from sprachcoach.core.config import ChallengeConfig
from sprachcoach.core.exceptions import (
    CoachError,
    ConfigurationError,
    DispatchFailure,
    GenerationFailure,
    TransientStoreError,
)
from sprachcoach.core.models import (
    ChallengeDeliveryLogEntry,
    ChallengeType,
    FeedbackRecord,
    FeedbackSource,
    Phrase,
    PhraseCategory,
    ReviewCandidate,
    make_phrase_key,
)

__all__ = [
    "ChallengeConfig",
    "ChallengeDeliveryLogEntry",
    "ChallengeType",
    "Clock",
    "CoachError",
    "ConfigurationError",
    "DispatchFailure",
    "FeedbackRecord",
    "FeedbackSource",
    "GenerationFailure",
    "Phrase",
    "PhraseCategory",
    "ReviewCandidate",
    "SystemClock",
    "TransientStoreError",
    "current_week",
    "format_week",
    "make_phrase_key",
    "week_of_year",
]
