"""Database models and session management."""

from sprachcoach.db.database import (
    build_engine,
    build_session_factory,
    get_engine,
    get_session_factory,
    init_db,
    session_scope,
)
from sprachcoach.db.models import (
    Base,
    ChallengeDeliveryRow,
    ChallengeSubscriptionRow,
    FeedbackPhraseRow,
    FeedbackRecordRow,
)

__all__ = [
    "Base",
    "ChallengeDeliveryRow",
    "ChallengeSubscriptionRow",
    "FeedbackPhraseRow",
    "FeedbackRecordRow",
    "build_engine",
    "build_session_factory",
    "get_engine",
    "get_session_factory",
    "init_db",
    "session_scope",
]
