"""Persistence capabilities for feedback, delivery logs and subscriptions."""

from sprachcoach.store.base import ReviewStore
from sprachcoach.store.memory import InMemoryReviewStore
from sprachcoach.store.sql import SqlReviewStore

__all__ = ["InMemoryReviewStore", "ReviewStore", "SqlReviewStore"]
