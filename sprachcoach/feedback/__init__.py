"""Feedback ingestion: phrase extraction and storage."""

from sprachcoach.feedback.extractor import FeedbackRecorder, extract_phrases

__all__ = ["FeedbackRecorder", "extract_phrases"]
