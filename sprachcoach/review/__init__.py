"""
Review of stored phrases.

Modules:
- selector: prioritized, deduplicated selection of phrases to drill
- exercises: manual review and practice exercises
"""
from sprachcoach.review.exercises import ExerciseService
from sprachcoach.review.selector import ReviewSelector, flatten_candidates, prioritize

__all__ = ["ExerciseService", "ReviewSelector", "flatten_candidates", "prioritize"]
