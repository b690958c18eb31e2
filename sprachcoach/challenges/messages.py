"""Rendered texts for automated challenges and manual exercises."""
from __future__ import annotations

from collections.abc import Sequence

from sprachcoach.core.models import ReviewCandidate

CHALLENGE_HEADER = "🎯 **Deine Herausforderung vom Sprachcoach**"

FALLBACK_PRACTICE_TASK = (
    "Beschreibe in 2-3 Sätzen, wie du ein neues Projekt in deinem Team vorstellen würdest."
)

NO_REVIEW_PHRASES = (
    "Keine Übungsphrasen gefunden. Sende mir zuerst einige Texte oder "
    "Sprachnachrichten für Feedback."
)

REVIEW_EXERCISE_ERROR = "Sorry, there was an error generating a review exercise."


def render_review_challenge(candidates: Sequence[ReviewCandidate]) -> str:
    lines = "\n\n".join(
        f"{index}. **{item.original}** → **{item.improved}**\n"
        f"   📂 {item.category.value} | ⭐ Wichtigkeit: {item.importance}/5"
        for index, item in enumerate(candidates, start=1)
    )
    return (
        f"{CHALLENGE_HEADER}\n\n"
        "**Übung mit deinen gespeicherten Phrasen:**\n\n"
        f"{lines}\n\n"
        "💡 **Deine Aufgabe:** Verwende diese Phrasen in einem kurzen Satz oder einer Antwort."
    )


def render_practice_challenge(exercise: str) -> str:
    return f"{CHALLENGE_HEADER}\n\n**Allgemeine Übung:**\n\n{exercise}"


def render_fallback_challenge() -> str:
    return f"{CHALLENGE_HEADER}\n\n**Übung:** {FALLBACK_PRACTICE_TASK}"


def describe_phrases(candidates: Sequence[ReviewCandidate]) -> str:
    """One line per phrase, as fed to the exercise generator."""
    return "\n".join(
        f'"{item.original}" → "{item.improved}" ({item.category.value})' for item in candidates
    )
