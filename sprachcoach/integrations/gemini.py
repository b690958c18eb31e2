"""
Gemini exercise generation over the Generative Language REST API.

Prompts target a C1/C2 German speaker and ask for short business scenarios.
Every transport or response problem is raised as GenerationFailure.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Optional

import httpx
from loguru import logger

from sprachcoach.challenges.messages import describe_phrases
from sprachcoach.core.collaborators import ExerciseGenerator
from sprachcoach.core.exceptions import GenerationFailure
from sprachcoach.core.models import ReviewCandidate
from sprachcoach.store.base import ReviewStore

PRACTICE_FEEDBACK_WINDOW = 5
NO_FEEDBACK_TEXT = "No feedback items found to generate practice from."

PRACTICE_PROMPT = """
German language coach for C1/C2 speaker. NO introductions or conclusions.

**Task:** Create one short business practice exercise (2-3 sentences) based on recent feedback.

**Format:**
Szenario: [brief business context]
Ihre Aufgabe: [specific task requiring application of feedback]

**Recent Feedback:**
{feedback}
"""

REVIEW_PROMPT = """
German language coach for C1/C2 speaker. NO introductions or conclusions.

**Task:** Create a short business practice exercise (2-3 sentences) that incorporates these phrases naturally.

**Format:**
Szenario: [brief business context]
Ihre Aufgabe: [specific task requiring application of the phrases]

**Phrases to incorporate:**
{phrases}

**Rules:**
- Make the exercise feel natural, not forced
- Focus on one general business topic (meetings, emails, presentations, etc.)
- Keep it concise and practical
"""


class GeminiGenerator(ExerciseGenerator):
    """ExerciseGenerator backed by a Gemini model."""

    def __init__(
        self,
        store: ReviewStore,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.store = store
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def general_practice_prompt(self, user_id: str) -> str:
        try:
            records = await self.store.fetch_recent_feedback(user_id, PRACTICE_FEEDBACK_WINDOW)
        except Exception as exc:
            raise GenerationFailure(f"Could not load feedback for user {user_id}: {exc}") from exc
        if not records:
            return NO_FEEDBACK_TEXT

        # The explanation part adds little to exercise generation
        feedback = "\n\n".join(r.full_feedback.split("Warum:")[0] for r in records)
        return await self.generate(PRACTICE_PROMPT.format(feedback=feedback))

    async def review_exercise(self, candidates: Sequence[ReviewCandidate]) -> str:
        return await self.generate(REVIEW_PROMPT.format(phrases=describe_phrases(candidates)))

    async def generate(self, prompt: str) -> str:
        """Send one prompt and return the concatenated text parts of the first candidate."""
        if not self.api_key:
            raise GenerationFailure("Gemini API key is not configured")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        try:
            response = await self._client.post(url, params={"key": self.api_key}, json=payload)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Gemini request failed: {}", exc)
            raise GenerationFailure(f"Gemini request failed: {exc}") from exc

        text = _extract_text(data)
        if not text:
            raise GenerationFailure("Gemini returned an empty response")
        return text


def _extract_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts).strip()
