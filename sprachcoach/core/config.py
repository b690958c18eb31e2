"""Tuning knobs for scheduling and review selection."""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Optional

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class ChallengeConfig:
    """Configuration for the challenge scheduler, dispatcher and selector."""
    weekly_cap: int = 4
    window_start_hour: int = 9
    window_end_hour: int = 20
    min_interval_days: float = 2.0
    max_interval_days: float = 4.0
    retry_seconds: float = 60 * 60
    # None keeps retrying hourly forever
    max_retry_attempts: Optional[int] = None
    retry_backoff_factor: float = 1.0
    review_limit: int = 2
    feedback_window: int = 50
    shuffle_probability: float = 0.3

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> "ChallengeConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})

    @classmethod
    def from_settings(cls, settings: Any) -> "ChallengeConfig":
        return cls.from_mapping(settings.get_challenge_config())

    def retry_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        return self.retry_seconds * (self.retry_backoff_factor ** max(0, attempt - 1))
