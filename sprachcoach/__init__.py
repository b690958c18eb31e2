"""
Sprachcoach - automated practice challenges for a German language coach.

Subpackages:
- core: domain models, exceptions, clock and tuning
- store: persistence capabilities (in-memory and SQLAlchemy)
- review: spaced-repetition review selection and manual exercises
- challenges: eligibility gate, dispatcher and per-user scheduler
- feedback: phrase extraction from coach feedback
- integrations: Gemini generation and Telegram/console delivery
- cli: Typer command line
"""

__version__ = "1.0.0"
