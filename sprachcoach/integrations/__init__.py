"""
External integrations for the coach.

Modules:
- gemini: exercise generation via the Generative Language API
- telegram: challenge delivery via the Telegram Bot API
- console: challenge delivery to the terminal (dry runs)
"""
from .console import ConsoleNotifier
from .gemini import GeminiGenerator
from .telegram import TelegramNotifier, split_message

__all__ = ["ConsoleNotifier", "GeminiGenerator", "TelegramNotifier", "split_message"]
