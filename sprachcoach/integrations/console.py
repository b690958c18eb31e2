"""Console delivery for dry runs."""
from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from sprachcoach.core.collaborators import Notifier


class ConsoleNotifier(Notifier):
    """Print challenges instead of sending them."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.sent: list[tuple[str, str]] = []

    async def send(self, user_id: str, text: str) -> None:
        self.sent.append((user_id, text))
        self.console.print(Panel(Markdown(text), title=f"Challenge for {user_id}", border_style="cyan"))
