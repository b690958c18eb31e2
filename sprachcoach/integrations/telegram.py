"""Challenge delivery through the Telegram Bot API."""
from __future__ import annotations

from typing import Optional

import httpx
from loguru import logger

from sprachcoach.core.collaborators import Notifier
from sprachcoach.core.exceptions import DispatchFailure

TELEGRAM_MAX_MESSAGE_LENGTH = 4096


def split_message(message: str, max_length: int = TELEGRAM_MAX_MESSAGE_LENGTH) -> list[str]:
    """
    Split a message into chunks along line boundaries.

    Lines longer than ``max_length`` are cut hard so no chunk ever exceeds it.
    """
    chunks: list[str] = []
    if not message:
        return chunks

    current = ""
    for line in message.split("\n"):
        while len(line) >= max_length:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[: max_length - 1] + "\n")
            line = line[max_length - 1 :]
        if len(current) + len(line) + 1 > max_length:
            chunks.append(current)
            current = ""
        current += line + "\n"

    if current:
        chunks.append(current)
    return chunks


class TelegramNotifier(Notifier):
    """Send challenge text to a Telegram chat (chat id == user id)."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.telegram.org",
        timeout: float = 30.0,
        parse_mode: Optional[str] = "Markdown",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.parse_mode = parse_mode
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(self, user_id: str, text: str) -> None:
        if not self.token:
            raise DispatchFailure(user_id, "Telegram bot token is not configured")

        url = f"{self.base_url}/bot{self.token}/sendMessage"
        for chunk in split_message(text):
            payload = {"chat_id": user_id, "text": chunk}
            if self.parse_mode:
                payload["parse_mode"] = self.parse_mode
            try:
                response = await self._client.post(url, json=payload)
                response.raise_for_status()
                body = response.json()
            except (httpx.HTTPError, ValueError) as exc:
                raise DispatchFailure(user_id, str(exc)) from exc
            if not body.get("ok", False):
                raise DispatchFailure(user_id, body.get("description", "Telegram rejected the message"))
        logger.debug("Delivered {} characters to Telegram chat {}", len(text), user_id)
