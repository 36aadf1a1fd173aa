"""Telegram Bot API messenger."""

from __future__ import annotations

from pathlib import Path

import httpx

from ..exceptions import MessengerSendError
from .base import DEFAULT_TIMEOUT_SECONDS, HttpMessenger

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramMessenger(HttpMessenger):
    """Send messages and documents to a single Telegram chat."""

    display_name = "Telegram"

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        api_url: str = TELEGRAM_API_URL,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.api_url = api_url.rstrip("/")

    def _method_url(self, method: str) -> str:
        return f"{self.api_url}/bot{self.bot_token}/{method}"

    def send_message(self, text: str) -> None:
        response = self._request(
            "POST",
            self._method_url("sendMessage"),
            json={"chat_id": self.chat_id, "text": text},
        )
        try:
            body = response.json()
        except ValueError as exc:
            raise MessengerSendError(
                f"failed to decode response (status: {response.status_code})"
            ) from exc

        ok = isinstance(body, dict) and body.get("ok") is True
        if response.status_code != 200 or not ok:
            description = body.get("description", "") if isinstance(body, dict) else ""
            raise MessengerSendError(
                f"failed to send message: {description} (status: {response.status_code})"
            )

    def send_file(self, file_path: str | Path) -> None:
        """Upload a local file to the chat as a document."""
        path = Path(file_path)
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise MessengerSendError(f"failed to open file: {exc}") from exc

        response = self._request(
            "POST",
            self._method_url("sendDocument"),
            data={"chat_id": self.chat_id},
            files={"document": (path.name, content)},
        )
        if response.status_code != 200:
            raise MessengerSendError(
                f"telegram API error: status {response.status_code}, body: {response.text}"
            )

    def __repr__(self) -> str:
        # Never leak the bot token into logs.
        return f"TelegramMessenger(chat_id={self.chat_id!r})"
