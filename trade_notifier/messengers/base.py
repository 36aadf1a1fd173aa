"""Messenger capability and a shared base for HTTP-backed chat clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

import httpx

from ..exceptions import MessengerSendError

DEFAULT_TIMEOUT_SECONDS = 10.0


@runtime_checkable
class Messenger(Protocol):
    """Anything that can deliver a text message to a chat destination."""

    def send_message(self, text: str) -> None:
        """Deliver ``text``; raise ``MessengerSendError`` on failure."""

    def name(self) -> str:
        """Stable identifier used in diagnostics."""


class HttpMessenger(ABC):
    """Base class for messengers that talk to a platform over HTTP.

    Subclasses build one request per message. The per-request timeout is
    enforced here, so a hung platform never holds a dispatch worker forever.
    """

    display_name: str = "unknown"

    def __init__(
        self,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def name(self) -> str:
        return self.display_name

    @abstractmethod
    def send_message(self, text: str) -> None:
        """Deliver ``text`` to the configured destination."""

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise MessengerSendError(f"failed to send message: {exc}") from exc

    def close(self) -> None:
        """Close the underlying HTTP client when this messenger created it."""
        if self._owns_client:
            self._client.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
