"""Element (Matrix client-server API) messenger."""

from __future__ import annotations

import itertools
import time
from urllib.parse import quote

import httpx

from ..exceptions import MessengerSendError
from .base import DEFAULT_TIMEOUT_SECONDS, HttpMessenger


class ElementMessenger(HttpMessenger):
    """Post ``m.text`` messages into one Matrix room."""

    display_name = "Element"

    def __init__(
        self,
        homeserver_url: str,
        access_token: str,
        room_id: str,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.homeserver_url = homeserver_url.rstrip("/")
        self.access_token = access_token
        self.room_id = room_id
        self._txn_counter = itertools.count()

    def _next_txn_id(self) -> str:
        # Transaction ids must be unique per access token; the counter keeps
        # them unique even when two sends share a clock tick.
        return f"{time.time_ns()}-{next(self._txn_counter)}"

    def send_message(self, text: str) -> None:
        url = (
            f"{self.homeserver_url}/_matrix/client/r0/rooms/"
            f"{quote(self.room_id, safe='')}/send/m.room.message/{self._next_txn_id()}"
        )
        response = self._request(
            "PUT",
            url,
            json={"msgtype": "m.text", "body": text},
            headers={"Authorization": f"Bearer {self.access_token}"},
        )
        if response.status_code != 200:
            raise MessengerSendError(
                f"failed to send message, status code: {response.status_code}"
            )

    def __repr__(self) -> str:
        return f"ElementMessenger(homeserver_url={self.homeserver_url!r}, room_id={self.room_id!r})"
