"""Tests for the Telegram and Element HTTP clients."""

from __future__ import annotations

import json
from pathlib import Path
import tempfile
import unittest

import httpx

from trade_notifier.exceptions import MessengerSendError
from trade_notifier.messengers import ElementMessenger, Messenger, TelegramMessenger


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TelegramMessengerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.requests: list[httpx.Request] = []

    def _recording(self, response: httpx.Response):
        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return response

        return handler

    def test_send_message_posts_chat_and_text(self) -> None:
        client = _client(self._recording(httpx.Response(200, json={"ok": True})))
        messenger = TelegramMessenger("123:abc", "-10042", client=client)

        messenger.send_message("hello")

        request = self.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(
            str(request.url), "https://api.telegram.org/bot123:abc/sendMessage"
        )
        self.assertEqual(
            json.loads(request.content), {"chat_id": "-10042", "text": "hello"}
        )

    def test_custom_api_url(self) -> None:
        client = _client(self._recording(httpx.Response(200, json={"ok": True})))
        messenger = TelegramMessenger(
            "t", "1", api_url="http://localhost:8081/", client=client
        )
        messenger.send_message("x")
        self.assertEqual(str(self.requests[0].url), "http://localhost:8081/bott/sendMessage")

    def test_ok_false_is_an_error(self) -> None:
        client = _client(
            self._recording(
                httpx.Response(200, json={"ok": False, "description": "chat not found"})
            )
        )
        messenger = TelegramMessenger("t", "1", client=client)
        with self.assertRaises(MessengerSendError) as ctx:
            messenger.send_message("x")
        self.assertEqual(
            str(ctx.exception), "failed to send message: chat not found (status: 200)"
        )

    def test_non_200_status_is_an_error(self) -> None:
        client = _client(
            self._recording(
                httpx.Response(401, json={"ok": False, "description": "Unauthorized"})
            )
        )
        messenger = TelegramMessenger("t", "1", client=client)
        with self.assertRaises(MessengerSendError) as ctx:
            messenger.send_message("x")
        self.assertIn("(status: 401)", str(ctx.exception))

    def test_undecodable_body_is_an_error(self) -> None:
        client = _client(self._recording(httpx.Response(502, text="<html>bad gateway")))
        messenger = TelegramMessenger("t", "1", client=client)
        with self.assertRaises(MessengerSendError) as ctx:
            messenger.send_message("x")
        self.assertEqual(
            str(ctx.exception), "failed to decode response (status: 502)"
        )

    def test_transport_failure_is_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        messenger = TelegramMessenger("t", "1", client=_client(handler))
        with self.assertRaises(MessengerSendError) as ctx:
            messenger.send_message("x")
        self.assertIn("connection refused", str(ctx.exception))

    def test_send_file_uploads_document(self) -> None:
        client = _client(self._recording(httpx.Response(200, json={"ok": True})))
        messenger = TelegramMessenger("t", "99", client=client)
        with tempfile.TemporaryDirectory() as tmp:
            report = Path(tmp) / "report.csv"
            report.write_text("symbol,pnl\nBTCUSD,10\n", encoding="utf-8")
            messenger.send_file(report)

        request = self.requests[0]
        self.assertTrue(str(request.url).endswith("/sendDocument"))
        self.assertIn("multipart/form-data", request.headers["content-type"])
        body = request.content
        self.assertIn(b'name="chat_id"', body)
        self.assertIn(b'filename="report.csv"', body)
        self.assertIn(b"BTCUSD,10", body)

    def test_send_file_missing_path(self) -> None:
        messenger = TelegramMessenger(
            "t", "1", client=_client(self._recording(httpx.Response(200)))
        )
        with self.assertRaises(MessengerSendError) as ctx:
            messenger.send_file("/nonexistent/report.csv")
        self.assertIn("failed to open file", str(ctx.exception))
        self.assertEqual(self.requests, [])

    def test_send_file_error_status(self) -> None:
        client = _client(self._recording(httpx.Response(413, text="too large")))
        messenger = TelegramMessenger("t", "1", client=client)
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "big.bin"
            path.write_bytes(b"\x00" * 16)
            with self.assertRaises(MessengerSendError) as ctx:
                messenger.send_file(path)
        self.assertEqual(
            str(ctx.exception), "telegram API error: status 413, body: too large"
        )

    def test_name_and_repr_hide_token(self) -> None:
        messenger = TelegramMessenger("secret-token", "1", client=_client(lambda r: None))
        self.assertEqual(messenger.name(), "Telegram")
        self.assertNotIn("secret-token", repr(messenger))
        self.assertIsInstance(messenger, Messenger)


class ElementMessengerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.requests: list[httpx.Request] = []

    def _handler(self, status: int = 200):
        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(status, json={"event_id": "$abc"})

        return handler

    def test_send_message_puts_room_event(self) -> None:
        messenger = ElementMessenger(
            "https://matrix.example.org/",
            "syt_token",
            "!room:example.org",
            client=_client(self._handler()),
        )

        messenger.send_message("hello room")

        request = self.requests[0]
        self.assertEqual(request.method, "PUT")
        self.assertTrue(
            request.url.path.startswith(
                "/_matrix/client/r0/rooms/!room:example.org/send/m.room.message/"
            )
        )
        self.assertEqual(request.url.host, "matrix.example.org")
        self.assertEqual(request.headers["authorization"], "Bearer syt_token")
        self.assertEqual(
            json.loads(request.content), {"msgtype": "m.text", "body": "hello room"}
        )

    def test_transaction_ids_are_unique(self) -> None:
        messenger = ElementMessenger(
            "https://matrix.org", "t", "!r:matrix.org", client=_client(self._handler())
        )
        for _ in range(5):
            messenger.send_message("x")
        txn_ids = {request.url.path.rsplit("/", 1)[-1] for request in self.requests}
        self.assertEqual(len(txn_ids), 5)

    def test_non_200_status_is_an_error(self) -> None:
        messenger = ElementMessenger(
            "https://matrix.org", "t", "!r:matrix.org", client=_client(self._handler(403))
        )
        with self.assertRaises(MessengerSendError) as ctx:
            messenger.send_message("x")
        self.assertEqual(
            str(ctx.exception), "failed to send message, status code: 403"
        )

    def test_timeout_is_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        messenger = ElementMessenger(
            "https://matrix.org", "t", "!r:matrix.org", client=_client(handler)
        )
        with self.assertRaises(MessengerSendError):
            messenger.send_message("x")

    def test_close_leaves_injected_client_open(self) -> None:
        client = _client(self._handler())
        messenger = ElementMessenger("https://matrix.org", "t", "!r", client=client)
        messenger.close()
        self.assertFalse(client.is_closed)

    def test_close_closes_owned_client(self) -> None:
        messenger = ElementMessenger("https://matrix.org", "t", "!r")
        messenger.close()
        self.assertTrue(messenger._client.is_closed)
        self.assertEqual(messenger.name(), "Element")


if __name__ == "__main__":
    unittest.main()
