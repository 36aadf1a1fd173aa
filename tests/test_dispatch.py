"""Tests for fire-and-forget message dispatch."""

from __future__ import annotations

import threading
import unittest

from trade_notifier.dispatch import Dispatcher


class _BlockingMessenger:
    def __init__(self) -> None:
        self.release = threading.Event()
        self.received: list[str] = []

    def send_message(self, text: str) -> None:
        self.release.wait(5.0)
        self.received.append(text)

    def name(self) -> str:
        return "blocking"


class _ExplodingMessenger:
    def send_message(self, text: str) -> None:
        raise ValueError("unexpected payload")

    def name(self) -> str:
        raise RuntimeError("no name either")


class DispatcherTests(unittest.TestCase):
    def test_dispatch_returns_immediately_and_drain_waits(self) -> None:
        dispatcher = Dispatcher()
        messenger = _BlockingMessenger()

        self.assertEqual(dispatcher.dispatch([messenger], "hello"), 1)
        self.assertEqual(dispatcher.in_flight, 1)
        self.assertFalse(dispatcher.drain(0.05))

        messenger.release.set()
        self.assertTrue(dispatcher.drain(5.0))
        self.assertEqual(dispatcher.in_flight, 0)
        self.assertEqual(messenger.received, ["hello"])

    def test_one_worker_per_messenger(self) -> None:
        dispatcher = Dispatcher(thread_name_prefix="test-send")
        first, second = _BlockingMessenger(), _BlockingMessenger()

        self.assertEqual(dispatcher.dispatch([first, second], "x"), 2)
        names = {thread.name for thread in threading.enumerate()}
        self.assertTrue(any(name.startswith("test-send-") for name in names))

        first.release.set()
        second.release.set()
        self.assertTrue(dispatcher.drain(5.0))

    def test_unexpected_errors_are_logged_not_raised(self) -> None:
        dispatcher = Dispatcher()
        with self.assertLogs("trade_notifier.dispatch", level="WARNING") as logs:
            dispatcher.dispatch([_ExplodingMessenger()], "x")
            self.assertTrue(dispatcher.drain(5.0))

        self.assertIn("notification.send.failed", logs.output[0])
        self.assertIn("messenger=_ExplodingMessenger", logs.output[0])
        self.assertIn("error=unexpected payload", logs.output[0])
        record = logs.records[0]
        self.assertEqual(record.messenger, "_ExplodingMessenger")
        self.assertEqual(record.error_type, "ValueError")

    def test_drain_with_nothing_in_flight(self) -> None:
        self.assertTrue(Dispatcher().drain(0))
        self.assertEqual(Dispatcher().dispatch([], "x"), 0)


if __name__ == "__main__":
    unittest.main()
