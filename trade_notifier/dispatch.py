"""Fire-and-forget delivery of one message to many messengers."""

from __future__ import annotations

from collections.abc import Iterable
import logging
import threading
import time

from .messengers import Messenger

LOGGER = logging.getLogger(__name__)


class Dispatcher:
    """Send each message to every messenger on its own worker thread.

    Callers never wait on a send. Workers remove themselves from the live
    set when they finish, so ``drain`` only waits on sends still in flight.
    """

    def __init__(self, thread_name_prefix: str = "notify-send") -> None:
        self._thread_name_prefix = thread_name_prefix
        self._live: set[threading.Thread] = set()
        self._lock = threading.Lock()
        self._counter = 0

    def dispatch(self, messengers: Iterable[Messenger], text: str) -> int:
        """Start one worker per messenger and return how many were started."""
        started = 0
        for messenger in messengers:
            with self._lock:
                self._counter += 1
                name = f"{self._thread_name_prefix}-{self._counter}"
            worker = threading.Thread(
                target=self._deliver,
                args=(messenger, text),
                name=name,
                daemon=True,
            )
            with self._lock:
                self._live.add(worker)
            try:
                worker.start()
            except RuntimeError:
                with self._lock:
                    self._live.discard(worker)
                raise
            started += 1
        return started

    def _deliver(self, messenger: Messenger, text: str) -> None:
        try:
            messenger.send_message(text)
        except Exception as exc:  # noqa: BLE001 - one failing destination must not affect others.
            name = _messenger_name(messenger)
            LOGGER.warning(
                "notification.send.failed messenger=%s error=%s",
                name,
                exc,
                extra={
                    "event": "notification.send.failed",
                    "messenger": name,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
        else:
            LOGGER.debug(
                "notification.send.ok",
                extra={
                    "event": "notification.send.ok",
                    "messenger": _messenger_name(messenger),
                },
            )
        finally:
            with self._lock:
                self._live.discard(threading.current_thread())

    @property
    def in_flight(self) -> int:
        """Number of sends that have not finished yet."""
        with self._lock:
            return len(self._live)

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for in-flight sends; return True when none remain.

        ``timeout`` bounds the total wait in seconds; ``None`` waits forever.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                pending = list(self._live)
            if not pending:
                return True
            for worker in pending:
                remaining = None
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return self.in_flight == 0
                worker.join(remaining)


def _messenger_name(messenger: Messenger) -> str:
    try:
        return messenger.name()
    except Exception:  # noqa: BLE001 - diagnostics only.
        return type(messenger).__name__
