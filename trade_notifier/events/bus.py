"""Event bus for decoupled trading-event communication.

Usage:
    bus = EventBus()

    # Subscribe to events
    def on_trade(event):
        print(f"Trade: {event.data['symbol']}")

    bus.subscribe(EventType.TRADE_EXECUTED, "printer", on_trade)

    # Publish events
    bus.publish_data(EventType.TRADE_EXECUTED, {"symbol": "BTCUSDT"})
"""

from __future__ import annotations

from collections.abc import Callable, Hashable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
import logging
import threading
from typing import Any

LOGGER = logging.getLogger(__name__)


class EventType(str, Enum):
    """Built-in event categories. Any hashable identifier may also be used."""

    TRADE_EXECUTED = "trade_executed"
    ORDER_FILLED = "order_filled"
    POSITION_OPENED = "position_opened"
    POSITION_CLOSED = "position_closed"
    PNL_UPDATE = "pnl_update"
    SYSTEM_ERROR = "system_error"
    STRATEGY_ERROR = "strategy_error"


@dataclass
class Event:
    """Event data container."""

    type: Hashable
    data: Any = None
    timestamp: datetime | None = None


EventHandler = Callable[[Event], None]


class EventBus:
    """Thread-safe publish/subscribe registry keyed by event type and subscriber id.

    Handlers are invoked synchronously on the publishing thread. The bus
    does not catch handler exceptions; containing them is the handler's job.
    """

    def __init__(self) -> None:
        self._subscribers: dict[Hashable, dict[str, EventHandler]] = {}
        self._lock = threading.Lock()

    def subscribe(
        self, event_type: Hashable, subscriber_id: str, handler: EventHandler | None
    ) -> None:
        """Register ``handler`` for ``event_type`` under ``subscriber_id``.

        Args:
            event_type: Event category to listen for
            subscriber_id: Identity of the registration; re-using it replaces
                the previous handler
            handler: Callable invoked with the published ``Event``. ``None``
                is ignored.
        """
        if handler is None:
            return
        with self._lock:
            self._subscribers.setdefault(event_type, {})[subscriber_id] = handler
        LOGGER.debug(
            "bus.subscribed",
            extra={
                "event": "bus.subscribed",
                "event_type": _type_name(event_type),
                "subscriber_id": subscriber_id,
            },
        )

    def unsubscribe(self, event_type: Hashable, subscriber_id: str) -> None:
        """Remove the handler registered under ``subscriber_id``, if any."""
        with self._lock:
            handlers = self._subscribers.get(event_type)
            if handlers is None or subscriber_id not in handlers:
                return
            del handlers[subscriber_id]
            if not handlers:
                del self._subscribers[event_type]
        LOGGER.debug(
            "bus.unsubscribed",
            extra={
                "event": "bus.unsubscribed",
                "event_type": _type_name(event_type),
                "subscriber_id": subscriber_id,
            },
        )

    def publish(self, event: Event) -> None:
        """Invoke every handler subscribed to ``event.type``.

        The handler set is snapshotted before any handler runs, so
        registrations made while publishing only affect later publishes.
        """
        if event.timestamp is None:
            event.timestamp = datetime.now()

        with self._lock:
            handlers = list(self._subscribers.get(event.type, {}).values())

        for handler in handlers:
            handler(event)

    def publish_data(self, event_type: Hashable, data: Any) -> None:
        """Publish ``data`` as a freshly timestamped event of ``event_type``."""
        self.publish(Event(type=event_type, data=data, timestamp=datetime.now()))

    def subscriber_ids(self, event_type: Hashable) -> list[str]:
        """Return the subscriber ids currently registered for ``event_type``."""
        with self._lock:
            return list(self._subscribers.get(event_type, {}))

    def has_subscribers(self, event_type: Hashable) -> bool:
        with self._lock:
            return event_type in self._subscribers

    def clear(self, event_type: Hashable | None = None) -> None:
        """Clear subscribers.

        Args:
            event_type: Specific event type to clear, or None for all
        """
        with self._lock:
            if event_type is None:
                self._subscribers.clear()
            else:
                self._subscribers.pop(event_type, None)


def _type_name(event_type: Hashable) -> str:
    if isinstance(event_type, Enum):
        return str(event_type.value)
    return str(event_type)
