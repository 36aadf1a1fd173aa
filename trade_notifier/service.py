"""Notification service: turn bus events into chat messages."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
import functools
import logging
from typing import Any

from .config import NotificationConfig
from .dispatch import Dispatcher
from .events.bus import Event, EventBus, EventType
from .events.payloads import (
    extract_order,
    extract_pnl_update,
    extract_position,
    extract_strategy_error,
    extract_text,
    extract_trade,
)
from .exceptions import (
    MalformedEventError,
    MessengerConfigurationError,
    NotificationServiceError,
)
from .formatting import (
    STARTUP_MESSAGE,
    format_malformed,
    format_order_filled,
    format_pnl_update,
    format_position_closed,
    format_position_opened,
    format_strategy_error,
    format_system_error,
    format_trade,
    with_timestamp,
)
from .messengers import ElementMessenger, Messenger, TelegramMessenger

LOGGER = logging.getLogger(__name__)

SUBSCRIBER_ID = "notification_service"

_Handler = Callable[["NotificationService", Event], None]


def build_messengers(config: NotificationConfig) -> list[Messenger]:
    """Create a messenger for every platform enabled in ``config``.

    Raises:
        MessengerConfigurationError: an enabled platform is missing a
            credential, or no platform is enabled at all.
    """
    messengers: list[Messenger] = []

    if config.element.enabled:
        missing = config.element.missing_fields()
        if missing:
            raise MessengerConfigurationError(
                f"element {missing[0]} is required when element is enabled"
            )
        messengers.append(
            ElementMessenger(
                config.element.homeserver_url,
                config.element.access_token,
                config.element.room_id,
            )
        )

    if config.telegram.enabled:
        missing = config.telegram.missing_fields()
        if missing:
            raise MessengerConfigurationError(
                f"telegram {missing[0]} is required when telegram is enabled"
            )
        messengers.append(
            TelegramMessenger(config.telegram.bot_token, config.telegram.chat_id)
        )

    if not messengers:
        raise MessengerConfigurationError(
            "at least one messenger must be enabled in configuration"
        )
    return messengers


def _contained(handler: _Handler) -> _Handler:
    """Keep handler failures from reaching the publisher."""

    @functools.wraps(handler)
    def wrapper(self: NotificationService, event: Event) -> None:
        try:
            handler(self, event)
        except Exception as exc:  # noqa: BLE001 - the bus must never see handler errors.
            LOGGER.error(
                "notification.handler.failed",
                extra={
                    "event": "notification.handler.failed",
                    "handler": handler.__name__,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )

    return wrapper


class NotificationService:
    """Subscribe to trading events and fan formatted messages out to messengers.

    Messengers are either passed in explicitly or built from the platform
    credentials in ``config``. Configuration and the messenger set are fixed
    for the life of the instance.
    """

    def __init__(
        self,
        config: NotificationConfig | None = None,
        bus: EventBus | None = None,
        messengers: Sequence[Messenger] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config if config is not None else NotificationConfig()
        self.bus = bus if bus is not None else EventBus()

        if messengers is None:
            self._messengers: tuple[Messenger, ...] = tuple(build_messengers(self.config))
            self._owns_messengers = True
        else:
            self._messengers = tuple(messengers)
            self._owns_messengers = False
            if not self._messengers:
                raise MessengerConfigurationError("at least one messenger is required")

        self._clock = clock
        self._dispatcher = Dispatcher()
        self._subscriptions: list[EventType] = []
        self._started = False
        self._closed = False

    @classmethod
    def with_messengers(
        cls,
        config: NotificationConfig | None,
        bus: EventBus | None,
        messengers: Iterable[Messenger] | None,
    ) -> NotificationService:
        """Build a service around caller-supplied messengers only."""
        if messengers is None:
            raise MessengerConfigurationError("at least one messenger is required")
        return cls(config=config, bus=bus, messengers=list(messengers))

    @property
    def messengers(self) -> tuple[Messenger, ...]:
        return self._messengers

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        """Announce start-up and register handlers for every enabled category."""
        if self._closed:
            raise NotificationServiceError("notification service is closed")
        if self._started:
            return
        try:
            self.send_notification(STARTUP_MESSAGE)
        except RuntimeError as exc:
            raise NotificationServiceError(
                f"failed to send startup notification: {exc}"
            ) from exc
        self._register_handlers()
        self._started = True
        LOGGER.info(
            "notification.service.started",
            extra={
                "event": "notification.service.started",
                "messengers": [m.name() for m in self._messengers],
                "event_types": [t.value for t in self._subscriptions],
            },
        )

    def stop(self, timeout: float | None = None) -> bool:
        """Unsubscribe every handler and wait for in-flight sends.

        Messengers stay open, so a stopped service may be started again.
        Returns True when all sends finished within ``timeout`` seconds.
        """
        for event_type in self._subscriptions:
            self.bus.unsubscribe(event_type, SUBSCRIBER_ID)
        self._subscriptions.clear()
        self._started = False

        drained = self._dispatcher.drain(timeout)
        LOGGER.info(
            "notification.service.stopped",
            extra={"event": "notification.service.stopped", "drained": drained},
        )
        return drained

    def close(self, timeout: float | None = None) -> bool:
        """Stop the service for good and release messengers it built itself.

        Clients are only closed once every in-flight send has finished. Any
        later ``start`` raises ``NotificationServiceError``.
        """
        drained = self.stop(timeout)
        self._closed = True
        if self._owns_messengers and drained:
            for messenger in self._messengers:
                close = getattr(messenger, "close", None)
                if callable(close):
                    close()
        return drained

    @property
    def closed(self) -> bool:
        return self._closed

    def _register_handlers(self) -> None:
        cfg = self.config
        table: list[tuple[bool, EventType, Callable[[Event], None]]] = [
            (cfg.notify_trade_execution, EventType.TRADE_EXECUTED, self.handle_trade_executed),
            (cfg.notify_order_filled, EventType.ORDER_FILLED, self.handle_order_filled),
            (cfg.notify_position_change, EventType.POSITION_OPENED, self.handle_position_opened),
            (cfg.notify_position_change, EventType.POSITION_CLOSED, self.handle_position_closed),
            (cfg.notify_pnl_update, EventType.PNL_UPDATE, self.handle_pnl_update),
            (cfg.notify_system_errors, EventType.SYSTEM_ERROR, self.handle_system_error),
            (cfg.notify_strategy_errors, EventType.STRATEGY_ERROR, self.handle_strategy_error),
        ]
        for enabled, event_type, handler in table:
            if enabled:
                self.bus.subscribe(event_type, SUBSCRIBER_ID, handler)
                self._subscriptions.append(event_type)

    def _malformed(self, category: str, exc: Exception | None = None) -> None:
        LOGGER.warning(
            "notification.event.malformed",
            extra={
                "event": "notification.event.malformed",
                "category": category,
                "error": str(exc) if exc is not None else "",
            },
        )
        self.send_notification(format_malformed(category, exc))

    def _render(self, category: str, formatter: Callable[[Any], str], record: Any) -> None:
        # Typed records are copied unchecked, so a wrong field type only
        # surfaces when the template formats it.
        try:
            text = formatter(record)
        except (TypeError, ValueError) as exc:
            self._malformed(category, exc)
            return
        self.send_notification(text)

    def _suppressed(self, event: Event, reason: str) -> None:
        LOGGER.debug(
            "notification.event.suppressed",
            extra={
                "event": "notification.event.suppressed",
                "event_type": str(getattr(event.type, "value", event.type)),
                "reason": reason,
            },
        )

    @_contained
    def handle_trade_executed(self, event: Event) -> None:
        try:
            trade = extract_trade(event.data)
        except MalformedEventError as exc:
            self._malformed("trade execution", exc)
            return
        self._render("trade execution", format_trade, trade)

    @_contained
    def handle_order_filled(self, event: Event) -> None:
        try:
            order = extract_order(event.data)
        except MalformedEventError as exc:
            self._malformed("order filled", exc)
            return

        if order.is_stop_loss and not self.config.notify_stop_loss:
            self._suppressed(event, "stop_loss_disabled")
            return
        if order.is_take_profit and not self.config.notify_take_profit:
            self._suppressed(event, "take_profit_disabled")
            return
        self._render("order filled", format_order_filled, order)

    @_contained
    def handle_position_opened(self, event: Event) -> None:
        try:
            position = extract_position(event.data)
        except MalformedEventError as exc:
            self._malformed("position opened", exc)
            return
        self._render("position opened", format_position_opened, position)

    @_contained
    def handle_position_closed(self, event: Event) -> None:
        try:
            position = extract_position(event.data)
        except MalformedEventError as exc:
            self._malformed("position closed", exc)
            return
        self._render("position closed", format_position_closed, position)

    @_contained
    def handle_pnl_update(self, event: Event) -> None:
        try:
            update = extract_pnl_update(event.data)
        except MalformedEventError as exc:
            self._malformed("PnL update", exc)
            return

        threshold = self.config.profit_threshold
        try:
            below_threshold = -threshold < update.pnl_percentage < threshold
        except TypeError as exc:
            self._malformed("PnL update", exc)
            return
        if below_threshold:
            self._suppressed(event, "below_profit_threshold")
            return
        self._render("PnL update", format_pnl_update, update)

    @_contained
    def handle_system_error(self, event: Event) -> None:
        try:
            text = extract_text(event.data)
        except MalformedEventError:
            self._malformed("system error")
            return
        self.send_notification(format_system_error(text))

    @_contained
    def handle_strategy_error(self, event: Event) -> None:
        try:
            error = extract_strategy_error(event.data)
        except MalformedEventError as exc:
            self._malformed("strategy error", exc)
            return
        self._render("strategy error", format_strategy_error, error)

    def send_notification(self, text: str) -> None:
        """Timestamp ``text`` and hand it to every messenger without waiting."""
        self._dispatcher.dispatch(self._messengers, with_timestamp(text, self._clock()))

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for in-flight sends without unsubscribing anything."""
        return self._dispatcher.drain(timeout)

    def __repr__(self) -> str:
        names = [m.name() for m in self._messengers]
        return f"NotificationService(messengers={names!r}, started={self._started})"
