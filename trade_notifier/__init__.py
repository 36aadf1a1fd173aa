"""Top-level package for trade-notifier."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .bootstrap import initialize_notification_system
    from .config import NotificationConfig, load_config
    from .events import Event, EventBus, EventType
    from .exceptions import (
        ConfigValidationError,
        MalformedEventError,
        MessengerConfigurationError,
        MessengerSendError,
        NotificationServiceError,
        NotifierError,
    )
    from .messengers import ElementMessenger, Messenger, TelegramMessenger
    from .service import NotificationService

__all__ = [
    "ConfigValidationError",
    "ElementMessenger",
    "Event",
    "EventBus",
    "EventType",
    "MalformedEventError",
    "Messenger",
    "MessengerConfigurationError",
    "MessengerSendError",
    "NotificationConfig",
    "NotificationService",
    "NotificationServiceError",
    "NotifierError",
    "TelegramMessenger",
    "initialize_notification_system",
    "load_config",
]


def __getattr__(name: str) -> Any:
    """Lazily import symbols so importing the bus does not pull in httpx."""
    if name in {"Event", "EventBus", "EventType"}:
        from . import events

        return getattr(events, name)
    if name in {"NotificationConfig", "load_config"}:
        from . import config

        return getattr(config, name)
    if name in {
        "ConfigValidationError",
        "MalformedEventError",
        "MessengerConfigurationError",
        "MessengerSendError",
        "NotificationServiceError",
        "NotifierError",
    }:
        from . import exceptions

        return getattr(exceptions, name)
    if name in {"ElementMessenger", "Messenger", "TelegramMessenger"}:
        from . import messengers

        return getattr(messengers, name)
    if name == "NotificationService":
        from .service import NotificationService

        return NotificationService
    if name == "initialize_notification_system":
        from .bootstrap import initialize_notification_system

        return initialize_notification_system
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
