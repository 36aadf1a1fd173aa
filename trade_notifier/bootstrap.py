"""Start-up wiring: config discovery, credentials, and service start."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from pathlib import Path

from .config import (
    apply_env_overrides,
    create_default_config_file,
    discover_config_path,
    load_config,
)
from .events.bus import EventBus
from .exceptions import MessengerConfigurationError
from .service import NotificationService

LOGGER = logging.getLogger(__name__)


def initialize_notification_system(
    bus: EventBus | None = None,
    config_path: Path | None = None,
    telegram_bot_token: str = "",
    telegram_chat_id: str = "",
    environ: Mapping[str, str] | None = None,
) -> NotificationService:
    """Load configuration, build a notification service, and start it.

    A default config file is written when none exists yet. Credentials from
    the environment take precedence over the file; the explicit Telegram
    arguments are used only when Telegram is still not enabled afterwards.

    Raises:
        MessengerConfigurationError: no messenger is enabled, or an enabled
            one lacks credentials.
    """
    bus = bus if bus is not None else EventBus()
    target = config_path or discover_config_path()

    if not target.exists():
        LOGGER.warning(
            "config.missing",
            extra={"event": "config.missing", "path": str(target)},
        )
        create_default_config_file(target)

    app_config = apply_env_overrides(load_config(target), environ)

    if not app_config.telegram.enabled and telegram_bot_token and telegram_chat_id:
        app_config = app_config.model_copy(
            update={
                "telegram": app_config.telegram.model_copy(
                    update={
                        "enabled": True,
                        "bot_token": telegram_bot_token,
                        "chat_id": telegram_chat_id,
                    }
                )
            }
        )

    if not app_config.element.enabled and not app_config.telegram.enabled:
        raise MessengerConfigurationError(
            f"at least one messenger must be enabled. Please update {target} "
            "or set environment variables"
        )

    service = NotificationService(config=app_config.notification_config(), bus=bus)
    service.start()
    LOGGER.info(
        "notification.system.initialized",
        extra={"event": "notification.system.initialized", "config_path": str(target)},
    )
    return service
