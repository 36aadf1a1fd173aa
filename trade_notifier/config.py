"""Configuration loading and validation for the trade notifier."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
import logging
import os
from pathlib import Path
import tomllib
from typing import Any
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)
import tomli_w

from .exceptions import ConfigValidationError

LOGGER = logging.getLogger(__name__)

CONFIG_SEARCH_PATHS = (
    Path("configs/notification.toml"),
    Path("../configs/notification.toml"),
    Path("../../configs/notification.toml"),
)

VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

ELEMENT_TOKEN_PLACEHOLDER = "YOUR_ELEMENT_ACCESS_TOKEN"
TELEGRAM_TOKEN_PLACEHOLDER = "YOUR_TELEGRAM_BOT_TOKEN"

DEFAULT_CONFIG_TEMPLATE = """\
# Trade notifier configuration.
# Credentials may also be supplied through ELEMENT_ACCESS_TOKEN,
# TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID.

[events]
trade_execution = true
order_filled = true
position_change = true
pnl_update = true
stop_loss = true
take_profit = true
system_errors = true
strategy_errors = true
# Minimum absolute P&L percentage before an update is sent.
profit_threshold = 1.0

[element]
enabled = false
homeserver_url = "https://matrix.org"
access_token = "YOUR_ELEMENT_ACCESS_TOKEN"
room_id = "!cryptobot:matrix.org"

[telegram]
enabled = false
bot_token = "YOUR_TELEGRAM_BOT_TOKEN"
chat_id = ""

[logging]
level = "INFO"
structured = true
log_to_file = false
log_file_path = "~/.local/state/trade-notifier/notifier.log"
"""


def _strip_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, int) and not isinstance(value, bool):
        # Telegram chat ids are often written as bare integers.
        return str(value)
    if not isinstance(value, str):
        raise ValueError("Expected a string value.")
    return value.strip()


class ElementConfig(BaseModel):
    """Matrix/Element room credentials."""

    model_config = ConfigDict(frozen=True)
    enabled: bool = False
    homeserver_url: str = "https://matrix.org"
    access_token: str = ""
    room_id: str = "!cryptobot:matrix.org"

    @field_validator("homeserver_url", "access_token", "room_id", mode="before")
    @classmethod
    def _normalize_string(cls, value: Any) -> str:
        return _strip_string(value)

    @field_validator("homeserver_url")
    @classmethod
    def _validate_homeserver(cls, value: str) -> str:
        if not value:
            return value
        parsed = urlparse(value)
        if parsed.scheme.lower() not in {"http", "https"} or not parsed.hostname:
            raise ValueError("homeserver_url must be an http(s) URL with a hostname.")
        return value.rstrip("/")

    def missing_fields(self) -> list[str]:
        """Names of required credentials that are empty or still placeholders."""
        missing: list[str] = []
        if not self.homeserver_url:
            missing.append("homeserver URL")
        if not self.access_token or self.access_token == ELEMENT_TOKEN_PLACEHOLDER:
            missing.append("access token")
        if not self.room_id:
            missing.append("room ID")
        return missing


class TelegramConfig(BaseModel):
    """Telegram bot credentials."""

    model_config = ConfigDict(frozen=True)
    enabled: bool = False
    bot_token: str = ""
    chat_id: str = ""

    @field_validator("bot_token", "chat_id", mode="before")
    @classmethod
    def _normalize_string(cls, value: Any) -> str:
        return _strip_string(value)

    def missing_fields(self) -> list[str]:
        missing: list[str] = []
        if not self.bot_token or self.bot_token == TELEGRAM_TOKEN_PLACEHOLDER:
            missing.append("bot token")
        if not self.chat_id:
            missing.append("chat ID")
        return missing


class NotificationConfig(BaseModel):
    """Immutable snapshot of what to notify about and where to send it."""

    model_config = ConfigDict(frozen=True)
    notify_trade_execution: bool = True
    notify_order_filled: bool = True
    notify_position_change: bool = True
    notify_pnl_update: bool = True
    notify_stop_loss: bool = True
    notify_take_profit: bool = True
    notify_system_errors: bool = True
    notify_strategy_errors: bool = True
    profit_threshold: float = Field(default=1.0, ge=0)
    element: ElementConfig = ElementConfig()
    telegram: TelegramConfig = TelegramConfig()


class EventsConfig(BaseModel):
    """Per-category notification toggles as written in the config file."""

    trade_execution: bool = True
    order_filled: bool = True
    position_change: bool = True
    pnl_update: bool = True
    stop_loss: bool = True
    take_profit: bool = True
    system_errors: bool = True
    strategy_errors: bool = True
    profit_threshold: float = Field(default=1.0, ge=0, le=100_000)


class LoggingConfig(BaseModel):
    """Logging behavior and output destinations."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: str = "~/.local/state/trade-notifier/notifier.log"

    @field_validator("level", mode="before")
    @classmethod
    def _validate_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Unsupported log level {normalized!r}.")
        return normalized

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _validate_log_file_path(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("log_file_path must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("log_file_path must not be empty.")
        return normalized


class AppConfig(BaseModel):
    """Root configuration model for all sections."""

    events: EventsConfig = EventsConfig()
    element: ElementConfig = ElementConfig()
    telegram: TelegramConfig = TelegramConfig()
    logging: LoggingConfig = LoggingConfig()

    def notification_config(self) -> NotificationConfig:
        """Build the frozen snapshot consumed by ``NotificationService``."""
        events = self.events
        return NotificationConfig(
            notify_trade_execution=events.trade_execution,
            notify_order_filled=events.order_filled,
            notify_position_change=events.position_change,
            notify_pnl_update=events.pnl_update,
            notify_stop_loss=events.stop_loss,
            notify_take_profit=events.take_profit,
            notify_system_errors=events.system_errors,
            notify_strategy_errors=events.strategy_errors,
            profit_threshold=events.profit_threshold,
            element=self.element,
            telegram=self.telegram,
        )


DEFAULT_CONFIG: dict[str, dict[str, Any]] = AppConfig().model_dump()


def ensure_config_dir(config_dir: Path) -> Path:
    """Ensure that the config directory exists and return its path."""
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create config directory %s: %s", config_dir, exc)
    return config_dir


def discover_config_path(search_paths: tuple[Path, ...] = CONFIG_SEARCH_PATHS) -> Path:
    """Return the first existing config file, or the first candidate if none exist."""
    for candidate in search_paths:
        if candidate.is_file():
            return candidate
    return search_paths[0]


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override values onto base values."""
    merged: dict[str, Any] = deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _enforce_private_permissions(path: Path) -> None:
    """Best-effort enforcement of private file permissions on POSIX systems."""
    if os.name != "posix" or not path.exists():
        return
    try:
        path.chmod(0o600)
    except OSError as exc:
        LOGGER.warning("Unable to enforce 0600 permissions for %s: %s", path, exc)


def _validate_config(raw: dict[str, Any]) -> AppConfig:
    """Validate merged config and fallback to safe defaults when possible."""
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        LOGGER.warning(
            "config.validation_failed",
            extra={"event": "config.validation_failed", "reason": str(exc)},
        )
        return AppConfig()
    except Exception as exc:  # noqa: BLE001 - unexpected model construction failure.
        raise ConfigValidationError(f"Unable to validate configuration: {exc}") from exc


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load configuration from TOML, merge with defaults, and validate.

    A missing file yields the defaults. Unparseable or invalid files are
    logged and replaced by the defaults rather than aborting start-up.
    """
    target_path = config_path or discover_config_path()

    raw_data: Any = {}
    if target_path.exists():
        _enforce_private_permissions(target_path)
        try:
            raw_data = tomllib.loads(target_path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            LOGGER.warning(
                "config.parse_failed",
                extra={
                    "event": "config.parse_failed",
                    "path": str(target_path),
                    "reason": str(exc),
                },
            )
            raw_data = {}

    merged = (
        _deep_merge(DEFAULT_CONFIG, raw_data)
        if isinstance(raw_data, dict)
        else deepcopy(DEFAULT_CONFIG)
    )
    return _validate_config(merged)


def apply_env_overrides(
    config: AppConfig, environ: Mapping[str, str] | None = None
) -> AppConfig:
    """Return a copy of ``config`` with credentials taken from the environment.

    ``ELEMENT_ACCESS_TOKEN`` enables Element when the homeserver and room are
    known. ``TELEGRAM_BOT_TOKEN`` together with ``TELEGRAM_CHAT_ID`` enables
    Telegram.
    """
    env = os.environ if environ is None else environ
    element = config.element
    telegram = config.telegram

    element_token = env.get("ELEMENT_ACCESS_TOKEN", "").strip()
    if element_token:
        updates: dict[str, Any] = {"access_token": element_token}
        if element.homeserver_url and element.room_id:
            updates["enabled"] = True
        element = element.model_copy(update=updates)

    telegram_token = env.get("TELEGRAM_BOT_TOKEN", "").strip()
    if telegram_token:
        updates = {"bot_token": telegram_token}
        chat_id = env.get("TELEGRAM_CHAT_ID", "").strip()
        if chat_id:
            updates["chat_id"] = chat_id
            updates["enabled"] = True
        telegram = telegram.model_copy(update=updates)

    return config.model_copy(update={"element": element, "telegram": telegram})


def create_default_config_file(config_path: Path) -> Path:
    """Write the commented default config to ``config_path`` (mode 0600)."""
    ensure_config_dir(config_path.parent)
    config_path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    _enforce_private_permissions(config_path)
    LOGGER.info(
        "config.default_written",
        extra={"event": "config.default_written", "path": str(config_path)},
    )
    return config_path


def save_config(app_config: AppConfig, config_path: Path) -> Path:
    """Serialize ``app_config`` to TOML at ``config_path`` (mode 0600).

    The written file loads back through ``load_config`` to an equal config.
    """
    ensure_config_dir(config_path.parent)
    config_path.write_text(tomli_w.dumps(app_config.model_dump()), encoding="utf-8")
    _enforce_private_permissions(config_path)
    LOGGER.info(
        "config.saved",
        extra={"event": "config.saved", "path": str(config_path)},
    )
    return config_path
