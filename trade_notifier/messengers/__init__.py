"""Chat destinations that formatted notifications are delivered to."""

from .base import HttpMessenger, Messenger
from .element import ElementMessenger
from .telegram import TelegramMessenger

__all__ = ["ElementMessenger", "HttpMessenger", "Messenger", "TelegramMessenger"]
