"""Event bus, event types, and the typed payload records carried on it."""

from .bus import Event, EventBus, EventHandler, EventType
from .domain import Order, PnLUpdate, Position, StrategyError, Trade

__all__ = [
    "Event",
    "EventBus",
    "EventHandler",
    "EventType",
    "Order",
    "PnLUpdate",
    "Position",
    "StrategyError",
    "Trade",
]
