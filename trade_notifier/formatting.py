"""Human-readable message templates for each event category."""

from __future__ import annotations

from datetime import datetime

from .events.domain import Order, PnLUpdate, Position, StrategyError, Trade

STARTUP_MESSAGE = "🤖 Notification service started"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def with_timestamp(text: str, now: datetime) -> str:
    return f"[{now.strftime(TIMESTAMP_FORMAT)}] {text}"


def format_trade(trade: Trade) -> str:
    return (
        f"💰 Trade Executed: {trade.side} {trade.symbol} {trade.quantity:.6f} "
        f"{trade.base_asset} at price {trade.price:.2f} {trade.quote_asset}"
    )


def format_order_filled(order: Order) -> str:
    if order.is_stop_loss:
        emoji = "🛑"
    elif order.is_take_profit:
        emoji = "🎯"
    else:
        emoji = "📝"
    return (
        f"{emoji} Order Filled: {order.side} {order.symbol} {order.quantity:.6f} "
        f"at price {order.executed_price:.2f}"
    )


def format_position_opened(position: Position) -> str:
    return (
        f"🔓 Position Opened: {position.side} {position.symbol} "
        f"{position.quantity:.6f} at entry price {position.entry_price:.2f}"
    )


def position_pnl_percentage(position: Position) -> float:
    """Price move from entry to exit in percent, signed for the position side.

    A zero entry price yields 0.0.
    """
    if position.entry_price == 0:
        return 0.0
    pct = (position.exit_price - position.entry_price) / position.entry_price * 100
    if position.side == "sell":
        pct = -pct
    return pct


def format_position_closed(position: Position) -> str:
    pnl = position.realized_pnl
    emoji = "🔒💰" if pnl > 0 else "🔒📉"
    return (
        f"{emoji} Position Closed: {position.side} {position.symbol} "
        f"{position.quantity:.6f} at exit price {position.exit_price:.2f} "
        f"(P&L: {pnl:.2f} / {position_pnl_percentage(position):.2f}%)"
    )


def format_pnl_update(update: PnLUpdate) -> str:
    emoji = "📈" if update.pnl > 0 else "📉"
    return (
        f"{emoji} P&L Update for {update.symbol}: {update.pnl:.2f} "
        f"({update.pnl_percentage:.2f}%)"
    )


def format_system_error(text: str) -> str:
    return f"🚨 System Error: {text}"


def format_strategy_error(error: StrategyError) -> str:
    return f"🚨 Strategy Error in {error.strategy}: {error.error}"


def format_malformed(category: str, error: Exception | str | None = None) -> str:
    if error is None or str(error) == "":
        return f"⚠️ Received malformed {category} event"
    return f"⚠️ Received malformed {category} event: {error}"
