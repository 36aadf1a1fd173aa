from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Trade:
    id: str = ""
    symbol: str = ""
    side: str = ""  # "buy" or "sell"
    price: float = 0.0
    quantity: float = 0.0
    base_asset: str = ""
    quote_asset: str = ""
    fee: float = 0.0
    fee_coin: str = ""
    timestamp: int = 0


@dataclass
class Order:
    id: str = ""
    symbol: str = ""
    side: str = ""
    type: str = ""  # "market", "limit", "stop", "take_profit", ...
    quantity: float = 0.0
    price: float = 0.0
    executed_price: float = 0.0
    status: str = ""
    timestamp: int = 0

    @property
    def is_stop_loss(self) -> bool:
        return self.type in ("stop", "stop_market")

    @property
    def is_take_profit(self) -> bool:
        return self.type in ("take_profit", "take_profit_market")


@dataclass
class Position:
    id: str = ""
    symbol: str = ""
    side: str = ""
    quantity: float = 0.0
    entry_price: float = 0.0
    exit_price: float = 0.0
    realized_pnl: float = 0.0
    unrealized_pnl: float = 0.0
    open_time: int = 0
    close_time: int = 0


@dataclass
class PnLUpdate:
    symbol: str = ""
    pnl: float = 0.0
    pnl_percentage: float = 0.0


@dataclass
class StrategyError:
    strategy: str = ""
    error: str = ""
