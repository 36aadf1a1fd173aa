"""Best-effort decoding of loosely typed event payloads into domain records.

Producers publish either a string-keyed mapping or an instance of the
matching record. Mapping fields are copied one by one; a field that is
missing or carries the wrong type keeps its zero value, so decoding a
mapping never fails. Any other payload raises ``MalformedEventError``.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
from functools import lru_cache
from typing import Any, TypeVar, get_type_hints

from ..exceptions import MalformedEventError
from .domain import Order, PnLUpdate, Position, StrategyError, Trade

RecordT = TypeVar("RecordT")


@lru_cache(maxsize=None)
def _field_types(record_type: type) -> tuple[tuple[str, type], ...]:
    hints = get_type_hints(record_type)
    return tuple((f.name, hints[f.name]) for f in dataclasses.fields(record_type))


def _coerce(value: Any, field_type: type) -> tuple[bool, Any]:
    # bool is an int subclass; never let True/False stand in for a number.
    if isinstance(value, bool):
        return (field_type is bool, value)
    if field_type is str:
        return (isinstance(value, str), value)
    if field_type is float:
        if isinstance(value, (int, float)):
            return (True, float(value))
        return (False, None)
    if field_type is int:
        if isinstance(value, int):
            return (True, value)
        if isinstance(value, float) and value.is_integer():
            return (True, int(value))
        return (False, None)
    return (False, None)


def extract_record(data: Any, record_type: type[RecordT], label: str) -> RecordT:
    """Decode ``data`` into a fresh ``record_type`` instance.

    Args:
        data: Event payload (mapping or ``record_type`` instance)
        record_type: Dataclass to build
        label: Human name used in the error message
    """
    if isinstance(data, record_type):
        return dataclasses.replace(data)

    if isinstance(data, Mapping) and all(isinstance(key, str) for key in data):
        values: dict[str, Any] = {}
        for name, field_type in _field_types(record_type):
            if name not in data:
                continue
            ok, coerced = _coerce(data[name], field_type)
            if ok:
                values[name] = coerced
        return record_type(**values)

    raise MalformedEventError(f"cannot extract {label} from {type(data).__name__}")


def extract_trade(data: Any) -> Trade:
    return extract_record(data, Trade, "trade")


def extract_order(data: Any) -> Order:
    return extract_record(data, Order, "order")


def extract_position(data: Any) -> Position:
    return extract_record(data, Position, "position")


def extract_pnl_update(data: Any) -> PnLUpdate:
    return extract_record(data, PnLUpdate, "PnL update")


def extract_strategy_error(data: Any) -> StrategyError:
    return extract_record(data, StrategyError, "strategy error")


def extract_text(data: Any) -> str:
    """Return ``data`` when it is plain text; raise otherwise."""
    if isinstance(data, str):
        return data
    raise MalformedEventError(f"expected text, got {type(data).__name__}")
