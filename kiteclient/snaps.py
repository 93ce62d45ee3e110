"""Market snapshot records: OHLC, market depth and ticks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

DEPTH_LEVELS = 5


def _float(data: Mapping[str, Any], key: str) -> float:
    value = data.get(key)
    return float(value) if value is not None else 0.0


def _int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    return int(value) if value is not None else 0


@dataclass
class OHLC:
    """Open, high, low and close prices of an instrument."""

    instrument_token: int = 0
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> OHLC:
        data = data or {}
        return cls(
            open=_float(data, "open"),
            high=_float(data, "high"),
            low=_float(data, "low"),
            close=_float(data, "close"),
        )


@dataclass
class DepthItem:
    """A single level of market depth."""

    price: float = 0.0
    quantity: int = 0
    orders: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> DepthItem:
        data = data or {}
        return cls(
            price=_float(data, "price"),
            quantity=_int(data, "quantity"),
            orders=_int(data, "orders"),
        )


def _empty_side() -> tuple[DepthItem, ...]:
    return tuple(DepthItem() for _ in range(DEPTH_LEVELS))


def _side(items: Any) -> tuple[DepthItem, ...]:
    parsed = [DepthItem.from_dict(item) for item in (items or [])[:DEPTH_LEVELS]]
    parsed.extend(DepthItem() for _ in range(DEPTH_LEVELS - len(parsed)))
    return tuple(parsed)


@dataclass
class Depth:
    """Five levels of buy and sell market depth."""

    buy: tuple[DepthItem, ...] = field(default_factory=_empty_side)
    sell: tuple[DepthItem, ...] = field(default_factory=_empty_side)

    def __post_init__(self) -> None:
        self.buy = tuple(self.buy)
        self.sell = tuple(self.sell)
        if len(self.buy) != DEPTH_LEVELS or len(self.sell) != DEPTH_LEVELS:
            raise ValueError(f"depth must have {DEPTH_LEVELS} levels on each side")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Depth:
        data = data or {}
        return cls(buy=_side(data.get("buy")), sell=_side(data.get("sell")))


@dataclass
class Tick:
    """A single packet of the market feed."""

    mode: str = ""
    instrument_token: int = 0
    is_tradable: bool = False
    is_index: bool = False
    timestamp: datetime | None = None
    last_trade_time: datetime | None = None
    last_price: float = 0.0
    last_traded_quantity: int = 0
    total_buy_quantity: int = 0
    total_sell_quantity: int = 0
    volume_traded: int = 0
    total_buy: int = 0
    total_sell: int = 0
    average_trade_price: float = 0.0
    oi: int = 0
    oi_day_high: int = 0
    oi_day_low: int = 0
    net_change: float = 0.0
    ohlc: OHLC = field(default_factory=OHLC)
    depth: Depth = field(default_factory=Depth)