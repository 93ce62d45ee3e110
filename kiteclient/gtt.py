"""Good-till-triggered (GTT) orders."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from .orders import Order
from .timeutil import parse_time

_PRODUCT_CNC = "CNC"
_ORDER_TYPE_LIMIT = "LIMIT"


class GTTType(str, Enum):
    """Kinds of GTT order."""

    SINGLE = "single"
    OCO = "two-leg"


@dataclass
class TriggerParams:
    """The trigger value, limit price and quantity of one leg."""

    trigger_value: float = 0.0
    limit_price: float = 0.0
    quantity: float = 0.0


class Trigger(ABC):
    """The legs of a GTT order."""

    @abstractmethod
    def trigger_values(self) -> list[float]:
        """Trigger values, one per leg."""

    @abstractmethod
    def limit_prices(self) -> list[float]:
        """Limit prices, one per leg."""

    @abstractmethod
    def quantities(self) -> list[float]:
        """Quantities, one per leg."""

    @abstractmethod
    def type(self) -> GTTType:
        """The GTT type of this trigger."""


@dataclass
class GTTSingleLegTrigger(TriggerParams, Trigger):
    """A trigger that watches a single value."""

    def trigger_values(self) -> list[float]:
        return [self.trigger_value]

    def limit_prices(self) -> list[float]:
        return [self.limit_price]

    def quantities(self) -> list[float]:
        return [self.quantity]

    def type(self) -> GTTType:
        return GTTType.SINGLE


@dataclass
class GTTOneCancelsOtherTrigger(Trigger):
    """Two triggers where executing one cancels the other."""

    upper: TriggerParams = field(default_factory=TriggerParams)
    lower: TriggerParams = field(default_factory=TriggerParams)

    def trigger_values(self) -> list[float]:
        return [self.lower.trigger_value, self.upper.trigger_value]

    def limit_prices(self) -> list[float]:
        return [self.lower.limit_price, self.upper.limit_price]

    def quantities(self) -> list[float]:
        return [self.lower.quantity, self.upper.quantity]

    def type(self) -> GTTType:
        return GTTType.OCO


@dataclass
class GTTMeta:
    """Information about a rejection after a GTT was triggered."""

    rejection_reason: str = ""


@dataclass
class GTTCondition:
    """The condition a GTT order watches."""

    exchange: str = ""
    tradingsymbol: str = ""
    last_price: float = 0.0
    trigger_values: list[float] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> GTTCondition:
        data = data or {}
        return cls(
            exchange=str(data.get("exchange") or ""),
            tradingsymbol=str(data.get("tradingsymbol") or ""),
            last_price=float(data.get("last_price") or 0.0),
            trigger_values=[float(v) for v in data.get("trigger_values") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "exchange": self.exchange,
            "tradingsymbol": self.tradingsymbol,
            "last_price": self.last_price,
            "trigger_values": list(self.trigger_values),
        }


def _time(data: Mapping[str, Any], key: str) -> datetime | None:
    value = data.get(key)
    return None if value is None else parse_time(str(value))


def _gtt_type(value: Any) -> GTTType | str:
    try:
        return GTTType(value)
    except ValueError:
        return "" if value is None else str(value)


@dataclass
class GTT:
    """A single GTT order."""

    id: int = 0
    user_id: str = ""
    type: GTTType | str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    expires_at: datetime | None = None
    status: str = ""
    condition: GTTCondition = field(default_factory=GTTCondition)
    orders: list[Order] = field(default_factory=list)
    meta: GTTMeta = field(default_factory=GTTMeta)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> GTT:
        data = data or {}
        meta = data.get("meta") or {}
        return cls(
            id=int(data.get("id") or 0),
            user_id=str(data.get("user_id") or ""),
            type=_gtt_type(data.get("type")),
            created_at=_time(data, "created_at"),
            updated_at=_time(data, "updated_at"),
            expires_at=_time(data, "expires_at"),
            status=str(data.get("status") or ""),
            condition=GTTCondition.from_dict(data.get("condition")),
            orders=[Order.from_dict(item) for item in data.get("orders") or []],
            meta=GTTMeta(rejection_reason=str(meta.get("rejection_reason") or "")),
        )


@dataclass
class GTTParams:
    """Parameters from which a GTT order is built before sending it."""

    tradingsymbol: str
    exchange: str
    last_price: float
    transaction_type: str
    trigger: Trigger
    product: str = ""


@dataclass
class GTTResponse:
    """The response of the GTT endpoints."""

    trigger_id: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> GTTResponse:
        return cls(trigger_id=int((data or {}).get("trigger_id") or 0))


def _new_gtt(params: GTTParams) -> GTT:
    """Build the GTT order that params describe; product defaults to CNC."""
    product = params.product or _PRODUCT_CNC
    trigger = params.trigger
    orders = [
        Order(
            exchange=params.exchange,
            tradingsymbol=params.tradingsymbol,
            transaction_type=params.transaction_type,
            quantity=quantity,
            price=price,
            order_type=_ORDER_TYPE_LIMIT,
            product=product,
        )
        for quantity, price in zip(trigger.quantities(), trigger.limit_prices())
    ]
    return GTT(
        type=trigger.type(),
        condition=GTTCondition(
            exchange=params.exchange,
            tradingsymbol=params.tradingsymbol,
            last_price=params.last_price,
            trigger_values=trigger.trigger_values(),
        ),
        orders=orders,
    )


def _gtt_form(params: GTTParams) -> dict[str, str]:
    """Return the form fields for placing or modifying a GTT order."""
    gtt = _new_gtt(params)
    compact = (",", ":")
    return {
        "type": GTTType(gtt.type).value,
        "condition": json.dumps(gtt.condition.to_dict(), separators=compact),
        "orders": json.dumps([o.to_dict() for o in gtt.orders], separators=compact),
    }