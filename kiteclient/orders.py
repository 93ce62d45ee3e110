"""Order and trade records, and the parameters for placing orders."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Mapping

from .timeutil import parse_time


def _str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _float(data: Mapping[str, Any], key: str) -> float:
    value = data.get(key)
    return 0.0 if value is None else float(value)


def _int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    return 0 if value is None else int(value)


def _time(data: Mapping[str, Any], key: str) -> datetime | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return parse_time(str(value))


def _iso(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def _form_value(value: Any) -> str:
    """Render a value the way the form encoder expects it."""
    if isinstance(value, float):
        text = repr(value)
        return text[:-2] if text.endswith(".0") else text
    return str(value)


@dataclass
class Order:
    """A single order as reported by the API."""

    account_id: str = ""
    placed_by: str = ""
    order_id: str = ""
    exchange_order_id: str = ""
    parent_order_id: str = ""
    status: str = ""
    status_message: str = ""
    status_message_raw: str = ""
    order_timestamp: datetime | None = None
    exchange_update_timestamp: datetime | None = None
    exchange_timestamp: datetime | None = None
    variety: str = ""
    modified: bool = False
    meta: dict[str, Any] | None = None
    exchange: str = ""
    tradingsymbol: str = ""
    instrument_token: int = 0
    order_type: str = ""
    transaction_type: str = ""
    validity: str = ""
    validity_ttl: int = 0
    product: str = ""
    quantity: float = 0.0
    disclosed_quantity: float = 0.0
    price: float = 0.0
    trigger_price: float = 0.0
    average_price: float = 0.0
    filled_quantity: float = 0.0
    pending_quantity: float = 0.0
    cancelled_quantity: float = 0.0
    auction_number: str = ""
    tag: str = ""
    tags: list[str] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Order:
        data = data or {}
        meta = data.get("meta")
        tags = data.get("tags")
        return cls(
            account_id=_str(data, "account_id"),
            placed_by=_str(data, "placed_by"),
            order_id=_str(data, "order_id"),
            exchange_order_id=_str(data, "exchange_order_id"),
            parent_order_id=_str(data, "parent_order_id"),
            status=_str(data, "status"),
            status_message=_str(data, "status_message"),
            status_message_raw=_str(data, "status_message_raw"),
            order_timestamp=_time(data, "order_timestamp"),
            exchange_update_timestamp=_time(data, "exchange_update_timestamp"),
            exchange_timestamp=_time(data, "exchange_timestamp"),
            variety=_str(data, "variety"),
            modified=bool(data.get("modified", False)),
            meta=dict(meta) if meta is not None else None,
            exchange=_str(data, "exchange"),
            tradingsymbol=_str(data, "tradingsymbol"),
            instrument_token=_int(data, "instrument_token"),
            order_type=_str(data, "order_type"),
            transaction_type=_str(data, "transaction_type"),
            validity=_str(data, "validity"),
            validity_ttl=_int(data, "validity_ttl"),
            product=_str(data, "product"),
            quantity=_float(data, "quantity"),
            disclosed_quantity=_float(data, "disclosed_quantity"),
            price=_float(data, "price"),
            trigger_price=_float(data, "trigger_price"),
            average_price=_float(data, "average_price"),
            filled_quantity=_float(data, "filled_quantity"),
            pending_quantity=_float(data, "pending_quantity"),
            cancelled_quantity=_float(data, "cancelled_quantity"),
            auction_number=_str(data, "auction_number"),
            tag=_str(data, "tag"),
            tags=list(tags) if tags is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the order as a JSON-ready mapping with the API's keys."""
        result: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, datetime) or (
                value is None and item.name.endswith("timestamp")
            ):
                value = _iso(value)
            elif isinstance(value, dict):
                value = dict(value)
            elif isinstance(value, list):
                value = list(value)
            result[item.name] = value
        return result


@dataclass
class Trade:
    """A single executed trade."""

    average_price: float = 0.0
    quantity: float = 0.0
    trade_id: str = ""
    product: str = ""
    fill_timestamp: datetime | None = None
    exchange_timestamp: datetime | None = None
    exchange_order_id: str = ""
    order_id: str = ""
    transaction_type: str = ""
    tradingsymbol: str = ""
    exchange: str = ""
    instrument_token: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Trade:
        data = data or {}
        return cls(
            average_price=_float(data, "average_price"),
            quantity=_float(data, "quantity"),
            trade_id=_str(data, "trade_id"),
            product=_str(data, "product"),
            fill_timestamp=_time(data, "fill_timestamp"),
            exchange_timestamp=_time(data, "exchange_timestamp"),
            exchange_order_id=_str(data, "exchange_order_id"),
            order_id=_str(data, "order_id"),
            transaction_type=_str(data, "transaction_type"),
            tradingsymbol=_str(data, "tradingsymbol"),
            exchange=_str(data, "exchange"),
            instrument_token=_int(data, "instrument_token"),
        )


@dataclass
class OrderParams:
    """Parameters for placing or modifying an order."""

    exchange: str = ""
    tradingsymbol: str = ""
    validity: str = ""
    validity_ttl: int = 0
    product: str = ""
    order_type: str = ""
    transaction_type: str = ""
    quantity: int = 0
    disclosed_quantity: int = 0
    price: float = 0.0
    trigger_price: float = 0.0
    squareoff: float = 0.0
    stoploss: float = 0.0
    trailing_stoploss: float = 0.0
    iceberg_legs: int = 0
    iceberg_quantity: int = 0
    auction_number: str = ""
    tag: str = ""

    def to_params(self) -> dict[str, str]:
        """Return the form fields to send, leaving out empty values."""
        return {
            item.name: _form_value(value)
            for item in fields(self)
            if (value := getattr(self, item.name))
        }


@dataclass
class OrderResponse:
    """The response to placing, modifying or cancelling an order."""

    order_id: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> OrderResponse:
        return cls(order_id=_str(data or {}, "order_id"))


@dataclass
class _OrderList:
    orders: list[Order] = field(default_factory=list)