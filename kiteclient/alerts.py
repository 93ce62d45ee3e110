"""Market price alerts, including ATO alerts that carry a basket of orders."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from .snaps import OHLC
from .timeutil import parse_time

URI_ALERTS = "/alerts"
URI_ALERT = "/alerts/{uuid}"
URI_ALERT_HISTORY = "/alerts/{uuid}/history"

RHS_CONSTANT = "constant"
RHS_INSTRUMENT = "instrument"


class AlertType(str, Enum):
    """Kinds of alert."""

    SIMPLE = "simple"
    ATO = "ato"


class AlertStatus(str, Enum):
    """States an alert can be in."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    DELETED = "deleted"


class AlertOperator(str, Enum):
    """Comparison operators between the two sides of an alert."""

    LE = "<="
    GE = ">="
    LT = "<"
    GT = ">"
    EQ = "=="


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


def _tags(value: Any) -> list[str] | None:
    return None if value is None else [str(tag) for tag in value]


def _enum(kind: type[Enum], value: Any) -> Any:
    try:
        return kind(value)
    except ValueError:
        return "" if value is None else str(value)


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _json_number(value: float) -> float | int:
    """Write integral floats without a fractional part, as the API expects."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def _format_number(value: float) -> str:
    number = _json_number(float(value))
    return str(number) if isinstance(number, int) else repr(number)


@dataclass
class OrderGTTParams:
    """GTT target and stoploss attached to a basket order."""

    target: float = 0.0
    stoploss: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> OrderGTTParams:
        data = data or {}
        return cls(target=_float(data, "target"), stoploss=_float(data, "stoploss"))

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": _json_number(self.target),
            "stoploss": _json_number(self.stoploss),
        }


@dataclass
class AlertOrderParams:
    """Order parameters of one basket item."""

    transaction_type: str = ""
    product: str = ""
    order_type: str = ""
    validity: str = ""
    validity_ttl: int = 0
    quantity: int = 0
    price: float = 0.0
    trigger_price: float = 0.0
    disclosed_quantity: int = 0
    last_price: float = 0.0
    variety: str = ""
    tags: list[str] | None = None
    squareoff: float = 0.0
    stoploss: float = 0.0
    trailing_stoploss: float = 0.0
    iceberg_legs: int = 0
    market_protection: float = 0.0
    gtt: OrderGTTParams | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> AlertOrderParams:
        data = data or {}
        gtt = data.get("gtt")
        return cls(
            transaction_type=_str(data, "transaction_type"),
            product=_str(data, "product"),
            order_type=_str(data, "order_type"),
            validity=_str(data, "validity"),
            validity_ttl=_int(data, "validity_ttl"),
            quantity=_int(data, "quantity"),
            price=_float(data, "price"),
            trigger_price=_float(data, "trigger_price"),
            disclosed_quantity=_int(data, "disclosed_quantity"),
            last_price=_float(data, "last_price"),
            variety=_str(data, "variety"),
            tags=_tags(data.get("tags")),
            squareoff=_float(data, "squareoff"),
            stoploss=_float(data, "stoploss"),
            trailing_stoploss=_float(data, "trailing_stoploss"),
            iceberg_legs=_int(data, "iceberg_legs"),
            market_protection=_float(data, "market_protection"),
            gtt=None if gtt is None else OrderGTTParams.from_dict(gtt),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping; gtt is left out when not set."""
        result: dict[str, Any] = {
            "transaction_type": self.transaction_type,
            "product": self.product,
            "order_type": self.order_type,
            "validity": self.validity,
            "validity_ttl": self.validity_ttl,
            "quantity": self.quantity,
            "price": _json_number(self.price),
            "trigger_price": _json_number(self.trigger_price),
            "disclosed_quantity": self.disclosed_quantity,
            "last_price": _json_number(self.last_price),
            "variety": self.variety,
            "tags": None if self.tags is None else list(self.tags),
            "squareoff": _json_number(self.squareoff),
            "stoploss": _json_number(self.stoploss),
            "trailing_stoploss": _json_number(self.trailing_stoploss),
            "iceberg_legs": self.iceberg_legs,
            "market_protection": _json_number(self.market_protection),
        }
        if self.gtt is not None:
            result["gtt"] = self.gtt.to_dict()
        return result


@dataclass
class BasketItem:
    """One order in the basket of an ATO alert."""

    type: str = ""
    tradingsymbol: str = ""
    exchange: str = ""
    weight: int = 0
    params: AlertOrderParams = field(default_factory=AlertOrderParams)
    id: int = 0
    instrument_token: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> BasketItem:
        data = data or {}
        return cls(
            type=_str(data, "type"),
            tradingsymbol=_str(data, "tradingsymbol"),
            exchange=_str(data, "exchange"),
            weight=_int(data, "weight"),
            params=AlertOrderParams.from_dict(data.get("params")),
            id=_int(data, "id"),
            instrument_token=_int(data, "instrument_token"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready mapping; zero id and token are left out."""
        result: dict[str, Any] = {
            "type": self.type,
            "tradingsymbol": self.tradingsymbol,
            "exchange": self.exchange,
            "weight": self.weight,
            "params": self.params.to_dict(),
        }
        if self.id:
            result["id"] = self.id
        if self.instrument_token:
            result["instrument_token"] = self.instrument_token
        return result


@dataclass
class Basket:
    """The basket of orders placed when an ATO alert triggers."""

    name: str = ""
    type: str = ""
    tags: list[str] | None = None
    items: list[BasketItem] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Basket:
        data = data or {}
        items = data.get("items")
        return cls(
            name=_str(data, "name"),
            type=_str(data, "type"),
            tags=_tags(data.get("tags")),
            items=None if items is None else [BasketItem.from_dict(i) for i in items],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "tags": None if self.tags is None else list(self.tags),
            "items": None
            if self.items is None
            else [item.to_dict() for item in self.items],
        }


@dataclass
class Alert:
    """A market price alert."""

    type: AlertType | str = ""
    user_id: str = ""
    uuid: str = ""
    name: str = ""
    status: AlertStatus | str = ""
    disabled_reason: str = ""
    lhs_attribute: str = ""
    lhs_exchange: str = ""
    lhs_tradingsymbol: str = ""
    operator: AlertOperator | str = ""
    rhs_type: str = ""
    rhs_attribute: str = ""
    rhs_exchange: str = ""
    rhs_tradingsymbol: str = ""
    rhs_constant: float = 0.0
    alert_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    basket: Basket | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Alert:
        data = data or {}
        basket = data.get("basket")
        return cls(
            type=_enum(AlertType, data.get("type")),
            user_id=_str(data, "user_id"),
            uuid=_str(data, "uuid"),
            name=_str(data, "name"),
            status=_enum(AlertStatus, data.get("status")),
            disabled_reason=_str(data, "disabled_reason"),
            lhs_attribute=_str(data, "lhs_attribute"),
            lhs_exchange=_str(data, "lhs_exchange"),
            lhs_tradingsymbol=_str(data, "lhs_tradingsymbol"),
            operator=_enum(AlertOperator, data.get("operator")),
            rhs_type=_str(data, "rhs_type"),
            rhs_attribute=_str(data, "rhs_attribute"),
            rhs_exchange=_str(data, "rhs_exchange"),
            rhs_tradingsymbol=_str(data, "rhs_tradingsymbol"),
            rhs_constant=_float(data, "rhs_constant"),
            alert_count=_int(data, "alert_count"),
            created_at=_time(data, "created_at"),
            updated_at=_time(data, "updated_at"),
            basket=None if basket is None else Basket.from_dict(basket),
        )


@dataclass
class AlertParams:
    """Parameters for creating or modifying an alert."""

    name: str
    type: AlertType | str
    lhs_exchange: str
    lhs_tradingsymbol: str
    lhs_attribute: str
    operator: AlertOperator | str
    rhs_type: str
    rhs_constant: float = 0.0
    rhs_exchange: str = ""
    rhs_tradingsymbol: str = ""
    rhs_attribute: str = ""
    basket: Basket | None = None

    def to_form(self) -> dict[str, str]:
        """Return the form fields to send for this alert."""
        form = {
            "name": self.name,
            "type": _text(self.type),
            "lhs_exchange": self.lhs_exchange,
            "lhs_tradingsymbol": self.lhs_tradingsymbol,
            "lhs_attribute": self.lhs_attribute,
            "operator": _text(self.operator),
            "rhs_type": self.rhs_type,
        }
        if self.rhs_type == RHS_CONSTANT:
            form["rhs_constant"] = _format_number(self.rhs_constant)
        elif self.rhs_type == RHS_INSTRUMENT:
            form["rhs_exchange"] = self.rhs_exchange
            form["rhs_tradingsymbol"] = self.rhs_tradingsymbol
            form["rhs_attribute"] = self.rhs_attribute

        if _text(self.type) == AlertType.ATO.value and self.basket is not None:
            form["basket"] = json.dumps(
                self.basket.to_dict(), separators=(",", ":"), ensure_ascii=False
            )
        return form


@dataclass
class AlertHistoryMeta:
    """Market snapshot recorded when an alert triggered."""

    instrument_token: int = 0
    tradingsymbol: str = ""
    timestamp: str = ""
    last_price: float = 0.0
    ohlc: OHLC = field(default_factory=OHLC)
    net_change: float = 0.0
    exchange: str = ""
    last_trade_time: str = ""
    last_quantity: int = 0
    buy_quantity: int = 0
    sell_quantity: int = 0
    volume: int = 0
    volume_tick: int = 0
    average_price: float = 0.0
    oi: int = 0
    oi_day_high: int = 0
    oi_day_low: int = 0
    lower_circuit_limit: float = 0.0
    upper_circuit_limit: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> AlertHistoryMeta:
        data = data or {}
        return cls(
            instrument_token=_int(data, "instrument_token"),
            tradingsymbol=_str(data, "tradingsymbol"),
            timestamp=_str(data, "timestamp"),
            last_price=_float(data, "last_price"),
            ohlc=OHLC.from_dict(data.get("ohlc")),
            net_change=_float(data, "net_change"),
            exchange=_str(data, "exchange"),
            last_trade_time=_str(data, "last_trade_time"),
            last_quantity=_int(data, "last_quantity"),
            buy_quantity=_int(data, "buy_quantity"),
            sell_quantity=_int(data, "sell_quantity"),
            volume=_int(data, "volume"),
            volume_tick=_int(data, "volume_tick"),
            average_price=_float(data, "average_price"),
            oi=_int(data, "oi"),
            oi_day_high=_int(data, "oi_day_high"),
            oi_day_low=_int(data, "oi_day_low"),
            lower_circuit_limit=_float(data, "lower_circuit_limit"),
            upper_circuit_limit=_float(data, "upper_circuit_limit"),
        )


@dataclass
class AlertHistory:
    """One entry in the trigger history of an alert."""

    uuid: str = ""
    type: AlertType | str = ""
    meta: list[AlertHistoryMeta] = field(default_factory=list)
    condition: str = ""
    created_at: datetime | None = None
    order_meta: Any = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> AlertHistory:
        data = data or {}
        return cls(
            uuid=_str(data, "uuid"),
            type=_enum(AlertType, data.get("type")),
            meta=[AlertHistoryMeta.from_dict(m) for m in data.get("meta") or []],
            condition=_str(data, "condition"),
            created_at=_time(data, "created_at"),
            order_meta=data.get("order_meta"),
        )


def delete_alert_params(*args: str) -> list[tuple[str, str]]:
    """Return the query pairs that delete the alerts with the given UUIDs."""
    if not args:
        raise ValueError("at least one uuid must be provided")
    return [("uuid", uuid) for uuid in args]