"""Market data: quotes, historical candles and instrument lists."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, TypeVar

from .errors import GENERAL_ERROR, KiteError, new_error
from .snaps import OHLC, Depth
from .timeutil import parse_time

_CANDLE_TIME_LAYOUT = "%Y-%m-%dT%H:%M:%S%z"
_PARAM_TIME_LAYOUT = "%Y-%m-%d %H:%M:%S"


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


@dataclass
class QuoteItem:
    """The full quote of one instrument."""

    instrument_token: int = 0
    timestamp: datetime | None = None
    last_price: float = 0.0
    last_quantity: int = 0
    last_trade_time: datetime | None = None
    average_price: float = 0.0
    volume: int = 0
    buy_quantity: int = 0
    sell_quantity: int = 0
    ohlc: OHLC = field(default_factory=OHLC)
    net_change: float = 0.0
    oi: float = 0.0
    oi_day_high: float = 0.0
    oi_day_low: float = 0.0
    lower_circuit_limit: float = 0.0
    upper_circuit_limit: float = 0.0
    depth: Depth = field(default_factory=Depth)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> QuoteItem:
        data = data or {}
        return cls(
            instrument_token=_int(data, "instrument_token"),
            timestamp=_time(data, "timestamp"),
            last_price=_float(data, "last_price"),
            last_quantity=_int(data, "last_quantity"),
            last_trade_time=_time(data, "last_trade_time"),
            average_price=_float(data, "average_price"),
            volume=_int(data, "volume"),
            buy_quantity=_int(data, "buy_quantity"),
            sell_quantity=_int(data, "sell_quantity"),
            ohlc=OHLC.from_dict(data.get("ohlc")),
            net_change=_float(data, "net_change"),
            oi=_float(data, "oi"),
            oi_day_high=_float(data, "oi_day_high"),
            oi_day_low=_float(data, "oi_day_low"),
            lower_circuit_limit=_float(data, "lower_circuit_limit"),
            upper_circuit_limit=_float(data, "upper_circuit_limit"),
            depth=Depth.from_dict(data.get("depth")),
        )


@dataclass
class QuoteOHLCItem:
    """The OHLC quote of one instrument."""

    instrument_token: int = 0
    last_price: float = 0.0
    ohlc: OHLC = field(default_factory=OHLC)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> QuoteOHLCItem:
        data = data or {}
        return cls(
            instrument_token=_int(data, "instrument_token"),
            last_price=_float(data, "last_price"),
            ohlc=OHLC.from_dict(data.get("ohlc")),
        )


@dataclass
class QuoteLTPItem:
    """The last traded price of one instrument."""

    instrument_token: int = 0
    last_price: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> QuoteLTPItem:
        data = data or {}
        return cls(
            instrument_token=_int(data, "instrument_token"),
            last_price=_float(data, "last_price"),
        )


@dataclass
class HistoricalData:
    """A single historical candle."""

    date: datetime
    open: float = 0.0
    high: float = 0.0
    low: float = 0.0
    close: float = 0.0
    volume: int = 0
    oi: int = 0


def quote_params(instruments: Iterable[str]) -> list[tuple[str, str]]:
    """Return the query pairs that request quotes for the given instruments."""
    return [("i", instrument) for instrument in instruments]


def historical_params(
    instrument_token: int,
    interval: str,
    from_date: datetime,
    to_date: datetime,
    continuous: bool,
    oi: bool,
) -> dict[str, str]:
    """Return the query fields of a historical data request."""
    return {
        "from": from_date.strftime(_PARAM_TIME_LAYOUT),
        "to": to_date.strftime(_PARAM_TIME_LAYOUT),
        "continuous": "1" if continuous else "0",
        "oi": "1" if oi else "0",
        "instrument_token": str(instrument_token),
        "interval": interval,
    }


def _number(candle: list[Any], index: int, name: str) -> float:
    value = candle[index] if index < len(candle) else None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise new_error(GENERAL_ERROR, f"Error decoding response `{name}`: {value}")
    return float(value)


def _candle(candle: list[Any]) -> HistoricalData:
    stamp = candle[0] if candle else None
    if not isinstance(stamp, str):
        raise new_error(GENERAL_ERROR, f"Error decoding response `date`: {stamp}")
    open_ = _number(candle, 1, "open")
    high = _number(candle, 2, "high")
    low = _number(candle, 3, "low")
    close = _number(candle, 4, "close")
    volume = int(_number(candle, 5, "volume"))
    oi = int(_number(candle, 6, "oi")) if len(candle) > 6 else 0
    try:
        date = datetime.strptime(stamp, _CANDLE_TIME_LAYOUT)
    except ValueError as exc:
        raise new_error(GENERAL_ERROR, f"Error decoding response: {exc}") from exc
    return HistoricalData(
        date=date, open=open_, high=high, low=low, close=close, volume=volume, oi=oi
    )


def format_historical_data(
    candles: Iterable[list[Any]] | Mapping[str, Any] | None,
) -> list[HistoricalData]:
    """Turn raw candle rows into HistoricalData records.

    Accepts the list of candles or the response mapping that holds them
    under "candles". Raises KiteError on a malformed candle.
    """
    if candles is None:
        return []
    if isinstance(candles, Mapping):
        candles = candles.get("candles") or []
    return [_candle(list(candle)) for candle in candles]


def _csv_str(text: str) -> str:
    return text


def _csv_int(text: str) -> int:
    text = text.strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        return int(float(text))


def _csv_float(text: str) -> float:
    text = text.strip()
    return float(text) if text else 0.0


def _csv_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in ("true", "yes", "1"):
        return True
    if lowered in ("false", "no", "0", ""):
        return False
    raise ValueError(f"invalid boolean: {text!r}")


def _csv_time(text: str) -> datetime | None:
    return parse_time(text)


def _column(name: str, convert: Callable[[str], Any], default: Any) -> Any:
    return field(default=default, metadata={"csv": name, "convert": convert})


@dataclass
class Instrument:
    """A tradable instrument from the instrument list."""

    instrument_token: int = _column("instrument_token", _csv_int, 0)
    exchange_token: int = _column("exchange_token", _csv_int, 0)
    tradingsymbol: str = _column("tradingsymbol", _csv_str, "")
    name: str = _column("name", _csv_str, "")
    last_price: float = _column("last_price", _csv_float, 0.0)
    expiry: datetime | None = _column("expiry", _csv_time, None)
    strike_price: float = _column("strike", _csv_float, 0.0)
    tick_size: float = _column("tick_size", _csv_float, 0.0)
    lot_size: float = _column("lot_size", _csv_float, 0.0)
    instrument_type: str = _column("instrument_type", _csv_str, "")
    segment: str = _column("segment", _csv_str, "")
    exchange: str = _column("exchange", _csv_str, "")


@dataclass
class MFInstrument:
    """A mutual fund from the mutual fund instrument list."""

    tradingsymbol: str = _column("tradingsymbol", _csv_str, "")
    name: str = _column("name", _csv_str, "")
    last_price: float = _column("last_price", _csv_float, 0.0)
    amc: str = _column("amc", _csv_str, "")
    purchase_allowed: bool = _column("purchase_allowed", _csv_bool, False)
    redemption_allowed: bool = _column("redemption_allowed", _csv_bool, False)
    minimum_purchase_amount: float = _column(
        "minimum_purchase_amount", _csv_float, 0.0
    )
    purchase_amount_multiplier: float = _column(
        "purchase_amount_multiplier", _csv_float, 0.0
    )
    minimum_additional_purchase_amount: float = _column(
        "additional_purchase_multiple", _csv_float, 0.0
    )
    minimum_redemption_quantity: float = _column(
        "minimum_redemption_quantity", _csv_float, 0.0
    )
    redemption_quantity_multiplier: float = _column(
        "redemption_quantity_multiplier", _csv_float, 0.0
    )
    dividend_type: str = _column("dividend_type", _csv_str, "")
    scheme_type: str = _column("scheme_type", _csv_str, "")
    plan: str = _column("plan", _csv_str, "")
    settlement_type: str = _column("settlement_type", _csv_str, "")
    last_price_date: datetime | None = _column("last_price_date", _csv_time, None)


_Row = TypeVar("_Row", Instrument, MFInstrument)


def _parse_csv(text: str | bytes, cls: type[_Row]) -> list[_Row]:
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    reader = csv.reader(io.StringIO(text))
    try:
        header = next(reader, None)
        if header is None:
            raise ValueError("empty csv file given")
        positions = {name: index for index, name in enumerate(header)}
        columns = [
            (item.name, positions[item.metadata["csv"]], item.metadata["convert"])
            for item in fields(cls)
            if item.metadata["csv"] in positions
        ]
        rows = []
        for record in reader:
            if not record:
                continue
            values = {
                name: convert(record[index] if index < len(record) else "")
                for name, index, convert in columns
            }
            rows.append(cls(**values))
        return rows
    except (ValueError, csv.Error) as exc:
        raise new_error(GENERAL_ERROR, f"Error parsing csv response: {exc}") from exc


def parse_instruments(text: str | bytes) -> list[Instrument]:
    """Parse the CSV instrument list."""
    return _parse_csv(text, Instrument)


def parse_mf_instruments(text: str | bytes) -> list[MFInstrument]:
    """Parse the CSV mutual fund instrument list."""
    return _parse_csv(text, MFInstrument)


__all__ = [
    "HistoricalData",
    "Instrument",
    "KiteError",
    "MFInstrument",
    "QuoteItem",
    "QuoteLTPItem",
    "QuoteOHLCItem",
    "format_historical_data",
    "historical_params",
    "parse_instruments",
    "parse_mf_instruments",
    "quote_params",
]