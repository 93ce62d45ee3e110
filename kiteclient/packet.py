"""Decoding of the binary market feed packets into ticks."""

from __future__ import annotations

import struct
from datetime import datetime, timezone
from enum import Enum, IntEnum

from .snaps import DEPTH_LEVELS, OHLC, Depth, DepthItem, Tick


class Mode(str, Enum):
    """Subscription modes of the market feed."""

    LTP = "ltp"
    QUOTE = "quote"
    FULL = "full"


class Segment(IntEnum):
    """Exchange segments, as carried in the low byte of an instrument token."""

    NSE_CM = 1
    NSE_FO = 2
    NSE_CD = 3
    BSE_CM = 4
    BSE_FO = 5
    BSE_CD = 6
    MCX_FO = 7
    MCX_SX = 8
    INDICES = 9


MODE_LTP_LENGTH = 8
MODE_QUOTE_INDEX_LENGTH = 28
MODE_FULL_INDEX_LENGTH = 32
MODE_QUOTE_LENGTH = 44
MODE_FULL_LENGTH = 184

_DEPTH_BUY_OFFSET = 64
_DEPTH_SELL_OFFSET = 124
_DEPTH_ENTRY_SIZE = 12

_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")


def _u16(data: bytes, offset: int) -> int:
    return _U16.unpack_from(data, offset)[0]


def _u32(data: bytes, offset: int) -> int:
    return _U32.unpack_from(data, offset)[0]


def _timestamp(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def convert_price(segment: int, value: float) -> float:
    """Convert a price in paise to rupees, with the segment's precision."""
    if segment == Segment.NSE_CD:
        return value / 10000000.0
    if segment == Segment.BSE_CD:
        return value / 10000.0
    return value / 100.0


def split_packets(data: bytes) -> list[bytes]:
    """Split a binary message into its individual tick packets.

    Raises ValueError when the message is shorter than its headers say.
    """
    data = bytes(data)
    if len(data) < 2:
        return []

    count = _u16(data, 0)
    packets: list[bytes] = []
    offset = 2
    for _ in range(count):
        if offset + 2 > len(data):
            raise ValueError("truncated packet header")
        length = _u16(data, offset)
        start = offset + 2
        end = start + length
        if end > len(data):
            raise ValueError("truncated packet body")
        packets.append(data[start:end])
        offset = end
    return packets


def _depth(data: bytes, offset: int, segment: int) -> tuple[DepthItem, ...]:
    return tuple(
        DepthItem(
            quantity=_u32(data, position),
            price=convert_price(segment, float(_u32(data, position + 4))),
            orders=_u16(data, position + 8),
        )
        for position in range(
            offset, offset + DEPTH_LEVELS * _DEPTH_ENTRY_SIZE, _DEPTH_ENTRY_SIZE
        )
    )


def parse_packet(data: bytes) -> Tick:
    """Parse a single tick packet.

    Raises ValueError when the packet length matches no known mode.
    """
    data = bytes(data)
    size = len(data)
    if size not in (
        MODE_LTP_LENGTH,
        MODE_QUOTE_INDEX_LENGTH,
        MODE_FULL_INDEX_LENGTH,
    ) and size < MODE_QUOTE_LENGTH:
        raise ValueError(f"invalid packet length: {size}")

    token = _u32(data, 0)
    segment = token & 0xFF
    is_index = segment == Segment.INDICES

    def price(offset: int) -> float:
        return convert_price(segment, float(_u32(data, offset)))

    if size == MODE_LTP_LENGTH:
        return Tick(
            mode=Mode.LTP.value,
            instrument_token=token,
            is_tradable=not is_index,
            is_index=is_index,
            last_price=price(4),
        )

    if size in (MODE_QUOTE_INDEX_LENGTH, MODE_FULL_INDEX_LENGTH):
        last_price = price(4)
        close_price = price(20)
        tick = Tick(
            mode=Mode.QUOTE.value,
            instrument_token=token,
            is_tradable=not is_index,
            is_index=is_index,
            last_price=last_price,
            net_change=last_price - close_price,
            ohlc=OHLC(high=price(8), low=price(12), open=price(16), close=close_price),
        )
        if size == MODE_FULL_INDEX_LENGTH:
            tick.mode = Mode.FULL.value
            tick.timestamp = _timestamp(_u32(data, 28))
        return tick

    last_price = price(4)
    close_price = price(40)
    tick = Tick(
        mode=Mode.QUOTE.value,
        instrument_token=token,
        is_tradable=not is_index,
        is_index=is_index,
        last_price=last_price,
        last_traded_quantity=_u32(data, 8),
        average_trade_price=price(12),
        volume_traded=_u32(data, 16),
        total_buy_quantity=_u32(data, 20),
        total_sell_quantity=_u32(data, 24),
        ohlc=OHLC(open=price(28), high=price(32), low=price(36), close=close_price),
    )

    if size == MODE_FULL_LENGTH:
        tick.mode = Mode.FULL.value
        tick.last_trade_time = _timestamp(_u32(data, 44))
        tick.oi = _u32(data, 48)
        tick.oi_day_high = _u32(data, 52)
        tick.oi_day_low = _u32(data, 56)
        tick.timestamp = _timestamp(_u32(data, 60))
        tick.net_change = last_price - close_price
        tick.depth = Depth(
            buy=_depth(data, _DEPTH_BUY_OFFSET, segment),
            sell=_depth(data, _DEPTH_SELL_OFFSET, segment),
        )

    return tick


def parse_binary(data: bytes) -> list[Tick]:
    """Parse a binary feed message into its ticks."""
    return [parse_packet(packet) for packet in split_packets(data)]