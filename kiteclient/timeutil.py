"""Parsing of the timestamp formats used in API responses."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

try:
    from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

    try:
        IST = ZoneInfo("Asia/Kolkata")
    except ZoneInfoNotFoundError:
        IST = timezone(timedelta(hours=5, minutes=30), "IST")
except ImportError:  # pragma: no cover
    IST = timezone(timedelta(hours=5, minutes=30), "IST")

_ZONELESS_LAYOUTS = ("%Y-%m-%d", "%Y-%m-%d %H:%M:%S")
_ZONED_LAYOUT = "%Y-%m-%dT%H:%M:%S%z"
_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(Z|z|[+-]\d{2}:\d{2})$"
)


def _parse_rfc3339(value: str) -> datetime | None:
    match = _RFC3339.match(value)
    if match is None:
        return None
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    micro = int((fraction or "0")[:6].ljust(6, "0"))
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        offset = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
        tz = timezone(sign * offset)
    try:
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), micro, tzinfo=tz,
        )
    except ValueError:
        return None


def parse_time(value: str) -> datetime | None:
    """Parse an API timestamp.

    Returns None for an empty or "null" value. Zoneless values are taken to
    be in Indian Standard Time. Raises ValueError for an unknown format.
    """
    text = value.strip().strip('"').strip()
    if text in ("", "null"):
        return None

    for layout in _ZONELESS_LAYOUTS:
        try:
            return datetime.strptime(text, layout).replace(tzinfo=IST)
        except ValueError:
            continue

    try:
        return datetime.strptime(text, _ZONED_LAYOUT)
    except ValueError:
        pass

    parsed = _parse_rfc3339(text)
    if parsed is not None:
        return parsed

    raise ValueError(f"unknown time format: {value!r}")