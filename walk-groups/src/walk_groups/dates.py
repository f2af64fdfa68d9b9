"""Date and time helpers shared by the client and the grouping service."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Union

import structlog
from dateutil import parser as date_parser
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

LOGGER = structlog.get_logger(__name__)

WEEKDAY_NAMES = {
    0: "monday",
    1: "tuesday",
    2: "wednesday",
    3: "thursday",
    4: "friday",
    5: "saturday",
    6: "sunday",
}

TimeValue = Union[str, time, datetime, None]


def get_zone(timezone_name: str) -> ZoneInfo:
    """Return a ZoneInfo instance, defaulting to UTC on failure."""
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        LOGGER.warning("dates.unknown_timezone", timezone=timezone_name)
        return ZoneInfo("UTC")


def today_in_timezone(timezone_name: str) -> date:
    """Current calendar date in the configured timezone."""
    return datetime.now(tz=get_zone(timezone_name)).date()


def parse_iso_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` date, raising ``ValueError`` otherwise."""
    return date.fromisoformat(value.strip())


def weekday_name(value: date) -> str:
    """Lower-case weekday name used by recurring appointment flags."""
    return WEEKDAY_NAMES[value.weekday()]


def minutes_since_midnight(value: TimeValue) -> Optional[int]:
    """
    Best-effort conversion of an appointment start time to minutes past midnight.

    Accepts ``time``/``datetime`` objects as well as strings such as ``"09:30"``,
    ``"9:30 AM"`` or full ISO timestamps. Returns ``None`` when nothing usable
    can be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.hour * 60 + value.minute
    if isinstance(value, time):
        return value.hour * 60 + value.minute

    cleaned = str(value).strip()
    if not cleaned:
        return None
    try:
        parsed = date_parser.parse(cleaned)
    except (ValueError, OverflowError) as exc:
        LOGGER.debug("dates.time_parse_failed", value=cleaned, error=str(exc))
        return None
    return parsed.hour * 60 + parsed.minute
