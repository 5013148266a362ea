"""
Clock / Timezone Resolver

Answers "what is the local wall-clock date and hour for this tenant?"
Pure functions over the IANA timezone database (``zoneinfo`` + ``tzdata``);
DST and half-hour offsets are the database's job, not ours.

Accepted timezone representations:
    - IANA names: "America/Chicago", "Asia/Kolkata"
    - Fixed offsets in minutes: 330, -210
    - Fixed offset strings: "+05:30", "UTC-03:30", "GMT+9"
"""

import logging
import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import NamedTuple, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from orderflow.core.exceptions import UnknownTimezoneError

logger = logging.getLogger(__name__)

TimezoneSpec = Union[str, int, None]

_OFFSET_PATTERN = re.compile(
    r"^(?:UTC|GMT)?\s*([+-])(\d{1,2})(?::?(\d{2}))?$",
    re.IGNORECASE,
)


class LocalWallClock(NamedTuple):
    """Wall-clock reading in a tenant's timezone."""
    date: date
    hour: int
    minute: int


def utc_now() -> datetime:
    """Current instant, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(instant: datetime) -> datetime:
    """
    Normalize ``instant`` to aware UTC.

    Naive datetimes are taken to already be UTC; SQLite hands back
    naive values for ``DateTime(timezone=True)`` columns.
    """
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def _fixed_offset(minutes: int, label: str) -> tzinfo:
    try:
        return timezone(timedelta(minutes=minutes))
    except ValueError:
        # Offsets must be strictly within +/- 24h
        raise UnknownTimezoneError(label)


def _parse_offset(value: str) -> Optional[tzinfo]:
    match = _OFFSET_PATTERN.match(value.strip())
    if not match:
        return None
    sign, hours, minutes = match.groups()
    minutes = int(minutes or 0)
    if minutes >= 60:
        raise UnknownTimezoneError(value)
    total = int(hours) * 60 + minutes
    return _fixed_offset(-total if sign == "-" else total, value)


def resolve_timezone(
    timezone_name: TimezoneSpec = None,
    utc_offset_minutes: Optional[int] = None,
) -> tzinfo:
    """
    Resolve a tenant's timezone configuration to a ``tzinfo``.

    The IANA name wins over the fixed offset; with neither configured
    the tenant is on UTC.

    Raises:
        UnknownTimezoneError: if the identifier is not recognised
    """
    if isinstance(timezone_name, int):
        return _fixed_offset(timezone_name, str(timezone_name))

    if timezone_name is not None and timezone_name.strip():
        name = timezone_name.strip()
        offset = _parse_offset(name)
        if offset is not None:
            return offset
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            raise UnknownTimezoneError(name)

    if utc_offset_minutes is not None:
        return _fixed_offset(utc_offset_minutes, str(utc_offset_minutes))

    return timezone.utc


def resolve_timezone_or_utc(
    timezone_name: TimezoneSpec = None,
    utc_offset_minutes: Optional[int] = None,
) -> tzinfo:
    """Like :func:`resolve_timezone`, but degrades to UTC with a warning."""
    try:
        return resolve_timezone(timezone_name, utc_offset_minutes)
    except UnknownTimezoneError as e:
        logger.warning(f"⚠️ {e.message}, falling back to UTC")
        return timezone.utc


def local_wall_clock(instant_utc: datetime, tz: tzinfo) -> LocalWallClock:
    """
    Wall-clock date, hour and minute of ``instant_utc`` in ``tz``.

    Example:
        >>> local_wall_clock(datetime(2026, 3, 1, 18, 45, tzinfo=timezone.utc),
        ...                  ZoneInfo("Asia/Kolkata"))
        LocalWallClock(date=datetime.date(2026, 3, 2), hour=0, minute=15)
    """
    local = ensure_utc(instant_utc).astimezone(tz)
    return LocalWallClock(local.date(), local.hour, local.minute)


def local_date(instant_utc: datetime, tz: tzinfo) -> date:
    """Local calendar date of ``instant_utc`` in ``tz``."""
    return ensure_utc(instant_utc).astimezone(tz).date()
