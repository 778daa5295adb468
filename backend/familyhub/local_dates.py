"""Calendar-day resolution in a learner's own timezone.

"Today" for progress and rewards is always the learner's wall-clock day,
never the server's UTC day. Unknown timezone names are rejected rather
than silently replaced with UTC.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Optional

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import InvalidArgumentError

_DAY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def resolve_timezone(name: Optional[str]) -> ZoneInfo:
    trimmed = (name or "").strip()
    if not trimmed:
        raise InvalidArgumentError("Timezone name is required.")
    try:
        return ZoneInfo(trimmed)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        # Directory names such as "America" and overlong names surface as OSError.
        raise InvalidArgumentError(f"Unknown timezone: {trimmed!r}") from exc


def ensure_utc(instant: datetime) -> datetime:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant


def to_utc(instant: datetime) -> datetime:
    return ensure_utc(instant).astimezone(timezone.utc)


def local_day(instant: datetime, timezone_name: str) -> str:
    """Project ``instant`` into the named zone and return ``YYYY-MM-DD``."""
    zone = resolve_timezone(timezone_name)
    return ensure_utc(instant).astimezone(zone).date().isoformat()


def today(timezone_name: str, *, now: Optional[datetime] = None) -> str:
    return local_day(now or datetime.now(timezone.utc), timezone_name)


def parse_day(value: str) -> date:
    if not isinstance(value, str) or not _DAY_PATTERN.match(value):
        raise InvalidArgumentError(f"Expected a YYYY-MM-DD day, got {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidArgumentError(f"Invalid calendar day: {value!r}") from exc


def day_start_utc(day: str, timezone_name: str) -> datetime:
    """UTC instant at which the local ``day`` begins in the named zone."""
    zone = resolve_timezone(timezone_name)
    local_midnight = datetime.combine(parse_day(day), time.min, tzinfo=zone)
    return local_midnight.astimezone(timezone.utc)


__all__ = [
    "day_start_utc",
    "ensure_utc",
    "local_day",
    "parse_day",
    "resolve_timezone",
    "to_utc",
    "today",
]
