# availability_engine/core/timeutil.py
"""
Boundary helpers for ISO-8601 values, owner timezones and weekday indexes.

Weekday convention used everywhere in the engine: 0 = Sunday ... 6 = Saturday.
Python's date.weekday() (0 = Monday) and ISO weekdays (1 = Monday ... 7 =
Sunday) must be converted with the helpers below, never ad hoc.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta

import pytz
from dateutil.rrule import FR, MO, SA, SU, TH, TU, WE

from availability_engine.core.errors import (
    InvalidTimezoneError,
    UnparsableTimestampError,
)

_RRULE_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)

_TIME_RE = re.compile(r"^(?P<h>\d{2}):(?P<m>\d{2})(?::(?P<s>\d{2}))?$")


def get_timezone(name: str | None) -> pytz.BaseTzInfo:
    """
    Resolve an IANA timezone name. There is no default zone: a missing or
    unknown name is an error.
    """
    if not name:
        raise InvalidTimezoneError("A timezone is required; none was given.")
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as exc:
        raise InvalidTimezoneError(f"Unknown timezone '{name}'.") from exc


def parse_date(value: date | str) -> date:
    """Parse a `YYYY-MM-DD` string (dates pass through untouched)."""
    if isinstance(value, datetime):
        raise UnparsableTimestampError(f"Expected a date, got date-time {value!r}.")
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise UnparsableTimestampError(f"Unparsable date {value!r}; expected YYYY-MM-DD.") from exc


def parse_time_of_day(value: time | str) -> time:
    """Parse `HH:MM` or `HH:MM:SS` into a time."""
    if isinstance(value, time):
        return value
    match = _TIME_RE.match(str(value).strip())
    if match is None:
        raise UnparsableTimestampError(f"Unparsable time {value!r}; expected HH:MM[:SS].")
    hour, minute = int(match["h"]), int(match["m"])
    second = int(match["s"] or 0)
    try:
        return time(hour, minute, second)
    except ValueError as exc:
        raise UnparsableTimestampError(f"Time out of range: {value!r}.") from exc


def parse_datetime(value: datetime | str) -> datetime:
    """
    Parse an ISO-8601 date-time with an explicit offset or `Z`.

    Naive values are rejected: the engine never guesses a timezone.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        raw = str(value).strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise UnparsableTimestampError(f"Unparsable date-time {value!r}.") from exc

    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise UnparsableTimestampError(
            f"Date-time {value!r} has no offset; use an explicit offset or 'Z'."
        )
    return parsed


def localize(naive: datetime, tz: pytz.BaseTzInfo) -> datetime:
    """
    Attach `tz` to a wall-clock datetime.

    Wall times that fall in a DST gap are shifted forward by normalize().
    """
    return tz.normalize(tz.localize(naive, is_dst=False))


def combine_local(day: date, at: time, tz: pytz.BaseTzInfo) -> datetime:
    return localize(datetime.combine(day, at), tz)


def start_of_next_day(day: date, tz: pytz.BaseTzInfo) -> datetime:
    return combine_local(day + timedelta(days=1), time.min, tz)


def sunday_based_weekday(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def from_iso_weekday(iso_weekday: int) -> int:
    """Convert ISO 1 = Monday ... 7 = Sunday into the engine convention."""
    if not 1 <= iso_weekday <= 7:
        raise ValueError(f"ISO weekday must be 1..7, got {iso_weekday}")
    return iso_weekday % 7


def to_iso_weekday(day_of_week: int) -> int:
    """Convert 0 = Sunday ... 6 = Saturday into ISO 1 = Monday ... 7 = Sunday."""
    if not 0 <= day_of_week <= 6:
        raise ValueError(f"day_of_week must be 0..6, got {day_of_week}")
    return day_of_week or 7


def to_rrule_weekday(day_of_week: int):
    """Map 0 = Sunday ... 6 = Saturday onto dateutil's MO..SU constants."""
    return _RRULE_WEEKDAYS[to_iso_weekday(day_of_week) - 1]
