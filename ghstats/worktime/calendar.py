"""Working-day and working-hour predicates and adjusters for a given time zone.

The working window is fixed: Monday to Friday, from 09:00 (inclusive) to
17:00 (exclusive) local time. Every function converts the instant into the
requested zone first and operates on local wall-clock fields, so zones with
non-whole-hour offsets and DST transitions are handled by pendulum.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

import pendulum
from pendulum.tz.timezone import FixedTimezone, Timezone

if TYPE_CHECKING:
    from datetime import date, datetime

TimeZoneLike = Union[str, Timezone, FixedTimezone]

WORKING_DAYS = frozenset({1, 2, 3, 4, 5})
"""ISO weekdays (Monday=1) considered working days."""

WORKDAY_START_HOUR = 9
WORKDAY_END_HOUR = 17
WORKING_HOURS_PER_DAY = WORKDAY_END_HOUR - WORKDAY_START_HOUR

_SATURDAY = 6
_SUNDAY = 7


def resolve_zone(tz: TimeZoneLike) -> Timezone | FixedTimezone:
    """Return a pendulum time zone for an IANA name or an existing zone."""
    if isinstance(tz, str):
        return pendulum.timezone(tz)
    return tz


def to_local(instant: datetime, tz: TimeZoneLike) -> pendulum.DateTime:
    """Convert an aware instant into a pendulum DateTime in the given zone."""
    if instant.tzinfo is None or instant.utcoffset() is None:
        msg = f"Instant {instant.isoformat()} must be timezone-aware"
        raise ValueError(msg)
    return pendulum.instance(instant).in_timezone(resolve_zone(tz))


def is_working_day(instant: datetime, tz: TimeZoneLike) -> bool:
    """Return True when the local day of the instant is Monday to Friday."""
    return to_local(instant, tz).isoweekday() in WORKING_DAYS


def is_working_hour(instant: datetime, tz: TimeZoneLike) -> bool:
    """Return True when the local hour of the instant lies in [09:00, 17:00)."""
    return WORKDAY_START_HOUR <= to_local(instant, tz).hour < WORKDAY_END_HOUR


def next_working_day_or_same(instant: datetime, tz: TimeZoneLike) -> pendulum.DateTime:
    """Move a weekend instant to the following Monday, keeping its local time of day.

    - Saturday 11:00 -> Monday 11:00
    - Sunday 11:00 -> Monday 11:00
    - Monday 11:00 -> Monday 11:00
    """
    local = to_local(instant, tz)
    weekday = local.isoweekday()
    if weekday == _SATURDAY:
        return local.add(days=2)
    if weekday == _SUNDAY:
        return local.add(days=1)
    return local


def next_working_hour_or_same(instant: datetime, tz: TimeZoneLike) -> pendulum.DateTime:
    """Move an instant outside the daily window to the next 09:00.

    - 06:00 -> 09:00 the same day
    - 17:00 or 19:30 -> 09:00 the next day
    - 11:00 -> unchanged

    Only the hour of day is considered; weekends are left to
    :func:`next_working_day_or_same`.
    """
    local = to_local(instant, tz)
    if local.hour < WORKDAY_START_HOUR:
        return _at_hour(local, WORKDAY_START_HOUR)
    if local.hour >= WORKDAY_END_HOUR:
        return _at_hour(local.add(days=1), WORKDAY_START_HOUR)
    return local


def previous_working_hour(instant: datetime, tz: TimeZoneLike) -> pendulum.DateTime:
    """Return the most recent window boundary at or before the instant.

    - 15:30 -> 09:00 the same day
    - 20:00 -> 17:00 the same day
    - 06:00 -> 17:00 the previous day
    """
    local = to_local(instant, tz)
    if local.hour < WORKDAY_START_HOUR:
        return _at_hour(local.subtract(days=1), WORKDAY_END_HOUR)
    if local.hour >= WORKDAY_END_HOUR:
        return _at_hour(local, WORKDAY_END_HOUR)
    return _at_hour(local, WORKDAY_START_HOUR)


def working_window(day: date, tz: TimeZoneLike) -> tuple[pendulum.DateTime, pendulum.DateTime]:
    """Return the local opening and closing instants of the window on a calendar day."""
    zone = resolve_zone(tz)
    opens = pendulum.datetime(day.year, day.month, day.day, WORKDAY_START_HOUR, tz=zone)
    closes = pendulum.datetime(day.year, day.month, day.day, WORKDAY_END_HOUR, tz=zone)
    return opens, closes


def _at_hour(local: pendulum.DateTime, hour: int) -> pendulum.DateTime:
    return pendulum.datetime(local.year, local.month, local.day, hour, tz=local.timezone)
