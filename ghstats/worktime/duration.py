"""Business-time differences between instants, honoring the working window."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from ghstats.errors import InvalidIntervalError
from ghstats.worktime.calendar import (
    WORKING_DAYS,
    WORKING_HOURS_PER_DAY,
    is_working_day,
    is_working_hour,
    resolve_zone,
    to_local,
    working_window,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import date, datetime

    import pendulum

    from ghstats.worktime.calendar import TimeZoneLike

LOGGER = logging.getLogger(__name__)

_ZERO = timedelta(0)


def diff_working_duration(start: datetime, end: datetime, tz: TimeZoneLike) -> timedelta:
    """Return the working time elapsed between two instants in a time zone.

    Only time inside the Monday to Friday, 09:00-17:00 local window counts.
    When both instants fall inside the window of the same working day the raw
    elapsed time is returned as is; otherwise every working day touched by the
    interval contributes the part of the interval that overlaps its window::

        Fri 10:00 -> Mon 14:00   = 7h (Fri) + 5h (Mon) = 12h
        Mon 06:00 -> Mon 12:00   = 3h
        Sat 10:00 -> Sun 20:00   = 0

    Raises:
        InvalidIntervalError: If ``end`` is before ``start``.
    """
    if end < start:
        raise InvalidIntervalError(start, end)

    zone = resolve_zone(tz)
    local_start = to_local(start, zone)
    local_end = to_local(end, zone)

    if (
        local_start.date() == local_end.date()
        and is_working_day(local_start, zone)
        and is_working_hour(local_start, zone)
        and is_working_hour(local_end, zone)
    ):
        return _elapsed(local_start, local_end)

    total = _ZERO
    for day in _calendar_days(local_start.date(), local_end.date()):
        if day.isoweekday() not in WORKING_DAYS:
            continue
        opens, closes = working_window(day, zone)
        segment_start = max(local_start, opens)
        segment_end = min(local_end, closes)
        if segment_end > segment_start:
            total += _elapsed(segment_start, segment_end)
    return _clamped(total, start, end)


def format_working_duration(duration: timedelta, hours_per_day: int = WORKING_HOURS_PER_DAY) -> str:
    """Render a working duration in working days of ``hours_per_day`` hours.

    - 11h -> ``1 day and 3:00:00 [based on 8h working day]``
    - 2h 49m -> ``2:49:00``
    - 24h -> ``3 days [based on 8h working day]``
    """
    day_length = timedelta(hours=hours_per_day)
    if duration < day_length:
        return str(duration)
    whole_days, remainder = divmod(duration, day_length)
    label = "day" if whole_days == 1 else "days"
    rendered = f"{whole_days} {label}"
    if remainder > _ZERO:
        rendered += f" and {remainder}"
    return f"{rendered} [based on {hours_per_day}h working day]"


def _calendar_days(first: date, last: date) -> Iterator[date]:
    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)


def _elapsed(earlier: pendulum.DateTime, later: pendulum.DateTime) -> timedelta:
    # Absolute timeline difference; wall-clock subtraction would drift across DST changes.
    return timedelta(
        seconds=later.int_timestamp - earlier.int_timestamp,
        microseconds=later.microsecond - earlier.microsecond,
    )


def _clamped(duration: timedelta, start: datetime, end: datetime) -> timedelta:
    if duration < _ZERO:
        LOGGER.warning(
            "Negative working duration %s between %s and %s, clamping to zero",
            duration,
            start.isoformat(),
            end.isoformat(),
        )
        return _ZERO
    return duration
