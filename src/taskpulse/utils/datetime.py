"""Calendar utilities for naive local dates.

All scheduling in taskpulse happens on naive local calendar dates. This
module centralises the calendar arithmetic (month and year offsets with
day-of-month clamping), the date/datetime coercions used when reading task
fields, and the injectable clocks that stand in for "now".
"""

from calendar import isleap, monthrange
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, TypeVar, Union

DateLike = TypeVar("DateLike", date, datetime)


class LeapDayPolicy(Enum):
    """What a Feb 29 anchor becomes in a non-leap target year."""
    CLAMP = "clamp"  # Feb 28
    ROLL_FORWARD = "roll_forward"  # Mar 1


class Clock:
    """Source of the current instant."""

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Reads the local wall clock."""

    def now(self) -> datetime:
        return local_now()


class FixedClock(Clock):
    """Always returns the same instant. Used in tests and reports."""

    def __init__(self, instant: Union[date, datetime]):
        if not isinstance(instant, datetime):
            instant = datetime.combine(instant, datetime.min.time())
        self.instant = strip_tz(instant)

    def now(self) -> datetime:
        return self.instant

    def __repr__(self) -> str:
        return f"FixedClock({self.instant.isoformat()})"


def local_now() -> datetime:
    """Return the current naive local datetime."""
    return datetime.now()


def strip_tz(dt: Optional[datetime]) -> Optional[datetime]:
    """Drop timezone info, converting aware values to local time first.

    Args:
        dt: Datetime to normalise, or None

    Returns:
        Naive local datetime, or None if input was None
    """
    if dt is None:
        return None
    if dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    return dt


def to_date(value: Optional[Union[date, datetime]]) -> Optional[date]:
    """Return the calendar date of a date or datetime, dropping time-of-day."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return strip_tz(value).date()
    return value


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given month."""
    return monthrange(year, month)[1]


def add_months(value: DateLike, months: int) -> DateLike:
    """Shift a date or datetime by a number of calendar months.

    The day of month is clamped to the last valid day of the target month,
    so Jan 31 + 1 month is Feb 28 (Feb 29 in a leap year). Negative offsets
    and offsets spanning several years roll the year accordingly. Time of day
    is preserved for datetimes.
    """
    month_index = value.year * 12 + (value.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(value.day, days_in_month(year, month))
    return value.replace(year=year, month=month, day=day)


def add_years(value: DateLike, years: int,
              policy: LeapDayPolicy = LeapDayPolicy.CLAMP) -> DateLike:
    """Shift a date or datetime by a number of years.

    Month, day and time of day stay fixed. A Feb 29 value landing in a
    non-leap year is resolved by ``policy``.
    """
    year = value.year + years
    if value.month == 2 and value.day == 29 and not isleap(year):
        if policy is LeapDayPolicy.ROLL_FORWARD:
            return value.replace(year=year, month=3, day=1)
        return value.replace(year=year, day=28)
    return value.replace(year=year)


def add_days(value: DateLike, days: int) -> DateLike:
    return value + timedelta(days=days)


def date_range(end: date, days: int):
    """Yield ``days`` consecutive dates ending at ``end`` (inclusive), oldest first."""
    start = end - timedelta(days=days - 1)
    for offset in range(max(days, 0)):
        yield start + timedelta(days=offset)


def parse_datetime(value: Optional[Union[str, date, datetime]]) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime into a naive datetime.

    Date-only input becomes midnight of that day. Raises ValueError for
    strings that are not ISO-8601.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return strip_tz(value)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return strip_tz(datetime.fromisoformat(text))


def to_iso_string(dt: Optional[Union[date, datetime]]) -> Optional[str]:
    """Convert a date or datetime to an ISO string, or None."""
    if dt is None:
        return None
    return dt.isoformat()
