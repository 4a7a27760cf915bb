"""
Time Bucketing

Pure calendar helpers used to build trailing windows and zero-filled period
series. All instants are naive datetimes expressed in UTC, the same
convention as the stored `delivery_date` values.

Period keys:
- month: ``YYYY-MM``
- day:   ``YYYY-MM-DD``
- week:  ``YYYY-MM-DD`` of the Monday starting the week
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Tuple, Union

DateLike = Union[date, datetime]

TRAILING_WINDOW_MONTHS = (12, 6, 3, 1)


def utc_now() -> datetime:
    """Current instant as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_reference(value: datetime) -> datetime:
    """Drop sub-second precision from a reference instant."""
    return value.replace(microsecond=0)


def to_iso(value: datetime) -> str:
    """
    Serialize a naive UTC instant as ISO-8601 with milliseconds and a ``Z``.

    Aware datetimes are converted to UTC first.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"


def subtract_months(value: datetime, months: int) -> datetime:
    """
    Calendar-aware month subtraction.

    The day of month is clamped to the length of the target month
    (Mar 31 - 1 month -> Feb 28/29); time of day is preserved.
    """
    month_index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def month_key(value: DateLike) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def day_key(value: DateLike) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def week_start(value: DateLike) -> date:
    """Monday on or before the given day (Sunday maps six days back)."""
    day = value.date() if isinstance(value, datetime) else value
    return day - timedelta(days=day.weekday())


def week_start_key(value: DateLike) -> str:
    return day_key(week_start(value))


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def generate_month_range(start: DateLike, end: DateLike) -> List[str]:
    """Inclusive month keys from the month of ``start`` to the month of ``end``."""
    keys: List[str] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        keys.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return keys


def generate_day_range(start: DateLike, end: DateLike) -> List[str]:
    """Inclusive day keys from the day of ``start`` to the day of ``end``."""
    keys: List[str] = []
    cursor = _as_date(start)
    last = _as_date(end)
    while cursor <= last:
        keys.append(day_key(cursor))
        cursor += timedelta(days=1)
    return keys


def generate_week_range(start: DateLike, end: DateLike) -> List[str]:
    """
    Inclusive Monday keys covering ``start`` through ``end``.

    The first key is the Monday of the week containing ``start``.
    """
    if _as_date(start) > _as_date(end):
        return []
    keys: List[str] = []
    cursor = week_start(start)
    last = _as_date(end)
    while cursor <= last:
        keys.append(day_key(cursor))
        cursor += timedelta(weeks=1)
    return keys


@dataclass(frozen=True)
class TrailingWindow:
    """Window starting ``months`` back from ``end``; both bounds inclusive."""
    months: int
    start: datetime
    end: datetime

    def contains(self, value: datetime) -> bool:
        return self.start <= value <= self.end

    @property
    def name(self) -> str:
        suffix = "month" if self.months == 1 else "months"
        return f"last_{self.months}_{suffix}"


def trailing_window(now: datetime, months: int) -> TrailingWindow:
    return TrailingWindow(months=months, start=subtract_months(now, months), end=now)


def trailing_windows(now: datetime) -> Dict[int, TrailingWindow]:
    """The 12/6/3/1 month windows ending at ``now``, keyed by month count."""
    return {months: trailing_window(now, months) for months in TRAILING_WINDOW_MONTHS}


def year_bounds(year: int) -> Tuple[datetime, datetime]:
    """Half-open ``[Jan 1 year, Jan 1 year+1)`` bounds."""
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


@dataclass(frozen=True)
class MonthPeriod:
    """A calendar month ``[start, end)`` with a display label."""
    start: datetime
    end: datetime
    label: str


def month_bounds(reference: datetime, months_ago: int) -> MonthPeriod:
    """
    Calendar month ``months_ago`` whole months before the reference month.

    ``months_ago=1`` is the last completed month.
    """
    first_of_reference = datetime(reference.year, reference.month, 1)
    start = subtract_months(first_of_reference, months_ago)
    end = subtract_months(start, -1)
    label = f"{calendar.month_name[start.month]} {start.year}"
    return MonthPeriod(start=start, end=end, label=label)
