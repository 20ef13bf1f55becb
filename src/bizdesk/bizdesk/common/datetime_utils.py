from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Union

ANALYTICS_PERIODS = ("last7days", "last30days", "last90days", "thisYear", "allTime")
ALL_TIME_START = date(2000, 1, 1)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    value = (value or "").strip()
    if not value:
        return None
    return parse_iso_date(value[:10])


def as_date(value: Union[date, datetime, None]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it easily.
    """
    return datetime.now()


def year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def months_active(start: Optional[date], end: Optional[date], as_of: date) -> int:
    """Calendar months touched between start and end (or as_of), at least 1."""
    if not start:
        return 1
    end = end or as_of
    months = (end.year - start.year) * 12 + (end.month - start.month) + 1
    return max(1, months)


def one_month_before(day: date) -> date:
    """Same day of the previous month, clamped to that month's length."""
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def next_anniversary(born: date, today: date) -> date:
    """Next occurrence of a yearly date on or after today (29 Feb falls on 28 Feb in common years)."""

    def in_year(year: int) -> date:
        day = born.day
        if born.month == 2 and day == 29 and not calendar.isleap(year):
            day = 28
        return date(year, born.month, day)

    candidate = in_year(today.year)
    if candidate < today:
        candidate = in_year(today.year + 1)
    return candidate


def period_range(period: str, now: datetime) -> tuple[datetime, datetime]:
    """Resolve an analytics period name; unknown names fall back to last30days."""
    starts = {
        "last7days": now - timedelta(days=7),
        "last30days": now - timedelta(days=30),
        "last90days": now - timedelta(days=90),
        "thisYear": datetime(now.year, 1, 1),
        "allTime": datetime.combine(ALL_TIME_START, datetime.min.time()),
    }
    return starts.get(period, starts["last30days"]), now


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _ordinal_suffix(day: int) -> str:
    if 3 < day < 21:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_date_with_ordinal(value: Union[date, datetime, None]) -> str:
    """e.g. 'Monday, 3rd March 2025'."""
    d = as_date(value)
    if not d:
        return "Invalid Date"
    return f"{d.strftime('%A')}, {d.day}{_ordinal_suffix(d.day)} {d.strftime('%B')} {d.year}"


def format_date_range(start: Union[date, datetime, None], end: Union[date, datetime, None]) -> str:
    s, e = as_date(start), as_date(end)
    if not s or not e:
        return "Invalid Date"
    if s == e:
        return format_date_with_ordinal(s)
    return f"{format_date_with_ordinal(s)} - {format_date_with_ordinal(e)}"
