"""Month-string and calendar-date helpers."""

from __future__ import annotations

import calendar
from datetime import date, datetime
import re

from dateutil.relativedelta import relativedelta

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
DATE_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$")


def is_month(value: object) -> bool:
    return isinstance(value, str) and bool(MONTH_RE.match(value))


def is_date(value: object) -> bool:
    if not isinstance(value, str) or not DATE_RE.match(value):
        return False
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


def parse_month(value: str) -> tuple[int, int]:
    dt = datetime.strptime(value, "%Y-%m")
    return dt.year, dt.month


def parse_date(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_of(day: date) -> str:
    return format_month(day.year, day.month)


def add_months(month: str, count: int) -> str:
    year, mon = parse_month(month)
    shifted = date(year, mon, 1) + relativedelta(months=count)
    return format_month(shifted.year, shifted.month)


def month_bounds(month: str) -> tuple[date, date]:
    """Return the first and last calendar day of ``month``."""
    year, mon = parse_month(month)
    last_day = calendar.monthrange(year, mon)[1]
    return date(year, mon, 1), date(year, mon, last_day)


def months_of_year(year: int) -> list[str]:
    return [format_month(year, mon) for mon in range(1, 13)]


def installment_end_month(start_month: str, installments: int) -> str:
    return add_months(start_month, installments - 1)


def is_active_in_month(target_month: str, start_month: str, installments: int) -> bool:
    """True when ``target_month`` falls inside the installment window.

    The window covers ``installments`` consecutive months starting at
    ``start_month``. Zero-padded ``YYYY-MM`` strings compare correctly as text.
    """
    if installments < 1:
        return False
    end_month = installment_end_month(start_month, installments)
    return start_month <= target_month <= end_month


def inclusive_days(start: date, end: date) -> int:
    if end < start:
        return 0
    return (end - start).days + 1


def overlap_days(month: str, start_date: str, end_date: str) -> int:
    """Days of ``[start_date, end_date]`` that fall inside ``month``, both ends inclusive."""
    month_start, month_end = month_bounds(month)
    trip_start = parse_date(start_date)
    trip_end = parse_date(end_date)
    if trip_start > month_end or trip_end < month_start:
        return 0
    return inclusive_days(max(trip_start, month_start), min(trip_end, month_end))
