"""Date manipulation utilities"""

import calendar
from datetime import date, datetime, timezone


def utc_today() -> date:
    """Current calendar date in UTC"""
    return datetime.now(timezone.utc).date()


def utc_date_key() -> str:
    """Current UTC date as YYYY-MM-DD, the rate cache key"""
    return utc_today().isoformat()


def month_key(value: date | str) -> str:
    """YYYY-MM for a date or ISO date string"""
    if isinstance(value, str):
        return value[:7]
    return f"{value.year:04d}-{value.month:02d}"


def add_months(from_date: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's length"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(older: str, newer: str) -> int:
    """Whole months from one YYYY-MM key to another"""
    older_year, older_month = (int(part) for part in older.split("-"))
    newer_year, newer_month = (int(part) for part in newer.split("-"))
    return (newer_year - older_year) * 12 + (newer_month - older_month)


def rolling_window_start(today: date | None = None) -> date:
    """First day of the same month one year ago, the lower bound for history queries"""
    today = today or utc_today()
    return date(today.year - 1, today.month, 1)
