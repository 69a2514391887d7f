"""Date window helpers.

Every helper takes an optional ``now`` (``date`` or ``datetime``) so that
callers and tests can pin the clock; ``None`` means the wall clock.
Ledger dates are ``YYYY-MM-DD`` strings.
"""

from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

import pandas as pd

DateLike = Union[date, datetime, str]

_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def today(now: Optional[DateLike] = None) -> date:
    """Return the evaluation date for ``now`` (wall clock when omitted)."""
    if now is None:
        return date.today()
    return parse_date(now)


def parse_date(value: DateLike) -> date:
    """Coerce a date, datetime, pandas Timestamp or ISO string to ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"cannot interpret {value!r} as a date")


def format_date(value: DateLike) -> str:
    return parse_date(value).isoformat()


def is_valid_date_string(value: object) -> bool:
    """True for real calendar dates written as ``YYYY-MM-DD``."""
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def current_date(now: Optional[DateLike] = None) -> str:
    return today(now).isoformat()


def current_month(now: Optional[DateLike] = None) -> str:
    """``YYYY-MM`` key for the month containing ``now``."""
    return today(now).isoformat()[:7]


def start_of_week(now: Optional[DateLike] = None) -> date:
    """Most recent Monday on or before ``now``."""
    day = today(now)
    return day - timedelta(days=day.weekday())


def days_ago(days: int, now: Optional[DateLike] = None) -> date:
    return today(now) - timedelta(days=days)


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_dates(now: Optional[DateLike] = None) -> list:
    """All ``YYYY-MM-DD`` keys of the month containing ``now``."""
    day = today(now)
    first = day.replace(day=1)
    return [d.date().isoformat() for d in pd.date_range(first, periods=days_in_month(day.year, day.month), freq='D')]


def is_current_month(date_string: Optional[str], now: Optional[DateLike] = None) -> bool:
    return bool(date_string) and date_string.startswith(current_month(now))


def is_today(date_string: Optional[str], now: Optional[DateLike] = None) -> bool:
    return bool(date_string) and date_string == current_date(now)


def is_current_week(date_string: Optional[str], now: Optional[DateLike] = None) -> bool:
    """True when ``date_string`` falls between this week's Monday and today."""
    if not date_string:
        return False
    return start_of_week(now).isoformat() <= date_string <= current_date(now)
