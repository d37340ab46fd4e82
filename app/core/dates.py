"""
Date helpers for month-based leave arithmetic.

Everything is normalized to naive UTC calendar dates so that a timestamp near
midnight never lands in a neighbouring month.
"""
import re
from datetime import date, datetime, timezone
from typing import Any, Optional

_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_date(value: Any) -> Optional[date]:
    """
    Parse a date-ish API value.

    Accepts date/datetime objects, "YYYY-MM-DD", full ISO datetimes (a trailing
    "Z" is UTC) and "YYYY-MM". Returns None instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    ym = parse_year_month(text)
    if ym is not None:
        return ym

    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def parse_year_month(value: Any) -> Optional[date]:
    """Parse "YYYY-MM" into the first day of that month."""
    if not isinstance(value, str):
        return None
    match = _YEAR_MONTH_RE.match(value.strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        return None
    return date(year, month, 1)


def format_year_month(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def month_start(value: date) -> date:
    return value.replace(day=1)


def add_months(value: date, months: int) -> date:
    """Shift a first-of-month date by a whole number of months."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month (may be negative)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def policy_start_from_applicable(applicable_from: Any) -> Optional[date]:
    """First-of-month date for a policy's applicableFrom, or None when unset."""
    parsed = parse_date(applicable_from)
    if parsed is None:
        return None
    return month_start(parsed)
