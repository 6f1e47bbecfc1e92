"""
Calendar helpers: date arithmetic, weekday names and lenient date parsing.

Configuration files and spreadsheets encode dates in many ways
(native cells, serial numbers, "2025-01-06", "6/1/2025", ISO timestamps).
Everything is normalized to the canonical "YYYY-MM-DD" string here.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, Iterator, Optional


DAYS_OF_WEEK = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

INVALID_DATE = "Invalid Date"

# Spreadsheet serial day 0
SERIAL_EPOCH = datetime(1899, 12, 30)

# Serial values carrying a time at or after 20:00 are the previous midnight
# shifted by a negative UTC offset when the workbook was written.
SERIAL_ROLLOVER_FRACTION = 20 / 24

# Serials written with 15 significant digits land just below 20:00
SERIAL_FRACTION_TOLERANCE = 1e-9

_ISO_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})")


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _from_serial(value: float) -> date:
    whole = int(value)
    fraction = value - whole
    day = (SERIAL_EPOCH + timedelta(days=whole)).date()
    if fraction >= SERIAL_ROLLOVER_FRACTION - SERIAL_FRACTION_TOLERANCE:
        day += timedelta(days=1)
    return day


def format_date(value: Any) -> str:
    """
    Format a date (or anything parse_flexible_date understands) as YYYY-MM-DD.

    Never raises: unparseable values give INVALID_DATE.
    """
    d = _as_date(value)
    if d is not None:
        return d.isoformat()
    d = to_date(value)
    return d.isoformat() if d is not None else INVALID_DATE


def day_name(value: Any) -> str:
    """
    Return the English weekday name ("Monday" ... "Sunday").
    """
    d = _as_date(value) or to_date(value)
    if d is None:
        raise ValueError(f"Invalid date: {value!r}")
    return DAYS_OF_WEEK[d.weekday()]


def parse_flexible_date(value: Any) -> str:
    """
    Normalize a date in any supported encoding to "YYYY-MM-DD".

    Supported:
    - date / datetime objects
    - spreadsheet serial numbers (epoch 1899-12-30)
    - strings starting with YYYY-MM-DD
    - D/M/YYYY and D-M-YYYY strings
    - other ISO 8601 strings

    Empty input gives "". Anything unrecognized is returned unchanged.
    """
    if value is None:
        return ""

    d = _as_date(value)
    if d is not None:
        return d.isoformat()

    # bool is an int subclass, never a serial number
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return _from_serial(float(value)).isoformat()
        except (OverflowError, ValueError):
            return str(value)

    text = str(value).strip()
    if not text:
        return ""

    if _ISO_PREFIX.match(text):
        return text[:10]

    m = _DAY_MONTH_YEAR.match(text)
    if m:
        day_s, month_s, year_s = m.groups()
        return f"{year_s}-{month_s.zfill(2)}-{day_s.zfill(2)}"

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return value if isinstance(value, str) else text


def to_date(value: Any) -> Optional[date]:
    """
    Strict variant: return a date object or None if the value is not a real date.
    """
    d = _as_date(value)
    if d is not None:
        return d
    normalized = parse_flexible_date(value)
    if not isinstance(normalized, str) or not normalized:
        return None
    try:
        return date.fromisoformat(normalized)
    except ValueError:
        return None


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def add_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return d.replace(year=d.year + years, day=28)


def date_range(start: date, end_exclusive: date) -> Iterator[date]:
    current = start
    while current < end_exclusive:
        yield current
        current += timedelta(days=1)
