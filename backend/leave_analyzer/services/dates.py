"""
Date normalization for attendance uploads.

Spreadsheet exports deliver the date column in several shapes: real date
cells (``date``/``datetime``/``pd.Timestamp``), text in one of a handful of
layouts, or the raw serial-day number Excel stores internally.  Everything is
resolved here, once, into a plain ``datetime.date`` representing the UTC
calendar day; nothing downstream ever sees the raw cell value.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Union

from leave_analyzer.core.config import settings
from leave_analyzer.core.exceptions import DateParseError, InvalidRangeError

RawDate = Union[date, datetime, str, int, float]

# Tried in order, first strict match wins.  strptime accepts unpadded
# fields, so each layout is also held to its fixed width.
DATE_FORMATS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("%Y-%m-%d", re.compile(r"\d{4}-\d{2}-\d{2}")),
    ("%d/%m/%Y", re.compile(r"\d{2}/\d{2}/\d{4}")),
    ("%m/%d/%Y", re.compile(r"\d{2}/\d{2}/\d{4}")),
    ("%d-%m-%Y", re.compile(r"\d{2}-\d{2}-\d{4}")),
)

EXCEL_EPOCH = date(1899, 12, 30)

WEEKDAY_NAMES: tuple[str, ...] = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)


def normalize_date(value: RawDate) -> date:
    """
    Resolve a raw date cell to its calendar day.

    Calendar values keep their own year/month/day fields; the tzinfo of an
    aware datetime is ignored rather than converted, so a local midnight never
    drifts into the neighbouring UTC day.
    """
    # bool is an int subclass but never a date
    if isinstance(value, bool):
        raise DateParseError(value, "unsupported date type bool")

    if isinstance(value, datetime):
        return date(value.year, value.month, value.day)
    if isinstance(value, date):
        return date(value.year, value.month, value.day)
    if isinstance(value, str):
        return _parse_date_string(value)
    if isinstance(value, (int, float)):
        return _from_excel_serial(value)

    raise DateParseError(value, f"unsupported date type {type(value).__name__}")


def _parse_date_string(value: str) -> date:
    text = value.strip()
    for fmt, layout in DATE_FORMATS:
        if not layout.fullmatch(text):
            continue
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise DateParseError(value, "date string matches none of the accepted formats")


def _from_excel_serial(value: int | float) -> date:
    if isinstance(value, float) and not math.isfinite(value):
        raise DateParseError(value, "non-finite serial date")
    try:
        return EXCEL_EPOCH + timedelta(days=int(value))
    except OverflowError:
        raise DateParseError(value, "serial date out of range")


def day_name(day: date) -> str:
    return WEEKDAY_NAMES[day.weekday()]


def month_label(year: int, month: int) -> str:
    """``YYYY-MM`` partition key for a validated (year, month) pair."""
    validate_month(year, month)
    return f"{year:04d}-{month:02d}"


def month_label_for(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def validate_year(year: int) -> None:
    max_year = date.today().year + settings.MAX_YEARS_AHEAD
    if year < settings.MIN_YEAR or year > max_year:
        raise InvalidRangeError(
            f"Year must be between {settings.MIN_YEAR} and {max_year}, got {year}"
        )


def validate_month(year: int, month: int) -> None:
    validate_year(year)
    if month < 1 or month > 12:
        raise InvalidRangeError(f"Month must be between 1 and 12, got {month}")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Half-open [first day, first day of next month) range."""
    start = date(year, month, 1)
    if month == 12:
        return start, date(year + 1, 1, 1)
    return start, date(year, month + 1, 1)


def year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year + 1, 1, 1)


def previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1
