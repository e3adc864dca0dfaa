"""
Fiscal calendar.

A fiscal month runs from the 23rd of one calendar month through the 22nd
of the next and is keyed "YYYY-MM" by the month it ends in. Every place
that buckets a date into a reporting period goes through fiscal_month(),
so rows written by the Excel import and by the transactions API always
land in the same bucket.
"""

import numbers
from datetime import date, datetime, timedelta
from typing import Optional, Union

import pandas as pd

from ..errors import InvalidDate

FISCAL_MONTH_START_DAY = 23

# Excel's day zero (serial 1 == 1900-01-01, with the 1900 leap-year bug)
EXCEL_EPOCH = date(1899, 12, 30)

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y年%m月%d日",
    "%m/%d/%Y",
    "%m/%d/%y",
)

# Month and day only; the year comes from the caller
YEARLESS_FORMATS = (
    "%m/%d",
    "%m月%d日",
)

# Parse yearless dates in a leap year so Feb 29 survives until force_year
LEAP_YEAR = 2000

DateLike = Union[date, datetime, pd.Timestamp, str, int, float]


def parse_date(value: DateLike, default_year: Optional[int] = None) -> date:
    """
    Coerce a cell value into a calendar date, dropping any time of day.

    Accepts date/datetime/Timestamp objects, ISO-ish or Japanese strings,
    and raw Excel serial numbers. Strings without a year ("4/6", "4月6日")
    are only accepted when default_year is given. Raises InvalidDate for
    anything else.
    """
    if value is None or value is pd.NaT or (isinstance(value, float) and pd.isna(value)):
        raise InvalidDate("empty date")

    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        try:
            return EXCEL_EPOCH + timedelta(days=int(value))
        except OverflowError:
            raise InvalidDate(f"date serial out of range: {value!r}")

    val_str = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(val_str, fmt).date()
        except ValueError:
            continue

    if default_year is not None:
        for fmt in YEARLESS_FORMATS:
            try:
                parsed = datetime.strptime(f"{LEAP_YEAR} {val_str}", f"%Y {fmt}").date()
            except ValueError:
                continue
            return force_year(parsed, default_year)

    raise InvalidDate(f"unparsable date: {value!r}")


def fiscal_month(value: DateLike) -> str:
    """Return the "YYYY-MM" fiscal month key for a date."""
    d = parse_date(value)
    year, month = d.year, d.month
    if d.day >= FISCAL_MONTH_START_DAY:
        month += 1
        if month > 12:
            month = 1
            year += 1
    return f"{year}-{month:02d}"


def month_key(year: int, month: int) -> str:
    """Format a year/month pair as a fiscal month key."""
    return f"{year}-{month:02d}"


def force_year(d: date, year: int) -> date:
    """
    Move a date into the given year, keeping month and day.

    Feb 29 has no counterpart in a non-leap year and rolls over to Mar 1.
    """
    try:
        return d.replace(year=year)
    except ValueError:
        return date(year, 3, 1)
