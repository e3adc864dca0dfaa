"""
Cell helpers shared by the sheet parsers.

Sheets are read with pandas (header=None, dtype=object) so every row is a
positional tuple; columns are addressed by their Excel letter.
"""

import logging
import numbers
import re
from functools import lru_cache
from typing import Any, Optional

import pandas as pd
from openpyxl.utils import column_index_from_string

logger = logging.getLogger(__name__)

# Cap on rows read per sheet (header rows included); ledgers never get close
MAX_SHEET_ROWS = 2500

_NON_AMOUNT_CHARS = re.compile(r"[^0-9-]")
_LEADING_INT = re.compile(r"^\s*(-?[0-9]+)")


def read_sheet(xls: pd.ExcelFile, sheet_name: str, skiprows: int) -> pd.DataFrame:
    """Read a sheet's data rows (after the header block) as raw values."""
    return pd.read_excel(
        xls,
        sheet_name=sheet_name,
        header=None,
        skiprows=skiprows,
        nrows=MAX_SHEET_ROWS - skiprows,
        dtype=object,
        keep_default_na=False,  # "NA" in a memo is text, not missing
    )


@lru_cache(maxsize=None)
def column_index(letter: str) -> int:
    """Excel column letter → 0-based position ("A" → 0)."""
    return column_index_from_string(letter) - 1


def cell(row: tuple, letter: str) -> Any:
    """Value of a row tuple at a column letter; None past the last column."""
    idx = column_index(letter)
    return row[idx] if idx < len(row) else None


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def clean_amount(value: Any) -> Optional[int]:
    """
    Parse a yen amount cell.

    Numeric cells are taken as-is (rounded to whole yen). Text cells such as
    "¥1,200" keep only digits and minus signs before parsing. Returns None
    when nothing parseable is left.
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        return int(round(float(value)))

    cleaned = _NON_AMOUNT_CHARS.sub("", str(value))
    try:
        return int(cleaned)
    except ValueError:
        return None


def parse_code(value: Any) -> Optional[int]:
    """Parse a category code cell ("100", 100, 100.0, "100 食費")."""
    if is_blank(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        f = float(value)
        return int(f) if f.is_integer() else None

    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def text(value: Any) -> str:
    """Free-text cell, blank → ""."""
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
