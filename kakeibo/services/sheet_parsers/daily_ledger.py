"""
Daily ledger sheet parser ("2024年5月").

Layout (data starts on Excel row 12):
    A: date   B: category code   C: amount   E: description   F: memo

Operators sometimes type the wrong year into the date column, so every
date is forced into the sheet's year before its fiscal month is derived.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterator

import pandas as pd

from ...errors import InvalidDate
from ...models import EXPENSE
from ..fiscal import fiscal_month, force_year, parse_date
from ..sheet_classifier import DailyLedger
from .cells import cell, clean_amount, is_blank, parse_code, read_sheet, text

logger = logging.getLogger(__name__)

HEADER_ROWS = 11
# Stop after this many rows in a row without a date
MAX_CONSECUTIVE_EMPTY = 10

DATE_COL = "A"
CODE_COL = "B"
AMOUNT_COL = "C"
DESCRIPTION_COL = "E"
MEMO_COL = "F"


@dataclass
class LedgerRow:
    date: date
    category_code: int
    amount: int
    description: str
    memo: str


def read_daily_sheet(xls: pd.ExcelFile, sheet_name: str) -> pd.DataFrame:
    return read_sheet(xls, sheet_name, skiprows=HEADER_ROWS)


def iter_ledger_rows(df: pd.DataFrame, year: int) -> Iterator[LedgerRow]:
    """
    Yield every valid ledger row, with its date moved into `year`.

    This is the one validity rule for daily sheets: both the Analyze count
    and the Execute extraction go through it. Invalid rows are skipped.
    """
    consecutive_empty = 0

    for row in df.itertuples(index=False, name=None):
        raw_date = cell(row, DATE_COL)
        if is_blank(raw_date):
            consecutive_empty += 1
            if consecutive_empty >= MAX_CONSECUTIVE_EMPTY:
                break
            continue
        consecutive_empty = 0

        raw_code = cell(row, CODE_COL)
        raw_amount = cell(row, AMOUNT_COL)
        if is_blank(raw_code) or is_blank(raw_amount):
            continue

        code = parse_code(raw_code)
        amount = clean_amount(raw_amount)
        if code is None or amount is None:
            logger.debug(f"Skipping row: code={raw_code!r} amount={raw_amount!r}")
            continue

        try:
            txn_date = force_year(parse_date(raw_date, year), year)
        except InvalidDate as e:
            logger.debug(f"Skipping row: {e}")
            continue

        yield LedgerRow(
            date=txn_date,
            category_code=code,
            amount=amount,
            description=text(cell(row, DESCRIPTION_COL)),
            memo=text(cell(row, MEMO_COL)),
        )


def count_daily_rows(df: pd.DataFrame, kind: DailyLedger) -> int:
    """Number of rows Execute would import from this sheet."""
    return sum(1 for _ in iter_ledger_rows(df, kind.year))


def parse_daily_sheet(df: pd.DataFrame, kind: DailyLedger) -> list[dict]:
    """Parse a daily ledger sheet into standardized transaction rows."""
    rows = []
    for r in iter_ledger_rows(df, kind.year):
        rows.append({
            "date": r.date,
            "fiscal_month": fiscal_month(r.date),
            "amount": r.amount,
            "type": EXPENSE,
            "category_code": r.category_code,
            "description": r.description,
            "memo": r.memo,
        })
    return rows
