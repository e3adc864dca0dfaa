"""
Fixed-cost sheet parsers.

Both layouts hold one year per sheet, one row per month (first data row
is January, at most 12 rows). Each category is read from one or more
columns; an amount that is blank or not positive after cleaning means
"no entry" for that month.

Standard layout ("2024年公共料金等", data from Excel row 4):
    B rent  C electricity  D gas  E dishwasher  F water
    G landline  H mobile  I pocket money  J insurance

Alternative layout ("2024合計", data from Excel row 4):
    B rent  C electricity  D water  E landline  F mobile  I+J gas
The ledger splits gas over two columns; they are summed into one row.
Dishwasher, insurance and pocket money have no column here, so this
layout never touches them.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterator

import pandas as pd

from ...models import EXPENSE
from ..fiscal import month_key
from ..sheet_classifier import FixedCostAlternative, FixedCostKind, FixedCostStandard
from .cells import cell, clean_amount, is_blank, read_sheet

logger = logging.getLogger(__name__)

HEADER_ROWS = 3
MONTHS_PER_SHEET = 12

DESCRIPTION = "ExcelImport"
MEMO = "固定費"

# Category codes
RENT = 604
ELECTRICITY = 601
GAS = 603
DISHWASHER = 606
WATER = 602
LANDLINE = 605
MOBILE = 607
POCKET_MONEY = 901
INSURANCE = 608


@dataclass(frozen=True)
class FixedCostLayout:
    name: str
    # category code → source columns (summed)
    columns: dict[int, tuple[str, ...]]

    @property
    def category_codes(self) -> frozenset[int]:
        return frozenset(self.columns)


STANDARD_LAYOUT = FixedCostLayout(
    name="standard",
    columns={
        RENT: ("B",),
        ELECTRICITY: ("C",),
        GAS: ("D",),
        DISHWASHER: ("E",),
        WATER: ("F",),
        LANDLINE: ("G",),
        MOBILE: ("H",),
        POCKET_MONEY: ("I",),
        INSURANCE: ("J",),
    },
)

ALTERNATIVE_LAYOUT = FixedCostLayout(
    name="alternative",
    columns={
        RENT: ("B",),
        ELECTRICITY: ("C",),
        WATER: ("D",),
        LANDLINE: ("E",),
        MOBILE: ("F",),
        GAS: ("I", "J"),
    },
)

LAYOUTS = {
    FixedCostStandard: STANDARD_LAYOUT,
    FixedCostAlternative: ALTERNATIVE_LAYOUT,
}


def layout_for(kind: FixedCostKind) -> FixedCostLayout:
    return LAYOUTS[type(kind)]


def read_fixed_cost_sheet(xls: pd.ExcelFile, sheet_name: str) -> pd.DataFrame:
    return read_sheet(xls, sheet_name, skiprows=HEADER_ROWS)


def _column_total(row: tuple, letters: tuple[str, ...]) -> int:
    total = 0
    for letter in letters:
        value = cell(row, letter)
        if is_blank(value):
            continue
        amount = clean_amount(value)
        if amount is not None:
            total += amount
    return total


def iter_fixed_cost_months(
    df: pd.DataFrame, kind: FixedCostKind
) -> Iterator[tuple[str, list[dict]]]:
    """
    Yield (fiscal_month, rows) for each month present in the sheet.

    Months with no entries still yield an empty list: the import overwrites
    that month's fixed costs with "nothing".
    """
    layout = layout_for(kind)

    for idx, row in enumerate(df.itertuples(index=False, name=None)):
        if idx >= MONTHS_PER_SHEET:
            break

        fm = month_key(kind.year, idx + 1)
        txn_date = date(kind.year, idx + 1, 1)
        rows = []
        for code, letters in layout.columns.items():
            amount = _column_total(row, letters)
            if amount <= 0:
                continue
            rows.append({
                "date": txn_date,
                "fiscal_month": fm,
                "amount": amount,
                "type": EXPENSE,
                "category_code": code,
                "description": DESCRIPTION,
                "memo": MEMO,
            })
        yield fm, rows
