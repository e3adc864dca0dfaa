"""
Sheet classification by display name.

The ledgers carry no schema metadata, only human-assigned sheet titles:

    2024年5月        → daily ledger for May 2024
    2024年公共料金等   → fixed costs for 2024, standard layout
    2024合計          → fixed costs for 2024, alternative layout

Matching is exact (anchored, whole name). Anything else, including near
misses like "2024年5月 (copy)", is Unrecognized and skipped downstream.
"""

import re
from dataclasses import dataclass
from typing import Union

DAILY_LEDGER_PATTERN = re.compile(r"(\d{4})年(\d{1,2})月", re.ASCII)
FIXED_COST_STANDARD_PATTERN = re.compile(r"(\d{4})年公共料金等", re.ASCII)
FIXED_COST_ALTERNATIVE_PATTERN = re.compile(r"(\d{4})合計", re.ASCII)


@dataclass(frozen=True)
class DailyLedger:
    year: int
    month: int


@dataclass(frozen=True)
class FixedCostStandard:
    year: int


@dataclass(frozen=True)
class FixedCostAlternative:
    year: int


@dataclass(frozen=True)
class Unrecognized:
    pass


SheetKind = Union[DailyLedger, FixedCostStandard, FixedCostAlternative, Unrecognized]
FixedCostKind = Union[FixedCostStandard, FixedCostAlternative]

UNRECOGNIZED = Unrecognized()


def classify(sheet_name: str) -> SheetKind:
    """Tag a sheet by its name."""
    match = DAILY_LEDGER_PATTERN.fullmatch(sheet_name)
    if match:
        month = int(match.group(2))
        if 1 <= month <= 12:
            return DailyLedger(year=int(match.group(1)), month=month)
        return UNRECOGNIZED

    match = FIXED_COST_STANDARD_PATTERN.fullmatch(sheet_name)
    if match:
        return FixedCostStandard(year=int(match.group(1)))

    match = FIXED_COST_ALTERNATIVE_PATTERN.fullmatch(sheet_name)
    if match:
        return FixedCostAlternative(year=int(match.group(1)))

    return UNRECOGNIZED


def is_fixed_cost(kind: SheetKind) -> bool:
    return isinstance(kind, (FixedCostStandard, FixedCostAlternative))
