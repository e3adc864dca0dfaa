"""
Excel ledger import: two-phase Analyze → Execute.

Analyze stores the upload, classifies every sheet and reports how many
rows each recognized sheet would import. Execute re-reads the stored
workbook and overwrites the affected fiscal months, daily sheets first and
fixed-cost sheets second, so fixed costs are always the last writer for
their categories.

Both phases are generators of progress events (see services.progress);
the HTTP router and the CLI only forward them.

Adding a sheet layout means adding a SheetKind in sheet_classifier and one
SheetHandler entry in HANDLERS below.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional

import pandas as pd
from sqlalchemy.orm import Session, sessionmaker

from ..errors import InvalidUpload, StreamError
from .fiscal import month_key
from .import_session import claim, discard, resolve_token, token_for
from .progress import complete, error, progress
from .reconcile import Scope, reconcile
from .sheet_classifier import (
    DailyLedger,
    FixedCostAlternative,
    FixedCostStandard,
    SheetKind,
    classify,
)
from .sheet_parsers.daily_ledger import count_daily_rows, parse_daily_sheet, read_daily_sheet
from .sheet_parsers.fixed_costs import iter_fixed_cost_months, layout_for, read_fixed_cost_sheet

logger = logging.getLogger(__name__)

DAILY = "daily"
FIXED = "fixed"


def open_workbook(path: Path) -> pd.ExcelFile:
    """Open a stored upload, mapping any reader failure to InvalidUpload."""
    try:
        return pd.ExcelFile(path, engine="openpyxl")
    except Exception as e:
        raise InvalidUpload(f"Could not read workbook: {e}") from e


# ── Per-layout handlers ──

def _analyze_daily(xls: pd.ExcelFile, sheet_name: str, kind: DailyLedger) -> Optional[dict]:
    count = count_daily_rows(read_daily_sheet(xls, sheet_name), kind)
    logger.info(f"[Analyze] {sheet_name}: {count} valid rows")
    if count == 0:
        return None
    return {"sheet": sheet_name, "count": count, "year": kind.year, "month": kind.month}


def _analyze_fixed(xls: pd.ExcelFile, sheet_name: str, kind) -> Optional[dict]:
    layout = layout_for(kind)
    logger.info(f"[Analyze] {sheet_name}: fixed costs ({layout.name} layout)")
    return {"sheet": sheet_name, "year": kind.year, "layout": layout.name}


def _execute_daily(db: Session, xls: pd.ExcelFile, sheet_name: str, kind: DailyLedger) -> int:
    rows = parse_daily_sheet(read_daily_sheet(xls, sheet_name), kind)
    by_month = defaultdict(list)
    for row in rows:
        by_month[row["fiscal_month"]].append(row)

    # A daily sheet owns its whole fiscal month, every category
    own_month = month_key(kind.year, kind.month)
    inserted = reconcile(db, Scope(own_month), by_month.pop(own_month, []))

    # Rows outside the sheet's fiscal window land in another fiscal month,
    # where the sheet only owns the dates it carries
    for fm, spilled in sorted(by_month.items()):
        dates = frozenset(r["date"] for r in spilled)
        inserted += reconcile(db, Scope(fm, dates=dates), spilled)
    return inserted


def _execute_fixed(db: Session, xls: pd.ExcelFile, sheet_name: str, kind) -> int:
    # A fixed-cost sheet only owns the categories its layout can fill
    codes = layout_for(kind).category_codes
    df = read_fixed_cost_sheet(xls, sheet_name)
    inserted = 0
    for fm, rows in iter_fixed_cost_months(df, kind):
        inserted += reconcile(db, Scope(fm, codes), rows)
    return inserted


@dataclass(frozen=True)
class SheetHandler:
    section: str  # summary/results key
    execute_pass: int  # lower passes run first
    label: str
    analyze: Callable[..., Optional[dict]]
    execute: Callable[..., int]


HANDLERS: dict[type, SheetHandler] = {
    DailyLedger: SheetHandler(DAILY, 1, "daily ledger", _analyze_daily, _execute_daily),
    FixedCostStandard: SheetHandler(FIXED, 2, "fixed costs", _analyze_fixed, _execute_fixed),
    FixedCostAlternative: SheetHandler(FIXED, 2, "fixed costs", _analyze_fixed, _execute_fixed),
}

EXECUTE_PASSES = sorted({h.execute_pass for h in HANDLERS.values()})


def handler_for(kind: SheetKind) -> Optional[SheetHandler]:
    return HANDLERS.get(type(kind))


# ── Analyze ──

def analyze_workbook(path: Path) -> Iterator[dict]:
    """
    Analyze a stored upload (read-only).

    Ends with complete(data={token, summary}) on success. On failure the
    stored file is deleted and the stream ends with an error event.
    """
    summary = {DAILY: [], FIXED: []}
    completed = False

    try:
        yield progress("Reading workbook (this can take a while for large files)...")
        with open_workbook(path) as xls:
            yield progress("Analyzing sheet layout...")

            for sheet_name in xls.sheet_names:
                kind = classify(sheet_name)
                handler = handler_for(kind)
                if handler is None:
                    logger.debug(f"[Analyze] Skipping unrecognized sheet: {sheet_name}")
                    continue

                yield progress(f"Analyzing {sheet_name} ({handler.label})...")
                entry = handler.analyze(xls, sheet_name, kind)
                if entry is not None:
                    summary[handler.section].append(entry)

        logger.info(
            f"[Analyze] {path.name}: {len(summary[DAILY])} daily sheet(s), "
            f"{len(summary[FIXED])} fixed-cost sheet(s)"
        )
        completed = True
        yield complete(data={"token": token_for(path), "summary": summary})

    except StreamError:
        # The token may never have reached the caller
        completed = False
        logger.warning(f"[Analyze] Client disconnected, dropping {path.name}")

    except Exception as e:
        logger.exception(f"[Analyze] Failed for {path.name}")
        yield error(str(e))

    finally:
        if not completed:
            discard(path)


# ── Execute ──

def start_execute(
    token: str,
    session_factory: sessionmaker,
    target_year: Optional[int] = None,
    upload_dir: Optional[Path] = None,
) -> "ExecuteStream":
    """
    Resolve and claim a session, then return its Execute event stream.

    Resolution happens eagerly so an unknown or already-used token raises
    SessionNotFound before any event is emitted.
    """
    claimed = claim(resolve_token(token, upload_dir))
    logger.info(f"[Execute] Claimed session {token} (target year: {target_year or 'all'})")
    return ExecuteStream(claimed, execute_workbook(claimed, session_factory, target_year))


class ExecuteStream:
    """
    Execute events for one claimed workbook.

    Closing the stream deletes the workbook even if no event was ever
    read from it.
    """

    def __init__(self, path: Path, events: Iterator[dict]):
        self.path = path
        self._events = events

    def __iter__(self):
        return self

    def __next__(self) -> dict:
        return next(self._events)

    def throw(self, exc: BaseException) -> dict:
        return self._events.throw(exc)

    def close(self):
        try:
            self._events.close()
        finally:
            discard(self.path)


def execute_workbook(
    path: Path,
    session_factory: sessionmaker,
    target_year: Optional[int] = None,
) -> Iterator[dict]:
    """
    Import a claimed workbook into the database.

    Sheets are processed one by one in two passes (daily, then fixed
    costs). Writes are committed as they happen; an error part-way through
    leaves earlier sheets imported. The workbook is deleted at the end no
    matter how the stream finishes.
    """
    results = {DAILY: 0, FIXED: 0}
    db = session_factory()

    try:
        yield progress("Starting database import...")
        with open_workbook(path) as xls:
            sheets = [(name, classify(name)) for name in xls.sheet_names]

            for execute_pass in EXECUTE_PASSES:
                for sheet_name, kind in sheets:
                    handler = handler_for(kind)
                    if handler is None or handler.execute_pass != execute_pass:
                        continue
                    if target_year is not None and kind.year != target_year:
                        continue

                    yield progress(f"Importing {sheet_name} ({handler.label})...")
                    inserted = handler.execute(db, xls, sheet_name, kind)
                    results[handler.section] += inserted
                    logger.info(f"[Execute] {sheet_name}: {inserted} rows written")

        logger.info(f"[Execute] Done: {results[DAILY]} daily, {results[FIXED]} fixed")
        yield complete(results=results)

    except StreamError:
        logger.warning(f"[Execute] Client disconnected, stopping {path.name}")

    except Exception as e:
        logger.exception(f"[Execute] Failed for {path.name}")
        yield error(str(e))

    finally:
        db.close()
        discard(path)
