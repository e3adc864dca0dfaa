#!/usr/bin/env python3
"""
Import a household ledger workbook from the command line.

Runs the same Analyze → Execute pipeline as the /api/import endpoints,
logging each progress event instead of streaming it over HTTP.

Usage:
    python -m kakeibo.import_workbook ledger.xlsx                # Analyze + import all years
    python -m kakeibo.import_workbook ledger.xlsx --year 2024    # Import one year only
    python -m kakeibo.import_workbook ledger.xlsx --analyze-only # Show the summary, import nothing
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from .database import SessionLocal, init_db
from .errors import ExcelImportError
from .services.excel_import import analyze_workbook, start_execute
from .services.import_session import discard, resolve_token, store_upload
from .services.progress import COMPLETE, ERROR, PROGRESS

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)


def run(events) -> dict:
    """Log progress events and return the terminal one."""
    terminal = {"type": ERROR, "error": "stream ended without a result"}
    for event in events:
        if event["type"] == PROGRESS:
            logger.info(event["message"])
        else:
            terminal = event
    return terminal


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import a household ledger workbook")
    parser.add_argument("workbook", type=Path, help="Path to the .xlsx workbook")
    parser.add_argument("--year", type=int, default=None, help="Only import sheets for this year")
    parser.add_argument("--analyze-only", action="store_true", help="Analyze without importing")
    args = parser.parse_args(argv)

    if not args.workbook.is_file():
        logger.error(f"Not found: {args.workbook}")
        return 1

    try:
        with open(args.workbook, "rb") as f:
            path = store_upload(f, args.workbook.name)
    except ExcelImportError as e:
        logger.error(f"Upload failed: {e}")
        return 1

    analysis = run(analyze_workbook(path))
    if analysis["type"] != COMPLETE:
        logger.error(f"Analyze failed: {analysis['error']}")
        return 1

    token = analysis["data"]["token"]
    print(json.dumps(analysis["data"]["summary"], ensure_ascii=False, indent=2))

    if args.analyze_only:
        discard(resolve_token(token))
        return 0

    init_db()
    result = run(start_execute(token, SessionLocal, target_year=args.year))
    if result["type"] != COMPLETE:
        logger.error(f"Import failed: {result['error']}")
        return 1

    logger.info(f"Imported {result['results']['daily']} daily rows, "
                f"{result['results']['fixed']} fixed-cost rows")
    return 0


if __name__ == "__main__":
    sys.exit(main())
