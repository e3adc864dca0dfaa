"""
Lightweight database migrations for SQLite.

SQLAlchemy's create_all() only creates missing tables, not missing columns.
This module adds any new columns that don't exist yet, and repairs rows
whose fiscal_month disagrees with their date.
"""

import logging
from sqlalchemy import text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .database import engine as default_engine
from .errors import InvalidDate
from .models import Transaction
from .services.fiscal import fiscal_month

logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = [
    ("memo", "TEXT"),
    ("created_at", "DATETIME"),
]


def add_missing_columns(engine: Engine):
    inspector = inspect(engine)
    if "transactions" not in inspector.get_table_names():
        return

    existing_cols = {col["name"] for col in inspector.get_columns("transactions")}
    with engine.begin() as conn:
        for col_name, col_type in TRANSACTION_COLUMNS:
            if col_name not in existing_cols:
                conn.execute(text(
                    f"ALTER TABLE transactions ADD COLUMN {col_name} {col_type}"
                ))
                logger.info(f"Migration: added transactions.{col_name}")


def repair_fiscal_months(engine: Engine) -> int:
    """Recompute fiscal_month wherever it doesn't match the row's date."""
    if not inspect(engine).has_table("transactions"):
        return 0

    fixed = 0
    with Session(engine) as db:
        for txn in db.query(Transaction).all():
            try:
                expected = fiscal_month(txn.date)
            except InvalidDate:
                logger.warning(f"Migration: transaction {txn.id} has unparsable date {txn.date!r}")
                continue
            if txn.fiscal_month != expected:
                txn.fiscal_month = expected
                fixed += 1
        if fixed:
            db.commit()
            logger.info(f"Migration: repaired fiscal_month on {fixed} transaction(s)")
    return fixed


def run_migrations(engine: Engine = default_engine):
    """Check for and apply any pending migrations."""
    add_missing_columns(engine)
    repair_fiscal_months(engine)
    logger.debug("Migrations complete")
