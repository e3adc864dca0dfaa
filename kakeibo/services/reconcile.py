"""
Replace-by-scope reconciliation.

A scope is a fiscal month plus the set of category codes an import is
allowed to overwrite (None = every category), optionally narrowed to a
set of calendar dates. Reconciling deletes every stored transaction
inside the scope, then bulk-inserts the new rows, so running the same
import twice leaves exactly the latest rows.

Statements commit one at a time rather than in one wrapping transaction:
progress keeps streaming between them, and whatever was committed before
a failure stays committed.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import delete, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import StorageError
from ..models import Transaction

logger = logging.getLogger(__name__)

INSERT_CHUNK_SIZE = 50

INSERT_COLUMNS = (
    "date", "fiscal_month", "amount", "type", "category_code", "description", "memo",
)


@dataclass(frozen=True)
class Scope:
    fiscal_month: str
    category_codes: Optional[frozenset[int]] = None  # None → all categories
    dates: Optional[frozenset[date]] = None  # None → the whole month

    def __str__(self):
        if self.category_codes is None:
            label = f"{self.fiscal_month} (all categories)"
        else:
            codes = ",".join(str(c) for c in sorted(self.category_codes))
            label = f"{self.fiscal_month} ({codes})"
        if self.dates is not None:
            label += f" on {len(self.dates)} date(s)"
        return label


def delete_scope(db: Session, scope: Scope) -> int:
    """Delete every transaction inside the scope. Returns rows deleted."""
    stmt = delete(Transaction).where(Transaction.fiscal_month == scope.fiscal_month)
    if scope.category_codes is not None:
        stmt = stmt.where(Transaction.category_code.in_(sorted(scope.category_codes)))
    if scope.dates is not None:
        stmt = stmt.where(Transaction.date.in_(sorted(scope.dates)))
    result = db.execute(stmt)
    db.commit()
    return result.rowcount or 0


def bulk_insert(db: Session, rows: list[dict], chunk_size: int = INSERT_CHUNK_SIZE) -> int:
    """Insert rows in fixed-size chunks, committing each chunk."""
    for start in range(0, len(rows), chunk_size):
        chunk = [
            {col: row.get(col) for col in INSERT_COLUMNS}
            for row in rows[start:start + chunk_size]
        ]
        db.execute(insert(Transaction).values(chunk))
        db.commit()
    return len(rows)


def reconcile(db: Session, scope: Scope, rows: list[dict]) -> int:
    """
    Overwrite one scope with freshly extracted rows.

    Returns the number of rows inserted. Raises StorageError (after rolling
    back the failed statement) if the database rejects a delete or insert.
    """
    try:
        deleted = delete_scope(db, scope)
        inserted = bulk_insert(db, rows)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Reconcile failed for {scope}: {e}")
        raise StorageError(f"Database write failed for {scope.fiscal_month}: {e}") from e

    logger.info(f"  {scope}: -{deleted} +{inserted}")
    return inserted
