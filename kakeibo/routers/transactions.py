"""
Transaction CRUD endpoints.

fiscal_month is never taken from the client: it is always derived from
the date with services.fiscal.fiscal_month, same as the Excel import.
"""

import logging
from datetime import date, datetime
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Transaction
from ..services import fiscal

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Pydantic Schemas ---

class TransactionOut(BaseModel):
    id: int
    date: date
    fiscal_month: str
    amount: int
    type: str
    category_code: Optional[int] = None
    description: Optional[str] = None
    memo: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TransactionIn(BaseModel):
    date: date
    amount: int
    type: Literal["EXPENSE", "INCOME"] = "EXPENSE"
    category_code: Optional[int] = None
    description: Optional[str] = ""
    memo: Optional[str] = ""


# --- Endpoints ---

@router.get("/", response_model=list[TransactionOut])
def list_transactions(
    fiscal_month: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}$"),
    db: Session = Depends(get_db),
):
    """List transactions, optionally for one fiscal month."""
    query = db.query(Transaction)
    if fiscal_month:
        query = query.filter(Transaction.fiscal_month == fiscal_month)
    return query.order_by(Transaction.date.desc(), Transaction.id.desc()).all()


@router.post("/", response_model=TransactionOut, status_code=201)
def create_transaction(data: TransactionIn, db: Session = Depends(get_db)):
    txn = Transaction(
        date=data.date,
        fiscal_month=fiscal.fiscal_month(data.date),
        amount=data.amount,
        type=data.type,
        category_code=data.category_code,
        description=data.description,
        memo=data.memo,
    )
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


@router.put("/{txn_id}", response_model=TransactionOut)
def update_transaction(txn_id: int, data: TransactionIn, db: Session = Depends(get_db)):
    txn = db.query(Transaction).get(txn_id)
    if not txn:
        raise HTTPException(status_code=404, detail="Transaction not found")

    txn.date = data.date
    txn.fiscal_month = fiscal.fiscal_month(data.date)
    txn.amount = data.amount
    txn.type = data.type
    txn.category_code = data.category_code
    txn.description = data.description
    txn.memo = data.memo
    db.commit()
    db.refresh(txn)
    return txn


@router.delete("/{txn_id}")
def delete_transaction(txn_id: int, db: Session = Depends(get_db)):
    txn = db.query(Transaction).get(txn_id)
    if not txn:
        raise HTTPException(status_code=404, detail="Transaction not found")
    db.delete(txn)
    db.commit()
    return {"status": "deleted", "id": txn_id}
