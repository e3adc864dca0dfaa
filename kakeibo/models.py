"""
SQLAlchemy models for the household ledger.

Tables:
- transactions: Every dated income/expense, bucketed by fiscal month
- categories: Coded category catalog (code → name, group)
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Date, DateTime, Text, Index

from .database import Base

EXPENSE = "EXPENSE"
INCOME = "INCOME"


class Category(Base):
    __tablename__ = "categories"

    code = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String(100), nullable=False)
    group_name = Column(String(100), nullable=False)  # e.g. "固定費"

    def __repr__(self):
        return f"<Category {self.code} {self.name} ({self.group_name})>"


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    fiscal_month = Column(String(7), nullable=False)  # "2025-01", see services.fiscal
    amount = Column(Integer, nullable=False)  # Whole yen
    type = Column(String(10), nullable=False)  # EXPENSE or INCOME
    # Plain code, not a foreign key: unknown codes are stored as-is
    category_code = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    memo = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("idx_transactions_fiscal_month", "fiscal_month"),
        Index("idx_transactions_fiscal_month_category", "fiscal_month", "category_code"),
    )

    def __repr__(self):
        return f"<Transaction {self.date} {self.type} {self.category_code} ¥{self.amount}>"
