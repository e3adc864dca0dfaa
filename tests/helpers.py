"""Workbook builders and stream helpers shared by the tests."""

import json
from pathlib import Path

import openpyxl


DAILY_HEADER = [["家計簿"]] + [[] for _ in range(9)] + [["日付", "費目", "金額", None, "内容", "メモ"]]
FIXED_HEADER = [["公共料金等"], [], ["月", "家賃", "電気", "ガス", "食洗機", "水道", "固定電話", "携帯", "小遣い", "保険"]]


def daily_sheet(*rows):
    """Rows of a daily ledger sheet: (date, code, amount[, description[, memo]])."""
    out = [list(r) for r in DAILY_HEADER]
    for r in rows:
        r = list(r) + [None] * (5 - len(r))
        when, code, amount, description, memo = r
        out.append([when, code, amount, None, description, memo])
    return out


def fixed_sheet(*month_rows):
    """Rows of a fixed-cost sheet; each month row is {column letter: value}."""
    out = [list(r) for r in FIXED_HEADER]
    for i, cells in enumerate(month_rows, start=1):
        row = [f"{i}月"] + [None] * 9
        for letter, value in cells.items():
            row[ord(letter) - ord("A")] = value
        out.append(row)
    return out


def write_workbook(path: Path, sheets: dict) -> Path:
    """Write {sheet name: list of rows} to an .xlsx file."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return path


def parse_ndjson(body: str) -> list[dict]:
    return [json.loads(line) for line in body.splitlines() if line.strip()]


def add_transaction(db, when, code, amount, txn_type="EXPENSE", description="手入力"):
    """Insert a transaction the way the transactions API would."""
    from kakeibo.models import Transaction
    from kakeibo.services.fiscal import fiscal_month

    txn = Transaction(
        date=when,
        fiscal_month=fiscal_month(when),
        amount=amount,
        type=txn_type,
        category_code=code,
        description=description,
        memo="",
    )
    db.add(txn)
    db.commit()
    return txn


def stored(db, fiscal_month=None):
    """(fiscal_month, category_code, amount) of stored rows, sorted."""
    from kakeibo.models import Transaction

    query = db.query(Transaction)
    if fiscal_month:
        query = query.filter(Transaction.fiscal_month == fiscal_month)
    return sorted((t.fiscal_month, t.category_code, t.amount) for t in query.all())
