"""Tests for startup migrations."""

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from kakeibo.migrations import run_migrations


def legacy_engine():
    eng = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    with eng.begin() as conn:
        conn.execute(text(
            "CREATE TABLE transactions ("
            " id INTEGER PRIMARY KEY AUTOINCREMENT,"
            " date TEXT NOT NULL,"
            " fiscal_month TEXT NOT NULL,"
            " amount INTEGER NOT NULL,"
            " type TEXT NOT NULL,"
            " category_code INTEGER,"
            " description TEXT)"
        ))
        conn.execute(text(
            "INSERT INTO transactions (date, fiscal_month, amount, type, category_code, description) VALUES"
            " ('2024-04-25', '2024-04', 100, 'EXPENSE', 100, 'wrong bucket'),"
            " ('2024-04-05', '2024-04', 200, 'EXPENSE', 100, 'right bucket')"
        ))
    return eng


def test_adds_missing_columns():
    eng = legacy_engine()
    run_migrations(eng)
    cols = {c["name"] for c in inspect(eng).get_columns("transactions")}
    assert {"memo", "created_at"} <= cols


def test_repairs_fiscal_months():
    eng = legacy_engine()
    run_migrations(eng)
    with eng.connect() as conn:
        rows = conn.execute(text("SELECT description, fiscal_month FROM transactions ORDER BY id")).all()
    assert rows == [("wrong bucket", "2024-05"), ("right bucket", "2024-04")]


def test_missing_table_is_fine():
    eng = create_engine("sqlite://", poolclass=StaticPool)
    run_migrations(eng)
