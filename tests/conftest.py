"""Test fixtures and utilities."""

import os
import tempfile
from datetime import datetime
from pathlib import Path

# Keep kakeibo.database from touching ~/Kakeibo
os.environ.setdefault("KAKEIBO_DATA_DIR", tempfile.mkdtemp(prefix="kakeibo-test-"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from kakeibo.database import Base
from kakeibo import models  # noqa: F401 - register tables

from .helpers import daily_sheet, fixed_sheet, write_workbook


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads (streaming runs in a worker)."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def sample_workbook(tmp_path: Path) -> Path:
    """Two years of daily sheets, one standard and one alternative fixed-cost sheet."""
    return write_workbook(tmp_path / "ledger.xlsx", {
        "表紙": [["2022-2023 家計簿"]],
        "2022年12月": daily_sheet(
            (datetime(2022, 12, 1), 100, 800, "スーパー"),
            (datetime(2022, 12, 10), 300, "¥1,000", "電車"),
        ),
        "2023年4月": daily_sheet(
            (datetime(2023, 4, 5), 100, "¥1,200", "スーパー", "特売"),
            (datetime(2019, 4, 6), 103, 3400, "外食"),
            ("2023-04-07", 200, "560円"),
            (datetime(2023, 4, 8), None, 999),
            (datetime(2023, 4, 9), 100, "n/a"),
        ),
        "2023年公共料金等": fixed_sheet(
            {"B": 80000, "C": "5,000", "D": 3000, "J": 2000},
            {"B": 80000, "C": 0},
        ),
        "2022合計": fixed_sheet(
            {"B": 75000, "I": "3000", "J": "1500"},
        ),
    })
