"""
Database setup and session management for SQLite.
The database file lives at ~/Kakeibo/kakeibo.db by default,
override with KAKEIBO_DATA_DIR or KAKEIBO_DATABASE_URL.
"""

import os
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

# Data location: ~/Kakeibo (database + uploads)
DATA_DIR = Path(os.environ.get("KAKEIBO_DATA_DIR", Path.home() / "Kakeibo"))
DATA_DIR.mkdir(parents=True, exist_ok=True)
DB_PATH = DATA_DIR / "kakeibo.db"

DATABASE_URL = os.environ.get("KAKEIBO_DATABASE_URL", f"sqlite:///{DB_PATH}")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},  # Required for SQLite + FastAPI
    echo=False,
)


# WAL mode + busy timeout so a long import doesn't lock out readers
@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency that provides a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """
    FastAPI dependency that provides the session factory itself.

    Streaming endpoints outlive the request-scoped session from get_db(),
    so they open (and close) their own session inside the stream.
    """
    return SessionLocal


def init_db():
    """Create all tables if they don't exist."""
    from . import models  # noqa: F401 - import to register models
    Base.metadata.create_all(bind=engine)
