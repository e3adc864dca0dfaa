"""
Kakeibo FastAPI Backend
Main entry point. Registers all routers and initializes the database.
"""

import logging
from pathlib import Path
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env from ~/Kakeibo/.env first, then fall back to CWD/.env.
# Second call is a no-op for vars already set by the first.
load_dotenv(dotenv_path=Path.home() / "Kakeibo" / ".env")
load_dotenv()

from .database import init_db
from .migrations import run_migrations
from .routers import transactions, categories, import_excel
from .services.seed_data import seed_database

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run on startup: create tables, migrate, seed the category catalog."""
    init_db()
    run_migrations()
    seed_database()
    yield


app = FastAPI(
    title="Kakeibo",
    description="Household ledger with bulk Excel import",
    version=VERSION,
    lifespan=lifespan,
)

# CORS: allow the React dev server to call the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(transactions.router, prefix="/api/transactions", tags=["Transactions"])
app.include_router(categories.router, prefix="/api/categories", tags=["Categories"])
app.include_router(import_excel.router, prefix="/api/import", tags=["Excel Import"])


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": VERSION}
