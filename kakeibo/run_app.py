"""
Entry point for the Kakeibo backend.
Launches uvicorn with the FastAPI app object directly.

Usage:
    python -m kakeibo.run_app
"""

import logging
import os

import uvicorn

from .main import app


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    port = int(os.environ.get("KAKEIBO_PORT", 8000))
    uvicorn.run(app, host="127.0.0.1", port=port)


if __name__ == "__main__":
    main()
