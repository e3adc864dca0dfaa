"""
Import session storage.

Analyze stores the uploaded workbook under a random name in the upload
directory and hands that name back as the session token. Execute turns the
token back into a path, claims the file, and deletes it when done, so a
token works exactly once.

Tokens are only ever resolved as bare file names inside UPLOAD_DIR; the
caller's original filename is never used for lookup.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

from ..database import DATA_DIR
from ..errors import InvalidUpload, SessionNotFound

logger = logging.getLogger(__name__)

UPLOAD_DIR = Path(os.environ.get("KAKEIBO_UPLOAD_DIR", DATA_DIR / "uploads"))

CLAIMED_SUFFIX = ".claimed"
ALLOWED_SUFFIXES = {".xlsx", ".xlsm"}
COPY_BUFSIZE = 1024 * 1024


def _upload_dir(upload_dir: Optional[Path]) -> Path:
    path = Path(upload_dir) if upload_dir is not None else UPLOAD_DIR
    path.mkdir(parents=True, exist_ok=True)
    return path


def store_upload(
    stream: BinaryIO,
    original_filename: Optional[str] = None,
    upload_dir: Optional[Path] = None,
) -> Path:
    """Copy an uploaded workbook into the upload directory under a fresh name."""
    suffix = Path(original_filename or "").suffix.lower()
    if suffix not in ALLOWED_SUFFIXES:
        suffix = ".xlsx"

    path = _upload_dir(upload_dir) / f"{uuid.uuid4().hex}{suffix}"
    size = 0
    with open(path, "wb") as out:
        while True:
            chunk = stream.read(COPY_BUFSIZE)
            if not chunk:
                break
            out.write(chunk)
            size += len(chunk)

    if size == 0:
        discard(path)
        raise InvalidUpload("Uploaded file is empty")

    logger.info(f"Stored upload {original_filename!r} as {path.name} ({size} bytes)")
    return path


def token_for(path: Path) -> str:
    """The session token is the stored file's basename, nothing more."""
    return path.name


def resolve_token(token: str, upload_dir: Optional[Path] = None) -> Path:
    """
    Map a token back to its stored workbook.

    Rejects anything that is not a plain file name (separators, "..",
    claimed files) and raises SessionNotFound if no such file exists.
    """
    if (
        not token
        or "/" in token
        or "\\" in token
        or "\x00" in token
        or token in (".", "..")
        or token.endswith(CLAIMED_SUFFIX)
        or Path(token).name != token
    ):
        raise SessionNotFound("Import session expired or file not found")

    path = _upload_dir(upload_dir) / token
    if not path.is_file():
        raise SessionNotFound("Import session expired or file not found")
    return path


def claim(path: Path) -> Path:
    """
    Take exclusive ownership of a stored workbook for Execute.

    The rename is atomic, so when two Execute calls race on one token only
    one of them gets the file; the other sees SessionNotFound.
    """
    claimed = path.with_name(path.name + CLAIMED_SUFFIX)
    try:
        os.rename(path, claimed)
    except FileNotFoundError:
        raise SessionNotFound("Import session expired or file not found")
    return claimed


def discard(path: Path) -> None:
    """Delete a stored workbook; already-gone files are fine."""
    try:
        path.unlink()
        logger.debug(f"Discarded upload {path.name}")
    except FileNotFoundError:
        pass
