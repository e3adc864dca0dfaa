"""
Excel ledger import endpoints.

- POST /api/import/analyze: upload a workbook, stream an analysis summary
- POST /api/import/execute: import an analyzed workbook by token

Both stream newline-delimited JSON events:
    {"type": "progress", "message": ...}   (zero or more)
    {"type": "complete", ...} or {"type": "error", "error": ...}   (last)
"""

import logging
from pathlib import Path
from typing import Optional, Union
from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field, field_validator

from ..database import get_session_factory
from ..errors import InvalidUpload, SessionNotFound
from ..services.excel_import import analyze_workbook, start_execute
from ..services.import_session import UPLOAD_DIR, store_upload
from ..services.progress import ndjson_stream

logger = logging.getLogger(__name__)

router = APIRouter()

NDJSON_MEDIA_TYPE = "application/x-ndjson"
STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


class ExecuteRequest(BaseModel):
    token: Optional[str] = None
    target_year: Optional[int] = Field(default=None, alias="targetYear")

    model_config = {"populate_by_name": True}

    @field_validator("target_year", mode="before")
    @classmethod
    def blank_year_means_all(cls, value: Union[int, str, None]):
        if isinstance(value, str) and not value.strip():
            return None
        return value


def get_upload_dir() -> Path:
    """FastAPI dependency: where import sessions are stored."""
    return UPLOAD_DIR


def _stream(events):
    return StreamingResponse(
        ndjson_stream(events),
        media_type=NDJSON_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )


@router.post("/analyze")
def analyze_upload(
    file: Optional[UploadFile] = File(None),
    upload_dir: Path = Depends(get_upload_dir),
):
    """Store an uploaded workbook and stream its sheet analysis."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        path = store_upload(file.file, file.filename, upload_dir)
    except InvalidUpload as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _stream(analyze_workbook(path))


@router.post("/execute")
def execute_import(
    req: ExecuteRequest,
    background_tasks: BackgroundTasks,
    session_factory=Depends(get_session_factory),
    upload_dir: Path = Depends(get_upload_dir),
):
    """Import a previously analyzed workbook, streaming progress."""
    if not req.token:
        raise HTTPException(status_code=400, detail="No token provided")

    try:
        events = start_execute(req.token, session_factory, req.target_year, upload_dir)
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    # Runs once the response is over, even if streaming never began
    background_tasks.add_task(events.close)
    return _stream(events)
