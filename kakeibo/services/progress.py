"""
Progress events for long-running imports.

The pipeline yields plain dict events; transports only forward them.
Every stream is zero or more progress events followed by exactly one
terminal event (complete or error).
"""

import json
import logging
from typing import Iterator

from ..errors import StreamError

logger = logging.getLogger(__name__)

PROGRESS = "progress"
COMPLETE = "complete"
ERROR = "error"

TERMINAL_TYPES = {COMPLETE, ERROR}


def progress(message: str) -> dict:
    return {"type": PROGRESS, "message": message}


def complete(**payload) -> dict:
    """Terminal success event; payload keys sit beside "type"."""
    return {"type": COMPLETE, **payload}


def error(message: str) -> dict:
    return {"type": ERROR, "error": message}


def is_terminal(event: dict) -> bool:
    return event.get("type") in TERMINAL_TYPES


def to_ndjson(event: dict) -> str:
    return json.dumps(event, ensure_ascii=False, default=str) + "\n"


def _abort(events: Iterator[dict]):
    """Raise StreamError inside a pipeline generator, if it takes one."""
    throw = getattr(events, "throw", None)
    if throw is None:
        return
    try:
        throw(StreamError("client disconnected"))
    except (StreamError, StopIteration):
        pass


def ndjson_stream(events: Iterator[dict]) -> Iterator[str]:
    """
    Forward pipeline events as newline-delimited JSON.

    If the client disconnects, the server closes this generator mid-yield.
    StreamError is then raised inside the pipeline at the event it was
    emitting, so it can stop and clean up. Committed writes stay as they
    are and nothing further is emitted.
    """
    try:
        for event in events:
            yield to_ndjson(event)
    except GeneratorExit:
        logger.warning("Client disconnected, stopping import stream")
        _abort(events)
        raise
    finally:
        close = getattr(events, "close", None)
        if close is not None:
            close()
