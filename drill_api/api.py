"""
Drill Ops Lab - Drill Data API

FastAPI service that:
- Accepts POSTed drill readings from the emulator at /drill_data
- Stamps each reading with an id and a server-side recorded_at
- Exposes the latest N readings, newest first, via GET /drill_data
- Lets the dashboard wipe the buffer via DELETE /drill_data

Only the most recent DRILL_BUFFER_SIZE readings are kept; older ones are
gone for good.
"""

import os
import threading
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

app = FastAPI(title="Drill Ops Lab API")

# -------------------------------------------------------------------
# Data models
# -------------------------------------------------------------------


class DrillReadingIn(BaseModel):
    # readings are finite and non-negative
    model_config = ConfigDict(allow_inf_nan=False)

    temperature: float = Field(..., ge=0, description="Bit temperature in °C")
    rpm: int = Field(..., ge=0, description="Spindle speed in revolutions/min")
    load: float = Field(..., ge=0, description="Motor load in A")
    vibration: float = Field(..., ge=0, description="Vibration in m/s²")
    depth: float = Field(..., ge=0, description="Drilled depth in mm")


class DrillReadingOut(DrillReadingIn):
    id: str
    recorded_at: datetime


class ClearResult(BaseModel):
    status: str
    removed: int


# -------------------------------------------------------------------
# In-memory storage
# -------------------------------------------------------------------

BUFFER_SIZE = int(os.getenv("DRILL_BUFFER_SIZE", "2000"))
DEFAULT_LIMIT = 50

DRILL_BUFFER: Deque[Dict] = deque(maxlen=BUFFER_SIZE)
_BUFFER_LOCK = threading.Lock()
_last_recorded_at: Optional[datetime] = None


# -------------------------------------------------------------------
# Helper functions
# -------------------------------------------------------------------


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _next_recorded_at() -> datetime:
    """Server timestamp, never earlier than the previous one."""
    global _last_recorded_at
    now = _now_utc()
    if _last_recorded_at is not None and now < _last_recorded_at:
        now = _last_recorded_at
    _last_recorded_at = now
    return now


def _append_reading(payload: Dict) -> Dict:
    with _BUFFER_LOCK:
        record = {
            **payload,
            "id": uuid.uuid4().hex,
            "recorded_at": _next_recorded_at(),
        }
        DRILL_BUFFER.append(record)
    return record


def _latest(limit: int) -> List[Dict]:
    with _BUFFER_LOCK:
        items = list(DRILL_BUFFER)[-limit:]
    items.reverse()
    return items


def reset_store() -> int:
    """Drop every buffered reading; returns how many were removed."""
    global _last_recorded_at
    with _BUFFER_LOCK:
        removed = len(DRILL_BUFFER)
        DRILL_BUFFER.clear()
        _last_recorded_at = None
    return removed


# -------------------------------------------------------------------
# Drill data endpoints
# -------------------------------------------------------------------


@app.post("/drill_data", response_model=Dict[str, str])
def ingest_reading(body: DrillReadingIn):
    record = _append_reading(body.model_dump())
    return {"status": "ok", "id": record["id"]}


@app.get("/drill_data", response_model=List[DrillReadingOut])
def get_drill_data(limit: int = DEFAULT_LIMIT):
    if limit <= 0:
        raise HTTPException(status_code=400, detail="limit must be > 0")
    # latest N readings, newest first
    return _latest(limit)


@app.delete("/drill_data", response_model=ClearResult)
def clear_drill_data():
    """
    Wipe the buffer so a demo can start from a clean chart. The
    emulator's wear counter is not touched; it lives in the emulator.
    """
    return ClearResult(status="cleared", removed=reset_store())


@app.get("/health")
def health():
    return {"status": "ok", "buffered": len(DRILL_BUFFER)}
