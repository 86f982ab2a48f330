from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response

from export import DEFAULT_EXPORT_FILENAME
from models.frame import FrameData
from ops.errors import DetectorUnavailableError, StorageError, StoreUnavailableError
from session.controller import SessionController

from ..api_models import (
    AnnotationModel,
    ClearResponse,
    FrameResponse,
    SessionRecordModel,
    SessionStatusResponse,
    SettingsUpdate,
    StopResponse,
    TrendResponse,
)
from ..services.history_service import HistoryService

router = APIRouter()


def _controller(request: Request) -> SessionController:
    return request.app.state.controller


def _history(request: Request) -> HistoryService:
    return HistoryService(request.app.state.store)


def _status(controller: SessionController) -> SessionStatusResponse:
    return SessionStatusResponse(**controller.snapshot().to_dict(), last_error=controller.last_error)


# -----------------------------------------------------------------------------
# Session
# -----------------------------------------------------------------------------

@router.post("/session/start", response_model=SessionStatusResponse)
async def start_session(request: Request):
    """Start a session. Starting while running returns the current status."""
    controller = _controller(request)
    try:
        await controller.start()
    except DetectorUnavailableError as e:
        raise HTTPException(status_code=503, detail=f"Detection model unavailable: {e}")
    return _status(controller)


@router.post("/session/stop", response_model=StopResponse)
async def stop_session(request: Request):
    """Stop the session and save it to history. A no-op when idle."""
    controller = _controller(request)
    record_id = await controller.stop()
    return StopResponse(saved=record_id is not None, record_id=record_id, status=_status(controller))


@router.get("/session/status", response_model=SessionStatusResponse)
def session_status(request: Request):
    return _status(_controller(request))


@router.put("/session/settings", response_model=SessionStatusResponse)
def update_settings(request: Request, body: SettingsUpdate):
    controller = _controller(request)
    try:
        controller.update_settings(
            confidence_threshold=body.confidence_threshold,
            classes=body.classes,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _status(controller)


@router.post("/session/frame", response_model=FrameResponse)
async def submit_frame(request: Request, file: UploadFile = File(...)):
    """
    Run one detection tick on an uploaded image.

    Returns 409 when no session is running and 400 when the upload is not an image.
    """
    controller = _controller(request)
    if not controller.running:
        raise HTTPException(status_code=409, detail="No detection session running")

    data = await file.read()
    try:
        frame = FrameData.from_bytes(data, source=file.filename)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = await controller.on_frame(frame)
    return FrameResponse(
        applied=result is not None,
        counts=controller.live_counts,
        annotations=[AnnotationModel(**a.to_dict()) for a in controller.annotations],
    )


# -----------------------------------------------------------------------------
# History
# -----------------------------------------------------------------------------

@router.get("/history", response_model=List[SessionRecordModel])
async def list_history(request: Request, limit: Optional[int] = Query(None, ge=1)):
    """Saved sessions, newest first."""
    records = await _history(request).list_for_display(limit)
    return [r.to_dict() for r in records]


@router.get("/history/trend", response_model=TrendResponse)
async def history_trend(request: Request, limit: int = Query(10, ge=1, le=1000)):
    """Per-class series of the last `limit` sessions, oldest first."""
    return await _history(request).trend(limit)


@router.delete("/history", response_model=ClearResponse)
async def clear_history(request: Request):
    try:
        deleted = await _history(request).clear()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except StorageError as e:
        logging.error(f"Failed to clear history: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return ClearResponse(deleted=deleted)


@router.get("/history/export.csv")
async def export_history(request: Request):
    csv_text = await _history(request).export_csv()
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{DEFAULT_EXPORT_FILENAME}"'},
    )
