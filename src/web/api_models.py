from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SessionStatusResponse(BaseModel):
    state: str = Field(..., description="idle|running")
    running: bool
    epoch: int = Field(..., description="Start token of the current or last session")
    elapsed_seconds: Optional[float] = Field(None, description="Seconds since start, null when idle")
    counts: Dict[str, int]
    confidence_threshold: float
    selected_classes: List[str]
    frames_processed: int = 0
    alerts: List[str] = Field(default_factory=list)
    last_error: Optional[str] = None


class StopResponse(BaseModel):
    saved: bool
    record_id: Optional[int] = None
    status: SessionStatusResponse


class SettingsUpdate(BaseModel):
    confidence_threshold: Optional[float] = Field(None, ge=0.0, le=1.0)
    classes: Optional[List[str]] = None


class AnnotationModel(BaseModel):
    bbox: List[float] = Field(..., description="[x, y, width, height] in display pixels")
    label: str
    class_name: str = Field(..., alias="class")
    score: float

    model_config = {"populate_by_name": True}


class FrameResponse(BaseModel):
    """
    Result of one uploaded frame. `applied` is false when the detection
    failed or arrived after the session was stopped.
    """
    applied: bool
    counts: Dict[str, int]
    annotations: List[AnnotationModel]


class SessionRecordModel(BaseModel):
    id: int
    timestamp: str
    duration: int
    counts: Dict[str, int]
    people: int
    cars: int
    trucks: int
    buses: int
    total: int


class TrendResponse(BaseModel):
    labels: List[str]
    people: List[int]
    cars: List[int]
    trucks: List[int]
    buses: List[int]


class ClearResponse(BaseModel):
    deleted: int
