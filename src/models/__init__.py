"""
Typed models for the object counter application.
"""

from .frame import FrameData
from .detection import Detection, BoundingBox
from .counts import TRACKED_CLASSES, FrameCounts, Annotation, zero_counts
from .session_record import SessionRecord
from .status import SessionState, SessionStatus
from .config import (
    Config,
    SourceConfig,
    DetectionConfig,
    CountingConfig,
    DisplayConfig,
    StorageConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "BoundingBox",
    # Counting
    "TRACKED_CLASSES",
    "FrameCounts",
    "Annotation",
    "zero_counts",
    # History
    "SessionRecord",
    # Session
    "SessionState",
    "SessionStatus",
    # Config
    "Config",
    "SourceConfig",
    "DetectionConfig",
    "CountingConfig",
    "DisplayConfig",
    "StorageConfig",
    "WebConfig",
]
