"""
Session state models for the live display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SessionState(str, Enum):
    """Detection session states. Stop returns to IDLE; there is no pause."""
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class SessionStatus:
    """
    Point-in-time view of the session controller.

    Attributes:
        state: Current session state.
        epoch: Start token of the current (or last) session.
        elapsed_seconds: Seconds since start, None when idle.
        counts: Live FrameCounts currently displayed.
        confidence_threshold: Active confidence threshold.
        selected_classes: Classes selected for display/counting.
        frames_processed: Ticks applied in the current session.
        alerts: Failure classes reported since the session started.
    """
    state: SessionState
    epoch: int
    elapsed_seconds: Optional[float]
    counts: Dict[str, int]
    confidence_threshold: float
    selected_classes: List[str]
    frames_processed: int = 0
    alerts: List[str] = field(default_factory=list)

    @property
    def running(self) -> bool:
        return self.state == SessionState.RUNNING

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "state": self.state.value,
            "running": self.running,
            "epoch": self.epoch,
            "elapsed_seconds": self.elapsed_seconds,
            "counts": dict(self.counts),
            "confidence_threshold": self.confidence_threshold,
            "selected_classes": list(self.selected_classes),
            "frames_processed": self.frames_processed,
            "alerts": list(self.alerts),
        }
