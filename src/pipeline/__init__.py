"""
Pipeline module for the object counter.

The pipeline paces detection ticks from a refresh signal:
- Frame acquisition from observation sources
- Per-frame detection and counting (via SessionController)
- Optional preview rendering
"""

from .engine import PipelineEngine, PipelineConfig, RefreshSignal, drive_refresh

__all__ = [
    "PipelineEngine",
    "PipelineConfig",
    "RefreshSignal",
    "drive_refresh",
]
