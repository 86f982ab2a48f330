"""
Build detector backend factories from configuration.
"""

from __future__ import annotations

from models.config import DetectionConfig

from .adapter import BackendFactory
from .base import Detector
from .static_backend import StaticBackend
from .ultralytics_backend import UltralyticsBackend, UltralyticsConfig

BACKENDS = ("yolo", "static")


def create_backend_factory(cfg: DetectionConfig) -> BackendFactory:
    """
    Return a zero-argument callable that constructs the configured backend.

    Construction is deferred so model loading happens when a session first
    needs it, not at import or startup.
    """
    if cfg.backend == "static":
        def _static() -> Detector:
            return StaticBackend.from_config(cfg.static_detections)
        return _static

    if cfg.backend == "yolo":
        def _yolo() -> Detector:
            return UltralyticsBackend(
                UltralyticsConfig(model=cfg.model, iou_threshold=float(cfg.iou_threshold))
            )
        return _yolo

    raise ValueError(f"detection.backend must be one of: {', '.join(BACKENDS)}")
