"""
Detection interfaces.

A backend wraps one concrete model (Ultralytics YOLO, a fixed list for
tests) and turns a frame into pixel-space detections. Backends are
synchronous; the DetectorAdapter moves calls off the event loop.
"""

from __future__ import annotations

from typing import List

import numpy as np

from models.detection import Detection


class Detector:
    """Detector interface returning detections in frame pixel space."""

    def detect(self, frame: np.ndarray) -> List[Detection]:
        raise NotImplementedError
