"""
Fixed-output detector backend.

Returns the same raw detections for every frame. Useful for demos without a
model download and for exercising the counting path in tests.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

import numpy as np

from models.detection import Detection

from .base import Detector


class StaticBackend(Detector):
    def __init__(self, raw_detections: Sequence[Mapping[str, Any]]):
        self._detections: List[Detection] = [Detection.from_raw(r) for r in raw_detections]

    def detect(self, frame: np.ndarray) -> List[Detection]:
        return list(self._detections)

    @classmethod
    def from_config(cls, raw: Sequence[Dict[str, Any]]) -> "StaticBackend":
        return cls(raw)
