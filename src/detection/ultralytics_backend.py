"""
Ultralytics YOLO detector backend.

Runs a COCO-pretrained YOLO model on CPU (or whatever device Ultralytics
selects). Confidence filtering is left to the classifier, so the model is
queried with a low floor and every class it knows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from models.detection import BoundingBox, Detection

from .base import Detector


@dataclass(frozen=True)
class UltralyticsConfig:
    model: str = "yolov8n.pt"
    conf_floor: float = 0.05
    iou_threshold: float = 0.45
    class_name_overrides: Optional[Dict[int, str]] = None


def _as_array(values) -> np.ndarray:
    """Torch tensors (any device) or array-likes to a numpy array."""
    if hasattr(values, "cpu"):
        values = values.cpu().numpy()
    return np.asarray(values)


class UltralyticsBackend(Detector):
    def __init__(self, cfg: UltralyticsConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics` "
                "or switch detection.backend to 'static'."
            ) from e

        self._model = YOLO(cfg.model)

    def detect(self, frame: np.ndarray) -> List[Detection]:
        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_floor,
            iou=self.cfg.iou_threshold,
            verbose=False,
        )
        if not results:
            return []

        result = results[0]
        boxes = getattr(result, "boxes", None)
        if boxes is None:
            return []
        model_names = getattr(result, "names", None) or {}
        overrides = self.cfg.class_name_overrides or {}

        detections: List[Detection] = []
        for corners, score, raw_class in zip(_as_array(boxes.xyxy), _as_array(boxes.conf), _as_array(boxes.cls)):
            class_id = int(raw_class)
            x1, y1, x2, y2 = (float(v) for v in corners)
            detections.append(
                Detection(
                    bbox=BoundingBox(x1, y1, x2, y2),
                    confidence=float(score),
                    class_name=self._class_name(class_id, overrides, model_names),
                    class_id=class_id,
                )
            )
        return detections

    @staticmethod
    def _class_name(class_id: int, overrides: Dict[int, str], model_names: Dict[int, str]) -> str:
        """Configured override first, then the model's own label, then the numeric id."""
        if class_id in overrides:
            return overrides[class_id]
        return model_names.get(class_id) or str(class_id)
