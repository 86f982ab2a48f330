"""
Per-frame count models and the fixed set of tracked classes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

from .detection import BoundingBox

# Only these labels are counted and persisted.
TRACKED_CLASSES: Tuple[str, ...] = ("person", "car", "truck", "bus")

FrameCounts = Dict[str, int]


def zero_counts() -> FrameCounts:
    """Return a fresh all-zero FrameCounts mapping."""
    return {label: 0 for label in TRACKED_CLASSES}


def normalize_counts(counts: Mapping[str, int]) -> FrameCounts:
    """
    Coerce a counts mapping to plain ints.

    Tracked labels missing from the input are not added; callers that need
    all four keys should start from zero_counts().
    """
    return {str(k): int(v or 0) for k, v in counts.items()}


@dataclass(frozen=True)
class Annotation:
    """
    A draw instruction for one included detection.

    Attributes:
        bbox: Box in display pixel space.
        label: Text such as "person 87.5%".
        class_name: Detector class label.
        confidence: Detection confidence (0-1).
    """
    bbox: BoundingBox
    label: str
    class_name: str
    confidence: float

    @property
    def label_origin(self) -> Tuple[float, float]:
        """Text anchor: above the box, or inside it when the box hugs the top edge."""
        x = self.bbox.x1 + 4
        y = self.bbox.y1 - 6 if self.bbox.y1 > 10 else self.bbox.y1 + 12
        return (x, y)

    def to_dict(self) -> Dict[str, object]:
        return {
            "bbox": list(self.bbox.as_xywh()),
            "label": self.label,
            "class": self.class_name,
            "score": self.confidence,
        }
