"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    def as_xywh(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x1, self.y1, self.width, self.height)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x1, y1, x2, y2) tuple."""
        return (int(self.x1), int(self.y1), int(self.x2), int(self.y2))

    def scaled(self, sx: float, sy: float) -> "BoundingBox":
        """Scale horizontally by sx and vertically by sy."""
        return BoundingBox(
            x1=self.x1 * sx,
            y1=self.y1 * sy,
            x2=self.x2 * sx,
            y2=self.y2 * sy,
        )

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "BoundingBox":
        """Create from (x, y, width, height) format."""
        return cls(x1=x, y1=y, x2=x + w, y2=y + h)


@dataclass(frozen=True)
class Detection:
    """
    A single detection from an object detector, valid for one frame only.

    Attributes:
        bbox: Bounding box in frame pixel coordinates.
        confidence: Detection confidence score (0-1).
        class_name: Detector class label (e.g. "person", "car").
        class_id: Optional numeric class ID from the detector.
    """
    bbox: BoundingBox
    confidence: float
    class_name: str
    class_id: Optional[int] = None

    @classmethod
    def from_xywh(
        cls,
        x: float,
        y: float,
        w: float,
        h: float,
        confidence: float,
        class_name: str,
        class_id: Optional[int] = None,
    ) -> "Detection":
        return cls(
            bbox=BoundingBox.from_xywh(x, y, w, h),
            confidence=confidence,
            class_name=class_name,
            class_id=class_id,
        )

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "Detection":
        """
        Adapter: Convert a raw detector dict to a Detection.

        Args:
            raw: Mapping with "class", "score" and "bbox" as [x, y, w, h].

        Raises:
            ValueError: If the bbox does not have four values.
        """
        bbox: Sequence[float] = raw["bbox"]
        if len(bbox) != 4:
            raise ValueError(f"bbox must be [x, y, w, h], got {list(bbox)}")
        x, y, w, h = (float(v) for v in bbox)
        return cls.from_xywh(
            x, y, w, h,
            confidence=float(raw["score"]),
            class_name=str(raw["class"]),
            class_id=raw.get("class_id"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the raw detector dict shape."""
        return {
            "class": self.class_name,
            "score": self.confidence,
            "bbox": list(self.bbox.as_xywh()),
        }
