"""
Per-frame classification and counting.

Filters one frame's detections by confidence and by the selected classes,
counts the tracked labels among the survivors and produces scaled draw
annotations. Nothing is carried over between frames: every call starts from
zero counts.

A detection is included iff

    confidence >= threshold  and  class_name in selected classes

Included detections are all drawn. Only the four tracked labels (person,
car, truck, bus) are counted, so a selected class the detector knows but
that is not tracked shows up as a box without touching the counts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Optional, Sequence, Tuple

from models.counts import TRACKED_CLASSES, Annotation, FrameCounts, zero_counts
from models.detection import Detection

DEFAULT_CONFIDENCE_THRESHOLD = 0.5

Size = Tuple[float, float]


@dataclass
class FrameResult:
    """Counts and draw instructions for a single frame."""
    counts: FrameCounts = field(default_factory=zero_counts)
    annotations: List[Annotation] = field(default_factory=list)

    @property
    def included(self) -> int:
        return len(self.annotations)


def format_label(class_name: str, confidence: float) -> str:
    """Label drawn next to a box, e.g. "person 87.5%"."""
    return f"{class_name} {confidence * 100:.1f}%"


def scale_factors(frame_size: Optional[Size], display_size: Optional[Size]) -> Tuple[float, float]:
    """
    Independent horizontal/vertical factors mapping frame pixels to display pixels.

    Missing or degenerate sizes fall back to 1.0 on that axis.
    """
    if not frame_size or not display_size:
        return 1.0, 1.0
    fw, fh = frame_size
    dw, dh = display_size
    sx = dw / fw if fw else 1.0
    sy = dh / fh if fh else 1.0
    return sx, sy


def classify(
    detections: Iterable[Detection],
    confidence_threshold: float,
    allowed_classes: AbstractSet[str],
    frame_size: Optional[Size] = None,
    display_size: Optional[Size] = None,
) -> FrameResult:
    """
    Filter, count and annotate one frame of detections.

    Args:
        detections: Raw detections for this frame only.
        confidence_threshold: Minimum confidence (inclusive).
        allowed_classes: Classes selected for display/counting.
        frame_size: (width, height) of the frame the detector saw.
        display_size: (width, height) of the surface the boxes are drawn on.

    Returns:
        FrameResult with fresh counts for the tracked labels and one
        annotation per included detection.
    """
    sx, sy = scale_factors(frame_size, display_size)
    result = FrameResult()

    for det in detections:
        if det.confidence < confidence_threshold:
            continue
        if det.class_name not in allowed_classes:
            continue

        if det.class_name in result.counts:
            result.counts[det.class_name] += 1

        result.annotations.append(
            Annotation(
                bbox=det.bbox.scaled(sx, sy),
                label=format_label(det.class_name, det.confidence),
                class_name=det.class_name,
                confidence=det.confidence,
            )
        )

    return result


class FrameClassifier:
    """
    Holds the user-adjustable filter settings and applies classify().

    Settings can change while a session is running; the next frame uses them.
    """

    def __init__(
        self,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        selected_classes: Optional[Iterable[str]] = None,
    ):
        self._threshold = DEFAULT_CONFIDENCE_THRESHOLD
        self.confidence_threshold = confidence_threshold
        self._selected = frozenset(TRACKED_CLASSES if selected_classes is None else selected_classes)

    @property
    def confidence_threshold(self) -> float:
        return self._threshold

    @confidence_threshold.setter
    def confidence_threshold(self, value: float) -> None:
        value = float(value)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"confidence_threshold must be between 0 and 1, got {value}")
        self._threshold = value

    @property
    def selected_classes(self) -> frozenset:
        return self._selected

    def select_classes(self, classes: Iterable[str]) -> None:
        self._selected = frozenset(classes)
        untracked = sorted(self._selected.difference(TRACKED_CLASSES))
        if untracked:
            logging.debug(f"Selected classes drawn but not counted: {untracked}")

    def sorted_selection(self) -> Sequence[str]:
        """Selected classes with tracked labels first, in their fixed order."""
        tracked = [c for c in TRACKED_CLASSES if c in self._selected]
        return tracked + sorted(self._selected.difference(TRACKED_CLASSES))

    def classify(
        self,
        detections: Iterable[Detection],
        frame_size: Optional[Size] = None,
        display_size: Optional[Size] = None,
    ) -> FrameResult:
        return classify(
            detections,
            self._threshold,
            self._selected,
            frame_size=frame_size,
            display_size=display_size,
        )
