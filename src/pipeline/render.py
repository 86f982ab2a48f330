"""
Overlay rendering for the preview window.
"""

from __future__ import annotations

from typing import Iterable, Mapping

import cv2
import numpy as np

from models.counts import TRACKED_CLASSES, Annotation

# Colors (BGR)
COLOR_BOX = (136, 255, 0)
COLOR_COUNTS = (255, 255, 255)
COLOR_COUNTS_BG = (0, 0, 0)


def draw_annotations(frame: np.ndarray, annotations: Iterable[Annotation]) -> np.ndarray:
    """Draw boxes and "<class> <pct>%" labels in place and return the frame."""
    font = cv2.FONT_HERSHEY_SIMPLEX
    for ann in annotations:
        x1, y1, x2, y2 = ann.bbox.as_int_tuple()
        cv2.rectangle(frame, (x1, y1), (x2, y2), COLOR_BOX, 2)
        tx, ty = ann.label_origin
        cv2.putText(frame, ann.label, (int(tx), int(ty)), font, 0.5, COLOR_BOX, 1)
    return frame


def draw_counts(frame: np.ndarray, counts: Mapping[str, int]) -> np.ndarray:
    """Draw the four tracked counts in the top-left corner."""
    font = cv2.FONT_HERSHEY_SIMPLEX
    text = "  ".join(f"{label}: {counts.get(label, 0)}" for label in TRACKED_CLASSES)
    (tw, th), _ = cv2.getTextSize(text, font, 0.6, 1)
    cv2.rectangle(frame, (5, 5), (15 + tw, 15 + th), COLOR_COUNTS_BG, -1)
    cv2.putText(frame, text, (10, 10 + th), font, 0.6, COLOR_COUNTS, 1)
    return frame
