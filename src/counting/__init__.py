"""
Per-frame filtering, counting and annotation.
"""

from .classifier import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    FrameClassifier,
    FrameResult,
    classify,
    format_label,
)

__all__ = [
    "DEFAULT_CONFIDENCE_THRESHOLD",
    "FrameClassifier",
    "FrameResult",
    "classify",
    "format_label",
]
