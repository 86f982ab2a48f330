"""
FrameData model for frames handed to the session controller.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np


@dataclass
class FrameData:
    """
    A decoded frame plus the metadata needed to scale its detections.

    Attributes:
        frame: The raw frame as a numpy array (BGR format).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when the frame was produced.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the camera, video file or image.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=time.time() if timestamp is None else timestamp,
            frame_index=frame_index,
            source=source,
        )

    @classmethod
    def from_bytes(cls, data: bytes, source: Optional[str] = None) -> "FrameData":
        """
        Decode encoded image bytes (JPEG, PNG, ...) into a frame.

        Raises:
            ValueError: If the bytes are not decodable image data.
        """
        buf = np.frombuffer(data, dtype=np.uint8)
        frame = cv2.imdecode(buf, cv2.IMREAD_COLOR) if buf.size else None
        if frame is None:
            raise ValueError("Could not decode image data")
        return cls.from_numpy(frame, source=source)

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)
