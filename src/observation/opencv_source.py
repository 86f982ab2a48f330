"""
OpenCV-based observation source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- Video files (device_id as file path)
- Stream URLs (device_id as str URL)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Union

import cv2

from models.config import SourceConfig
from models.frame import FrameData

from .base import ObservationConfig, ObservationSource


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based observation sources.

    Attributes:
        device_id: Camera index (int), file path or stream URL (str).
        max_retries: Attempts before open() gives up.
    """
    device_id: Union[int, str] = 0
    max_retries: int = 3

    @classmethod
    def from_source_config(cls, cfg: SourceConfig) -> "OpenCVSourceConfig":
        """Adapter: Create from the typed `source` config section."""
        device_id = cfg.device_id
        if isinstance(device_id, str) and device_id.isdigit():
            device_id = int(device_id)
        source_id = f"camera-{device_id}" if isinstance(device_id, int) else os.path.basename(str(device_id))
        return cls(
            source_id=source_id,
            resolution=tuple(cfg.resolution) if cfg.resolution else None,
            fps=cfg.fps,
            device_id=device_id,
        )


class OpenCVSource(ObservationSource):
    """
    Wraps cv2.VideoCapture to provide frames as FrameData objects.

    Example:
        config = OpenCVSourceConfig(device_id=0, resolution=(1280, 720))
        with OpenCVSource(config) as source:
            frame_data = source.read()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._exhausted = False

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def open(self) -> None:
        """Open the capture device, retrying with backoff for cameras."""
        if self._is_open:
            return

        for attempt in range(self._opencv_config.max_retries):
            self._cap = cv2.VideoCapture(self.device_id)
            if self._cap.isOpened():
                break
            self._cap.release()
            self._cap = None
            if self.is_file or attempt == self._opencv_config.max_retries - 1:
                break
            wait_time = min(2 ** attempt, 10)
            logging.warning(
                f"Failed to open device {self.device_id} (attempt {attempt + 1}/"
                f"{self._opencv_config.max_retries}), retrying in {wait_time}s"
            )
            time.sleep(wait_time)

        if self._cap is None:
            raise RuntimeError(f"Unable to open video source {self.device_id!r}")

        if isinstance(self.device_id, int) and self._opencv_config.resolution:
            w, h = self._opencv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self._opencv_config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)

        self._is_open = True
        self._exhausted = False
        self._frame_index = 0
        logging.info(f"OpenCVSource opened: source_id={self.source_id}, device={self.device_id}")

    def read(self) -> Optional[FrameData]:
        """Read the next frame; None at end of file or on a camera read failure."""
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            if self.is_file:
                if not self._exhausted:
                    logging.info("End of video file reached")
                self._exhausted = True
            return None

        self._frame_index += 1
        return FrameData.from_numpy(frame, frame_index=self._frame_index, source=self.source_id)

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logging.info(f"OpenCVSource closed: source_id={self.source_id}")
        self._is_open = False
