"""
Static image observation source.

Returns the same decoded image on every read, so a running session keeps
re-detecting the still image at the refresh rate.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from models.frame import FrameData

from .base import ObservationConfig, ObservationSource

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".webp", ".tif", ".tiff")


def is_image_path(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in IMAGE_EXTENSIONS


@dataclass
class ImageSourceConfig(ObservationConfig):
    path: str = ""


class ImageSource(ObservationSource):
    def __init__(self, config: ImageSourceConfig):
        super().__init__(config)
        self._path = config.path
        self._image: Optional[np.ndarray] = None

    @classmethod
    def from_array(cls, image: np.ndarray, source_id: str = "image") -> "ImageSource":
        """Build an already-open source around an in-memory image."""
        source = cls(ImageSourceConfig(source_id=source_id))
        source._image = image
        source._is_open = True
        return source

    def open(self) -> None:
        if self._is_open:
            return
        image = cv2.imread(self._path) if self._path else None
        if image is None:
            raise RuntimeError(f"Failed to load image {self._path!r}")
        self._image = image
        self._is_open = True
        self._frame_index = 0
        logging.info(f"ImageSource opened: {self._path} ({image.shape[1]}x{image.shape[0]})")

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._image is None:
            return None
        self._frame_index += 1
        return FrameData.from_numpy(self._image, frame_index=self._frame_index, source=self.source_id)

    def close(self) -> None:
        self._image = None
        self._is_open = False
