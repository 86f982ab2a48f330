"""
ObservationSource interface for pluggable video/image sources.

The session controller never acquires frames itself; a source hands it one
FrameData per refresh tick:
- USB cameras
- Video files and stream URLs
- Static images
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Base configuration for observation sources.

    Attributes:
        source_id: Identifier for this source (e.g., "camera-0", a file name).
        resolution: Requested (width, height) for cameras. None = device default.
        fps: Requested frames per second for cameras. None = device default.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None


class ObservationSource(ABC):
    """
    Abstract base class for observation sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to initialize the source
        3. Call read() once per tick
        4. Call close() to release resources

    Can also be used as a context manager:
        with ImageSource(config) as source:
            frame_data = source.read()
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames read since open."""
        return self._frame_index

    @property
    def exhausted(self) -> bool:
        """True once a finite source (video file) has no more frames."""
        return False

    @abstractmethod
    def open(self) -> None:
        """
        Open/initialize the observation source.

        Raises:
            RuntimeError: If the source cannot be opened (no camera, missing
                file, permission denied).
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Return the current frame, or None if no frame is available."""

    @abstractmethod
    def close(self) -> None:
        """Release resources. Safe to call multiple times."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
