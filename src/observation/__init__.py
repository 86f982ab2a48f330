"""
Observation layer for pluggable video/image sources.

Each source implements the ObservationSource interface and returns
FrameData objects; the pipeline never touches capture devices directly.
"""

from __future__ import annotations

from models.config import SourceConfig

from .base import ObservationSource, ObservationConfig
from .image_source import ImageSource, ImageSourceConfig, is_image_path
from .opencv_source import OpenCVSource, OpenCVSourceConfig


def create_source_from_config(cfg: SourceConfig) -> ObservationSource:
    """Pick an ImageSource for still images and an OpenCVSource otherwise."""
    device_id = cfg.device_id
    if isinstance(device_id, str) and is_image_path(device_id):
        return ImageSource(ImageSourceConfig(source_id=device_id, path=device_id))
    return OpenCVSource(OpenCVSourceConfig.from_source_config(cfg))


__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "ImageSource",
    "ImageSourceConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
