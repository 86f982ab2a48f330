"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .counts import TRACKED_CLASSES


@dataclass
class SourceConfig:
    """Frame source configuration (camera index, video file, stream URL or image)."""
    device_id: Union[int, str] = 0
    resolution: Optional[List[int]] = None
    fps: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution"),
            fps=d.get("fps"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"device_id": self.device_id}
        if self.resolution is not None:
            d["resolution"] = self.resolution
        if self.fps is not None:
            d["fps"] = self.fps
        return d


@dataclass
class DetectionConfig:
    """Detector backend configuration."""
    backend: str = "yolo"
    model: str = "yolov8n.pt"
    iou_threshold: float = 0.45
    static_detections: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            backend=d.get("backend", "yolo"),
            model=d.get("model", "yolov8n.pt"),
            iou_threshold=d.get("iou_threshold", 0.45),
            static_detections=list(d.get("static_detections") or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "backend": self.backend,
            "model": self.model,
            "iou_threshold": self.iou_threshold,
        }
        if self.static_detections:
            d["static_detections"] = self.static_detections
        return d


@dataclass
class CountingConfig:
    """Confidence threshold and class selection for counting/display."""
    confidence_threshold: float = 0.5
    classes: List[str] = field(default_factory=lambda: list(TRACKED_CLASSES))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CountingConfig":
        return cls(
            confidence_threshold=d.get("confidence_threshold", 0.5),
            classes=list(d.get("classes") or TRACKED_CLASSES),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence_threshold": self.confidence_threshold,
            "classes": list(self.classes),
        }


@dataclass
class DisplayConfig:
    """Preview window configuration. A missing size means the frame's own size."""
    enabled: bool = False
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DisplayConfig":
        return cls(
            enabled=d.get("enabled", False),
            width=d.get("width"),
            height=d.get("height"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "width": self.width,
            "height": self.height,
        }


@dataclass
class StorageConfig:
    """Storage configuration."""
    local_database_path: str = "data/object_counter.sqlite"
    export_path: str = "object_counter_history.csv"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StorageConfig":
        return cls(
            local_database_path=d.get("local_database_path", "data/object_counter.sqlite"),
            export_path=d.get("export_path", "object_counter_history.csv"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "local_database_path": self.local_database_path,
            "export_path": self.export_path,
        }


@dataclass
class WebConfig:
    """Web API bind address."""
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=d.get("port", 5000))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    source: SourceConfig = field(default_factory=SourceConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    counting: CountingConfig = field(default_factory=CountingConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/object_counter.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            source=SourceConfig.from_dict(d.get("source", {}) or {}),
            detection=DetectionConfig.from_dict(d.get("detection", {}) or {}),
            counting=CountingConfig.from_dict(d.get("counting", {}) or {}),
            display=DisplayConfig.from_dict(d.get("display", {}) or {}),
            storage=StorageConfig.from_dict(d.get("storage", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/object_counter.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or logging)."""
        return {
            "source": self.source.to_dict(),
            "detection": self.detection.to_dict(),
            "counting": self.counting.to_dict(),
            "display": self.display.to_dict(),
            "storage": self.storage.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
