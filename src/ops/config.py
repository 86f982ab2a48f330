"""
Layered YAML configuration.

Layers, later wins:
- config/default.yaml (checked in)
- config/config.yaml (local overrides)
- an explicit --config file
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Tuple

import yaml

from detection.factory import BACKENDS
from models.counts import TRACKED_CLASSES

DEFAULT_CONFIG_PATH = os.path.join("config", "config.yaml")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load configuration with layering.

    The default and local override files are looked up next to `config_path`.

    Raises:
        ValueError: If a layer is not a YAML mapping.
        yaml.YAMLError: If a layer is not valid YAML.
    """
    config_dir = os.path.dirname(config_path)
    base_cfg = _read_yaml(os.path.join(config_dir, "default.yaml"))

    local_overrides_path = os.path.join(config_dir, "config.yaml")
    merged = _deep_merge(base_cfg, _read_yaml(local_overrides_path))

    # Finally apply explicit config_path if it's not the local override file itself
    if os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
        if not os.path.exists(config_path):
            logging.warning(f"Config file not found: {config_path}")
        merged = _deep_merge(merged, _read_yaml(config_path))

    return merged


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Every section is optional; missing values take the dataclass defaults.

    Returns:
        Tuple of (is_valid, error_message)
    """
    source = config.get("source", {}) or {}
    if "device_id" in source:
        device_id = source["device_id"]
        if isinstance(device_id, bool) or not isinstance(device_id, (int, str)):
            return False, "source.device_id must be an integer (index) or string (path/URL)"
        if isinstance(device_id, int) and device_id < 0:
            return False, "source.device_id integer must be non-negative"
    if source.get("resolution") is not None:
        res = source["resolution"]
        if not isinstance(res, list) or len(res) != 2:
            return False, "source.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in res):
            return False, "source.resolution values must be positive integers"
    if source.get("fps") is not None:
        if not isinstance(source["fps"], int) or source["fps"] <= 0:
            return False, "source.fps must be a positive integer"

    detection = config.get("detection", {}) or {}
    backend = detection.get("backend", "yolo")
    if backend not in BACKENDS:
        return False, f"detection.backend must be one of: {', '.join(BACKENDS)}"
    if backend == "yolo":
        model = detection.get("model", "yolov8n.pt")
        if not isinstance(model, str) or not model:
            return False, "detection.model is required when detection.backend is 'yolo'"
    if "iou_threshold" in detection:
        iou = detection["iou_threshold"]
        if not isinstance(iou, (int, float)) or not (0 < iou <= 1):
            return False, "detection.iou_threshold must be between 0 and 1"
    static = detection.get("static_detections") or []
    if not isinstance(static, list):
        return False, "detection.static_detections must be a list"

    counting = config.get("counting", {}) or {}
    if "confidence_threshold" in counting:
        thr = counting["confidence_threshold"]
        if isinstance(thr, bool) or not isinstance(thr, (int, float)) or not (0 <= thr <= 1):
            return False, "counting.confidence_threshold must be between 0 and 1"
    if counting.get("classes") is not None:
        classes = counting["classes"]
        if not isinstance(classes, list) or not all(isinstance(c, str) for c in classes):
            return False, "counting.classes must be a list of class names"
        unknown = [c for c in classes if c not in TRACKED_CLASSES]
        if unknown:
            logging.warning(f"counting.classes contains untracked classes: {unknown}")

    display = config.get("display", {}) or {}
    for key in ("width", "height"):
        val = display.get(key)
        if val is not None and (not isinstance(val, int) or val <= 0):
            return False, f"display.{key} must be a positive integer"

    storage = config.get("storage", {}) or {}
    for key in ("local_database_path", "export_path"):
        if key in storage and not isinstance(storage[key], str):
            return False, f"storage.{key} must be a string"

    web = config.get("web", {}) or {}
    if "port" in web:
        port = web["port"]
        if not isinstance(port, int) or not (0 < port < 65536):
            return False, "web.port must be an integer between 1 and 65535"

    log_level = config.get("log_level", "INFO")
    if log_level not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None
