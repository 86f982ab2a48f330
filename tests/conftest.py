"""
Pytest configuration and shared fixtures.
"""

import asyncio
import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from storage.history import HistoryStore  # noqa: E402


class StepClock:
    """Deterministic wall clock: each call returns the next second."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def temp_db():
    """Create a temporary database file."""
    fd, path = tempfile.mkstemp(suffix=".sqlite")
    os.close(fd)
    yield path
    # Cleanup
    try:
        os.unlink(path)
    except OSError:
        pass


@pytest.fixture
def history_store(temp_db):
    """An initialized HistoryStore with a stepping clock."""
    store = HistoryStore.from_path(temp_db, clock=StepClock())
    asyncio.run(store.initialize())
    yield store
    asyncio.run(store.close())


@pytest.fixture
def manual_clock():
    return ManualClock()


@pytest.fixture
def blank_frame():
    """A black 640x480 BGR frame."""
    return np.zeros((480, 640, 3), dtype=np.uint8)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
source:
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  backend: "yolo"
  model: "yolov8n.pt"
  iou_threshold: 0.45

counting:
  confidence_threshold: 0.5
  classes: [person, car, truck, bus]

storage:
  local_database_path: "data/test.sqlite"
  export_path: "history.csv"

web:
  port: 5000

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "source": {
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detection": {
            "backend": "static",
            "static_detections": [
                {"class": "person", "score": 0.9, "bbox": [10, 10, 50, 100]},
            ],
        },
        "counting": {
            "confidence_threshold": 0.5,
            "classes": ["person", "car", "truck", "bus"],
        },
        "storage": {
            "local_database_path": "data/test.sqlite",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
