"""
Async adapter around a detector backend.

The backend is acquired lazily on first use and then reused. Each detect()
call is independent: the adapter keeps no per-frame state, and model calls
run in a worker thread so the event loop keeps servicing ticks and requests.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

import numpy as np

from models.detection import Detection
from ops.errors import DetectionError, DetectorUnavailableError

from .base import Detector

BackendFactory = Callable[[], Detector]


class DetectorAdapter:
    def __init__(self, factory: BackendFactory):
        self._factory = factory
        self._backend: Optional[Detector] = None
        self._load_lock = asyncio.Lock()

    @classmethod
    def from_backend(cls, backend: Detector) -> "DetectorAdapter":
        adapter = cls(lambda: backend)
        adapter._backend = backend
        return adapter

    @property
    def is_available(self) -> bool:
        return self._backend is not None

    async def ensure_available(self) -> Detector:
        """
        Load the backend if it is not loaded yet.

        Raises:
            DetectorUnavailableError: If the factory fails.
        """
        if self._backend is not None:
            return self._backend
        async with self._load_lock:
            if self._backend is None:
                try:
                    self._backend = await asyncio.to_thread(self._factory)
                except Exception as e:
                    logging.error(f"Failed to load detection model: {e}")
                    raise DetectorUnavailableError(str(e)) from e
                logging.info(f"Detection model loaded: {type(self._backend).__name__}")
        return self._backend

    async def detect(self, frame: np.ndarray) -> List[Detection]:
        """
        Run the model on one frame.

        Raises:
            DetectorUnavailableError: If the backend has not been loaded.
            DetectionError: If the backend raised while processing the frame.
        """
        backend = self._backend
        if backend is None:
            raise DetectorUnavailableError("Detection model not loaded")
        try:
            return list(await asyncio.to_thread(backend.detect, frame))
        except Exception as e:
            raise DetectionError(str(e)) from e
