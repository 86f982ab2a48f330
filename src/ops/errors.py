"""
Exception types shared across the counter.

Detector and storage failures are recoverable at the session controller
boundary; they never end a running session.
"""

from __future__ import annotations


class CounterError(Exception):
    """Base class for object counter errors."""


class DetectorUnavailableError(CounterError):
    """The detection model is not loaded and could not be acquired."""


class DetectionError(CounterError):
    """A single detect() call failed; the frame is skipped."""


class StoreUnavailableError(CounterError):
    """The history store was never initialized or has been closed."""


class StorageError(CounterError):
    """A history store operation failed and was rolled back."""
