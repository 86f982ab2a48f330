"""
Object Counter - Detection Module

Detector backends and the async adapter used by the session controller.
"""

from .adapter import DetectorAdapter
from .base import Detector
from .factory import create_backend_factory
from .static_backend import StaticBackend

__all__ = ['Detector', 'DetectorAdapter', 'StaticBackend', 'create_backend_factory']
