"""
Detection session lifecycle.
"""

from .controller import SessionController

__all__ = ["SessionController"]
