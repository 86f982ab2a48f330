"""
Object Counter - Storage Module

Durable, append-only history of completed detection sessions.
"""

from .database import Database
from .history import HistoryStore

__all__ = ['Database', 'HistoryStore']
