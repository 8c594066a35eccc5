"""Persisted local state"""

from .state_store import LocalState, RecordStore

__all__ = ["LocalState", "RecordStore"]
