"""Local persistence for sleep sessions."""

from .session_store import SessionStore, LiveQuery, StoreError

__all__ = [
    "SessionStore",
    "LiveQuery",
    "StoreError",
]
