"""Data models for the SleepTracker application."""

from .session import (
    SessionRecord,
    UNRATED,
    MIN_QUALITY,
    MAX_QUALITY,
    QUALITY_LABELS,
    quality_label,
    now_ms,
)
from .events import SessionStoreEvent

__all__ = [
    "SessionRecord",
    "UNRATED",
    "MIN_QUALITY",
    "MAX_QUALITY",
    "QUALITY_LABELS",
    "quality_label",
    "now_ms",
    "SessionStoreEvent",
]
