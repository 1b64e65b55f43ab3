"""Session-related data models."""

import time
from dataclasses import dataclass
from typing import Optional

UNRATED = -1
MIN_QUALITY = 0
MAX_QUALITY = 5

QUALITY_LABELS = {
    0: "Very bad",
    1: "Poor",
    2: "So-so",
    3: "OK",
    4: "Pretty good",
    5: "Excellent",
}


def now_ms() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def quality_label(quality: int) -> str:
    """Human readable label for a quality rating ("--" when unrated)."""
    return QUALITY_LABELS.get(quality, "--")


@dataclass
class SessionRecord:
    """One sleep session, from start to stop.

    A session is in progress while ``end_time_ms == start_time_ms``.
    """
    start_time_ms: int
    end_time_ms: int
    quality: int = UNRATED
    session_id: Optional[int] = None  # Assigned by the store on insert

    @classmethod
    def new(cls, start_time_ms: Optional[int] = None) -> "SessionRecord":
        """Create an in-progress session starting now (or at ``start_time_ms``)."""
        if start_time_ms is None:
            start_time_ms = now_ms()
        return cls(start_time_ms=start_time_ms, end_time_ms=start_time_ms)

    @property
    def is_in_progress(self) -> bool:
        return self.end_time_ms == self.start_time_ms

    @property
    def is_rated(self) -> bool:
        return self.quality != UNRATED

    @property
    def duration_ms(self) -> int:
        return self.end_time_ms - self.start_time_ms
