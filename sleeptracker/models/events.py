"""Event models for the pub/sub notifications."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class SessionStoreEvent:
    """Store write notification."""
    action: str  # "inserted", "updated", "cleared"
    session_id: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)
