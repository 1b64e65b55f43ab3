"""Text rendering of the session history."""

from datetime import datetime
from typing import Iterable

from .models.session import SessionRecord, quality_label

HEADER = "Here is your sleep data:"


def format_timestamp(time_ms: int) -> str:
    return datetime.fromtimestamp(time_ms / 1000).strftime("%a %b %d %Y %H:%M")


def format_duration(duration_ms: int) -> str:
    """Format a duration as H:MM:SS."""
    seconds = max(duration_ms, 0) // 1000
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def format_session(session: SessionRecord) -> str:
    lines = [
        f"Session #{session.session_id}",
        f"Start: {format_timestamp(session.start_time_ms)}",
    ]
    if session.is_in_progress:
        lines.append("End: in progress")
    else:
        lines.append(f"End: {format_timestamp(session.end_time_ms)}")
        lines.append(f"Hours:Minutes:Seconds: {format_duration(session.duration_ms)}")
    lines.append(f"Quality: {quality_label(session.quality)}")
    return "\n".join(lines)


def format_sessions(sessions: Iterable[SessionRecord]) -> str:
    """Render every session, one block each, under a common header."""
    blocks = [HEADER]
    blocks.extend(format_session(session) for session in sessions or [])
    return "\n\n".join(blocks)
