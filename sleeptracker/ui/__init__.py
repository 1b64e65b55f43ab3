"""Terminal user interface."""

from .tracker_screen import TrackerScreen

__all__ = ["TrackerScreen"]
