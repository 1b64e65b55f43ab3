"""Observable state published to the rendering layer."""

from .live_value import LiveValue, MutableLiveValue, DerivedLiveValue, map_live, ensure_topic
from .signal import Signal

__all__ = [
    "LiveValue",
    "MutableLiveValue",
    "DerivedLiveValue",
    "map_live",
    "ensure_topic",
    "Signal",
]
