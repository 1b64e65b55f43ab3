"""Presentation-state controllers for the sleep tracking screens."""

from .base import BaseController
from .quality import SessionQualityController
from .tracker import SessionTrackingController
from .factory import ControllerFactory

__all__ = [
    "BaseController",
    "SessionQualityController",
    "SessionTrackingController",
    "ControllerFactory",
]
