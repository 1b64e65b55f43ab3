"""Foreground/background execution contexts and lifecycle scopes."""

from .dispatchers import ForegroundLoop, create_io_executor
from .scope import LifecycleScope

__all__ = [
    "ForegroundLoop",
    "create_io_executor",
    "LifecycleScope",
]
