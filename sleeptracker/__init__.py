"""SleepTracker - record sleep sessions and rate their quality."""

__version__ = "0.1.0"
