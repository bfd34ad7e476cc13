"""Workout log analysis: pattern detection, scoring and recommendations."""

__version__ = "0.1.0"
