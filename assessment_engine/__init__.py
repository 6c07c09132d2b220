"""Adaptive assessment engine: selection, mastery, scoring and readiness."""

__version__ = "0.1.0"
