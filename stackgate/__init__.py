"""Readiness-gated startup and data export for the realtime crypto stack"""

__version__ = "1.0.0"
