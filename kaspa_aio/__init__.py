"""Kaspa All-in-One profile engine."""

__version__ = "0.1.0"
