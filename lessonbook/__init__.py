"""Lesson catalog and order booking API."""

__version__ = "1.0.0"
