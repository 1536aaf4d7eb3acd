"""Utility functions."""

from .datetime import date_to_datetime, from_iso, now_utc, to_iso

__all__ = [
    "date_to_datetime",
    "from_iso",
    "now_utc",
    "to_iso",
]
