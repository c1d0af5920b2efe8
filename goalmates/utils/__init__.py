"""Utility helpers for reusable functionality."""

from .datetime import ensure_utc, isoformat_or_none, utc_now, utc_now_naive

__all__ = [
    "ensure_utc",
    "isoformat_or_none",
    "utc_now",
    "utc_now_naive",
]
