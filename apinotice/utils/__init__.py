"""Utility helpers for reusable functionality."""

from .datetime import (
    ensure_naive_utc,
    ensure_utc,
    now_naive_utc,
    parse_schedule_instant,
    utc_now,
)

__all__ = [
    "ensure_naive_utc",
    "ensure_utc",
    "now_naive_utc",
    "parse_schedule_instant",
    "utc_now",
]
