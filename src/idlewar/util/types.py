"""Formatting and conversion utilities.

Time and resource formatting for log lines and summaries.
"""

from __future__ import annotations

from typing import Mapping


def format_time(seconds: float) -> str:
    """Format seconds into a human-readable time string."""
    if seconds < 60:
        return f"{int(seconds)}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    return f"{hours}h {minutes}m"


def format_number(value: float) -> str:
    """Format a number with appropriate precision."""
    if value == int(value):
        return str(int(value))
    return f"{value:.1f}"


def format_resources(amounts: Mapping[str, float]) -> str:
    """Format a resource mapping as ``credits=5 materials=2``."""
    return " ".join(f"{key}={format_number(value)}" for key, value in amounts.items())
