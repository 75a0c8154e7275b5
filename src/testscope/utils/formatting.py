"""Human-readable formatting helpers shared by the view model and the CLI."""

from __future__ import annotations

import math

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_duration(ms: int | float | None) -> str:
    """Format a duration in milliseconds.

    Examples:
        >>> format_duration(250)
        '250ms'
        >>> format_duration(1500)
        '1.50s'
        >>> format_duration(125_000)
        '2m 5s'
    """
    if not ms or (isinstance(ms, float) and not math.isfinite(ms)):
        return "0ms"
    if ms < 1000:
        return f"{ms}ms"
    if ms <= 100_000:
        return f"{ms / 1000:.2f}s"
    minutes = int(ms // 60_000)
    remaining = int(ms % 60_000 // 1000)
    return f"{minutes}m {remaining}s"


def format_file_size(size: int | None) -> str:
    """Format a byte count using 1024-based units (e.g. 1536 -> '1.5 KB')."""
    if not size or size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[unit]}"
