"""
FactionWatch Bot - Duration Formatting
======================================

Compact human-readable durations for jail sentences and not-in-OC windows.
"""

from typing import Optional


# =============================================================================
# Duration Formatting
# =============================================================================

def format_compact(total_seconds: Optional[float]) -> str:
    """
    Format seconds as the two most significant units.

    Examples:
        90061 -> "1d 1h"
        3720  -> "1h 2m"
        300   -> "5m"
        42    -> "42s"

    Negative and missing values render as "0s".
    """
    seconds = max(0, int(total_seconds or 0))

    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60

    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m"
    return f"{seconds}s"


def format_jail_time(seconds: Optional[float]) -> str:
    """Remaining jail sentence, e.g. "2h 15m"."""
    return format_compact(seconds)


def format_duration(seconds: Optional[float]) -> str:
    """Time spent outside an organised crime, e.g. "3d 4h"."""
    return format_compact(seconds)


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "format_compact",
    "format_jail_time",
    "format_duration",
]
