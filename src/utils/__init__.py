"""
FactionWatch Bot - Utilities Package
====================================
"""

from .helpers import (
    is_admin,
    safe_fetch_text_channel,
    truncate,
)
from .duration import (
    format_compact,
    format_jail_time,
    format_duration,
)

__all__ = [
    # Discord helpers
    "is_admin",
    "safe_fetch_text_channel",
    # String truncation helpers
    "truncate",
    # Duration formatting
    "format_compact",
    "format_jail_time",
    "format_duration",
]
