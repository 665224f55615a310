"""
FactionWatch Bot - Constants
============================

Discord API limits and presentation constants.
"""


# =============================================================================
# Discord API Limits
# =============================================================================

DISCORD_EMBED_DESCRIPTION_LIMIT = 4096
DISCORD_MESSAGE_LIMIT = 2000


# =============================================================================
# Report Limits
# =============================================================================

OC_EMBED_FALLBACK_LINES = 50  # lines kept when the /oc embed would overflow
DEBUG_MEMBER_PREVIEW_LENGTH = 1900


# =============================================================================
# Timeouts (seconds)
# =============================================================================

TIMEOUT_MEDIUM = 10.0
TIMEOUT_EXTENDED = 30.0


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "DISCORD_EMBED_DESCRIPTION_LIMIT",
    "DISCORD_MESSAGE_LIMIT",
    "OC_EMBED_FALLBACK_LINES",
    "DEBUG_MEMBER_PREVIEW_LENGTH",
    "TIMEOUT_MEDIUM",
    "TIMEOUT_EXTENDED",
]
