"""
FactionWatch Bot - Centralized Colors
=====================================

Embed colors and title icons used by notifications and command replies.
"""

import discord


# =============================================================================
# Base Color Values (Hex)
# =============================================================================

COLOR_CORAL = 0xFF6B6B      # Arrests
COLOR_GREEN = 0x57F287      # Releases / all clear
COLOR_YELLOW = 0xFEE75C     # Re-jailed


# =============================================================================
# Discord Embed Colors (discord.Color objects)
# =============================================================================

class EmbedColors:
    """Standardized color palette for Discord embeds."""
    JAILED = discord.Color(COLOR_CORAL)
    RELEASED = discord.Color(COLOR_GREEN)
    REJAILED = discord.Color(COLOR_YELLOW)
    NOT_IN_OC = discord.Color(COLOR_CORAL)
    ALL_CLEAR = discord.Color(COLOR_GREEN)


class EmbedIcons:
    """Standardized emoji icons for embed titles."""
    JAILED = "🚨"
    RELEASED = "✅"
    REJAILED = "🔄"
    DENIED = "❌"


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "COLOR_CORAL",
    "COLOR_GREEN",
    "COLOR_YELLOW",
    "EmbedColors",
    "EmbedIcons",
]
