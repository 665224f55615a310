"""
FactionWatch Bot - Helper Utilities
===================================

Common helper functions used by commands, notifier and schedulers.
"""

from typing import Optional

import discord

from src.core.logger import logger


# =============================================================================
# Permission Helpers
# =============================================================================

def is_admin(member: object) -> bool:
    """
    The single admin check used by every privileged command.

    True only for guild members holding the Administrator permission;
    plain Users (DMs) never qualify.
    """
    if not isinstance(member, discord.Member):
        return False
    return member.guild_permissions.administrator


# =============================================================================
# Safe Discord API Fetch Helpers
# =============================================================================

async def safe_fetch_text_channel(
    client: discord.Client,
    channel_id: Optional[int],
) -> Optional[discord.abc.Messageable]:
    """
    Resolve a channel ID to something messages can be sent to.

    Uses the cache first, then the API. Returns None when the channel is
    missing, not text-based, or not visible to the bot.
    """
    if not channel_id:
        return None

    channel = client.get_channel(channel_id)
    if channel is None:
        try:
            channel = await client.fetch_channel(channel_id)
        except discord.NotFound:
            logger.warning("Channel Not Found", [
                ("Channel ID", str(channel_id)),
            ])
            return None
        except discord.Forbidden:
            logger.warning("No Permission To Fetch Channel", [
                ("Channel ID", str(channel_id)),
            ])
            return None
        except discord.HTTPException as e:
            logger.warning("HTTP Error Fetching Channel", [
                ("Channel ID", str(channel_id)),
                ("Error", str(e)),
            ])
            return None

    if not isinstance(channel, discord.abc.Messageable):
        logger.warning("Configured Channel Is Not Text-Based", [
            ("Channel ID", str(channel_id)),
            ("Type", type(channel).__name__),
        ])
        return None
    return channel


# =============================================================================
# String Truncation Helpers
# =============================================================================

def truncate(text: str, max_length: int, ellipsis: str = "...") -> str:
    """
    Truncate text to a maximum length with optional ellipsis.

    Args:
        text: The text to truncate
        max_length: Maximum length (including ellipsis if added)
        ellipsis: String to append if truncated (default: "...")

    Returns:
        Truncated text with ellipsis if it exceeded max_length
    """
    if not text or len(text) <= max_length:
        return text
    return text[:max_length - len(ellipsis)] + ellipsis


__all__ = [
    "is_admin",
    "safe_fetch_text_channel",
    "truncate",
]
