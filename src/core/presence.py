"""
FactionWatch Bot - Presence Module
==================================

Bot presence: "Watching faction <id>".
"""

from typing import TYPE_CHECKING

import discord

from src.core.config import FACTION_ID
from src.core.logger import logger

if TYPE_CHECKING:
    from src.bot import FactionWatchBot


# =============================================================================
# Presence Update
# =============================================================================

def presence_text() -> str:
    """Status line shown under the bot's name."""
    return f"faction {FACTION_ID or '?'}"


async def update_presence(bot: "FactionWatchBot") -> None:
    """
    Update bot's Discord presence.

    Args:
        bot: The FactionWatchBot instance
    """
    text = presence_text()
    await bot.change_presence(
        activity=discord.Activity(type=discord.ActivityType.watching, name=text),
    )
    logger.debug("Presence Updated", [
        ("Status", f"Watching {text}"),
    ])


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["presence_text", "update_presence"]
