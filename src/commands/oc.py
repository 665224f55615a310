"""
FactionWatch Bot - Organized Crime Commands
===========================================

Slash commands for not-in-OC tracking.

Commands:
- /setnotoc - Set the daily not-in-OC report channel (Admin)
- /getnotoc - Show the configured report channel
- /oc - Embed of members not in an organized crime, longest first
- /notinoc - The daily report text, on demand
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from src.core.colors import EmbedColors, EmbedIcons
from src.core.config import NOT_OC_REPORT_HOUR, NOT_OC_REPORT_MAX_CHARS
from src.core.constants import DISCORD_EMBED_DESCRIPTION_LIMIT, OC_EMBED_FALLBACK_LINES
from src.core.logger import logger
from src.services.torn.reports import build_oc_embed_lines
from src.utils.helpers import is_admin

if TYPE_CHECKING:
    from src.bot import FactionWatchBot


OC_EMPTY_MESSAGE = "Everyone's in OC or no data available! 🎉"


def build_oc_description(lines: list[str]) -> str:
    """
    Join /oc lines for an embed description.

    Falls back to the first OC_EMBED_FALLBACK_LINES lines plus a count of the
    rest when the full text would not fit.
    """
    description = "\n".join(lines)
    if len(description) <= DISCORD_EMBED_DESCRIPTION_LIMIT:
        return description

    kept = lines[:OC_EMBED_FALLBACK_LINES]
    suffix = f"\n\n*... and {len(lines) - len(kept)} more*"
    while kept and len("\n".join(kept)) + len(suffix) > DISCORD_EMBED_DESCRIPTION_LIMIT:
        kept.pop()
        suffix = f"\n\n*... and {len(lines) - len(kept)} more*"
    return "\n".join(kept) + suffix


# =============================================================================
# Organized Crime Cog
# =============================================================================

class OrganizedCrimeCog(commands.Cog):
    """Not-in-OC reporting commands."""

    def __init__(self, bot: "FactionWatchBot") -> None:
        self.bot = bot

        logger.tree("Organized Crime Cog Loaded", [
            ("Commands", "/setnotoc, /getnotoc, /oc, /notinoc"),
            ("Report Channel", str(bot.settings.not_oc_channel_id) if bot.settings.not_oc_channel_id else "Not Set"),
        ], emoji="📊")

    # =========================================================================
    # /setnotoc
    # =========================================================================

    @app_commands.command(name="setnotoc", description="Set the channel for the daily Not-in-OC report")
    @app_commands.describe(channel="Channel for the daily report")
    async def setnotoc_command(self, interaction: discord.Interaction, channel: discord.TextChannel) -> None:
        """Store the report channel."""
        if not is_admin(interaction.user):
            await interaction.response.send_message(
                f"{EmbedIcons.DENIED} This command needs the Administrator permission.",
                ephemeral=True,
            )
            logger.warning("Unauthorized Command Attempt", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Command", "/setnotoc"),
            ])
            return

        if not self.bot.settings.set_not_oc_channel(channel.id):
            await interaction.response.send_message(
                f"{EmbedIcons.DENIED} Settings could not be saved, check the logs.",
                ephemeral=True,
            )
            return

        await interaction.response.send_message(
            f"{EmbedIcons.RELEASED} Daily Not-in-OC reports will be posted to {channel.mention} "
            f"(ID: {channel.id}) at {NOT_OC_REPORT_HOUR:02d}:00 UTC.",
            ephemeral=True,
        )
        logger.tree("Not-in-OC Channel Configured", [
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
            ("Channel", f"#{channel.name} ({channel.id})"),
        ], emoji="⚙️")

    # =========================================================================
    # /getnotoc
    # =========================================================================

    @app_commands.command(name="getnotoc", description="Show the configured Not-in-OC report channel")
    async def getnotoc_command(self, interaction: discord.Interaction) -> None:
        channel_id = self.bot.settings.not_oc_channel_id
        await interaction.response.send_message(
            f"Configured Not-in-OC channel id: {channel_id or '(not set)'}",
            ephemeral=True,
        )

    # =========================================================================
    # /oc
    # =========================================================================

    @app_commands.command(name="oc", description="List members not in an organized crime")
    async def oc_command(self, interaction: discord.Interaction) -> None:
        """Embed of absent members, longest absence first."""
        lines = build_oc_embed_lines(self.bot.engine.activity_tracker, self.bot.engine.now())
        if not lines:
            await interaction.response.send_message(OC_EMPTY_MESSAGE)
            return

        embed = discord.Embed(
            title=f"{EmbedIcons.JAILED} Players Not in Organized Crime",
            description=build_oc_description(lines),
            color=EmbedColors.NOT_IN_OC,
            timestamp=datetime.now(timezone.utc),
        )
        embed.set_footer(text=f"Total: {len(lines)} player(s)")
        await interaction.response.send_message(embed=embed)

    # =========================================================================
    # /notinoc
    # =========================================================================

    @app_commands.command(name="notinoc", description="Show the Not-in-OC report now")
    async def notinoc_command(self, interaction: discord.Interaction) -> None:
        """Build the daily report text on demand."""
        await interaction.response.defer(ephemeral=True)
        try:
            report = self.bot.engine.build_absence_report(NOT_OC_REPORT_MAX_CHARS)
        except Exception as e:
            logger.exception("Failed to Build Not-in-OC Report", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Error", str(e)),
            ])
            await interaction.followup.send(f"{EmbedIcons.DENIED} Failed to generate report, check logs.", ephemeral=True)
            return

        await interaction.followup.send(report, ephemeral=True)


# =============================================================================
# Setup Function
# =============================================================================

async def setup(bot: "FactionWatchBot") -> None:
    """Setup function for loading the cog."""
    await bot.add_cog(OrganizedCrimeCog(bot))
    logger.info("Organized Crime Cog Registered", [
        ("Commands", "/setnotoc, /getnotoc, /oc, /notinoc"),
    ])


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["OrganizedCrimeCog", "build_oc_description", "setup"]
