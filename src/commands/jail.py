"""
FactionWatch Bot - Jail Commands
================================

Slash commands for jail alerts and Torn API diagnostics.

Commands:
- /jail - Set the alert channel and role (Admin)
- /testjail - Send a sample alert to the configured channel
- /jailstatus - Show who is currently jailed
- /testapi - Check the Torn API connection (Admin)
- /debugapi - Show normalized data for one member (Admin)
- /pollnow - Run a reconciliation cycle immediately (Admin)
"""

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from src.core.colors import EmbedColors, EmbedIcons
from src.core.constants import DEBUG_MEMBER_PREVIEW_LENGTH, DISCORD_EMBED_DESCRIPTION_LIMIT, DISCORD_MESSAGE_LIMIT
from src.core.logger import logger
from src.services.torn.engine import CycleStatus
from src.services.torn.errors import TornError
from src.services.torn.normalizer import normalize_members
from src.services.torn.reports import JAIL_REPORT_EMPTY
from src.utils.duration import format_jail_time
from src.utils.helpers import is_admin, truncate

if TYPE_CHECKING:
    from src.bot import FactionWatchBot


ADMIN_ONLY_MESSAGE = f"{EmbedIcons.DENIED} This command needs the Administrator permission."


# =============================================================================
# Jail Cog
# =============================================================================

class JailCog(commands.Cog):
    """Jail alert configuration and diagnostics."""

    def __init__(self, bot: "FactionWatchBot") -> None:
        self.bot = bot

        logger.tree("Jail Cog Loaded", [
            ("Commands", "/jail, /testjail, /jailstatus, /testapi, /debugapi, /pollnow"),
            ("Configured", "Yes" if bot.settings.is_jail_configured else "No"),
        ], emoji="🚨")

    async def _deny(self, interaction: discord.Interaction, command: str) -> None:
        await interaction.response.send_message(ADMIN_ONLY_MESSAGE, ephemeral=True)
        logger.warning("Unauthorized Command Attempt", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Command", f"/{command}"),
        ])

    # =========================================================================
    # /jail
    # =========================================================================

    @app_commands.command(name="jail", description="Configure jail alert notifications")
    @app_commands.describe(
        channel="Channel for jail alerts",
        role="Role to ping for jail alerts",
    )
    async def jail_command(
        self,
        interaction: discord.Interaction,
        channel: discord.TextChannel,
        role: discord.Role,
    ) -> None:
        """Store the alert channel and role."""
        if not is_admin(interaction.user):
            await self._deny(interaction, "jail")
            return

        saved = self.bot.settings.set_jail_target(channel.id, role.id)
        if not saved:
            await interaction.response.send_message(
                f"{EmbedIcons.DENIED} Settings could not be saved, check the logs.",
                ephemeral=True,
            )
            return

        await interaction.response.send_message(
            f"{EmbedIcons.RELEASED} Jail alerts will go to {channel.mention} and ping {role.mention}.",
            ephemeral=True,
            allowed_mentions=discord.AllowedMentions.none(),
        )
        logger.tree("Jail Alerts Configured", [
            ("By", f"{interaction.user.name} ({interaction.user.id})"),
            ("Channel", f"#{channel.name} ({channel.id})"),
            ("Role", f"{role.name} ({role.id})"),
        ], emoji="⚙️")

    # =========================================================================
    # /testjail
    # =========================================================================

    @app_commands.command(name="testjail", description="Send a test jail alert")
    async def testjail_command(self, interaction: discord.Interaction) -> None:
        """Post a sample Confined alert."""
        if not self.bot.settings.is_jail_configured:
            await interaction.response.send_message(
                f"{EmbedIcons.DENIED} Jail alerts are not configured yet. Use /jail first.",
                ephemeral=True,
            )
            return

        await interaction.response.defer(ephemeral=True)
        try:
            sent = await self.bot.notifier.send_test_alert(interaction.user.name)
        except discord.HTTPException as e:
            logger.error("Test Jail Alert Failed", [
                ("User", f"{interaction.user.name} ({interaction.user.id})"),
                ("Error", str(e)),
            ])
            await interaction.followup.send(f"{EmbedIcons.DENIED} Sending the test alert failed.", ephemeral=True)
            return

        if not sent:
            await interaction.followup.send(
                f"{EmbedIcons.DENIED} The alert channel is unavailable. Reconfigure it with /jail.",
                ephemeral=True,
            )
            return

        await interaction.followup.send(f"{EmbedIcons.RELEASED} Test alert sent.", ephemeral=True)

    # =========================================================================
    # /jailstatus
    # =========================================================================

    @app_commands.command(name="jailstatus", description="Check who's currently in jail")
    async def jailstatus_command(self, interaction: discord.Interaction) -> None:
        """Show the jail status report."""
        report = self.bot.engine.build_jail_status_report()
        nobody = report == JAIL_REPORT_EMPTY

        embed = discord.Embed(
            title=f"{EmbedIcons.JAILED} Current Jail Status",
            description=truncate(report, DISCORD_EMBED_DESCRIPTION_LIMIT),
            color=EmbedColors.ALL_CLEAR if nobody else EmbedColors.JAILED,
            timestamp=datetime.now(timezone.utc),
        )
        await interaction.response.send_message(embed=embed, ephemeral=True)

    # =========================================================================
    # /testapi
    # =========================================================================

    @app_commands.command(name="testapi", description="Test the Torn API connection and show current jail status")
    async def testapi_command(self, interaction: discord.Interaction) -> None:
        """Fetch once without touching tracker state."""
        if not is_admin(interaction.user):
            await self._deny(interaction, "testapi")
            return

        await interaction.response.defer(ephemeral=True)
        try:
            payload = await self.bot.torn_client.fetch_members()
        except TornError as e:
            await interaction.followup.send(f"{EmbedIcons.DENIED} API test failed: {e}", ephemeral=True)
            return

        members = normalize_members(payload, self.bot.engine.now())
        jailed = [m for m in members if m.confinement_seconds > 0]

        response = f"{EmbedIcons.RELEASED} API is working!\n\n"
        response += f"**Total members:** {len(members)}\n"
        response += f"**Currently jailed:** {len(jailed)}\n\n"
        if jailed:
            response += "**Jailed members:**\n"
            for member in jailed:
                response += f"• {member.name} ({member.id}): {format_jail_time(member.confinement_seconds)}\n"
        else:
            response += "*No jailed members detected.*"

        await interaction.followup.send(truncate(response, DISCORD_MESSAGE_LIMIT), ephemeral=True)
        logger.tree("Torn API Test", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Payload Keys", ", ".join(sorted(payload.keys()))[:200]),
            ("Members", str(len(members))),
            ("Jailed", str(len(jailed))),
        ], emoji="🧪")

    # =========================================================================
    # /debugapi
    # =========================================================================

    @app_commands.command(name="debugapi", description="Show raw API data for a specific member")
    @app_commands.describe(name="Player name to debug")
    async def debugapi_command(self, interaction: discord.Interaction, name: str) -> None:
        """Show how one member was normalized."""
        if not is_admin(interaction.user):
            await self._deny(interaction, "debugapi")
            return

        await interaction.response.defer(ephemeral=True)
        try:
            payload = await self.bot.torn_client.fetch_members()
        except TornError as e:
            await interaction.followup.send(f"{EmbedIcons.DENIED} API Error: {e}", ephemeral=True)
            return

        needle = name.lower()
        members = normalize_members(payload, self.bot.engine.now())
        member = next((m for m in members if needle in m.name.lower()), None)
        if member is None:
            await interaction.followup.send(
                f"{EmbedIcons.DENIED} Could not find member with name containing \"{name}\"",
                ephemeral=True,
            )
            return

        dump = truncate(json.dumps(member.to_dict(), indent=2), DEBUG_MEMBER_PREVIEW_LENGTH)
        await interaction.followup.send(
            f"**Debug info for {member.name}:**\n```json\n{dump}\n```",
            ephemeral=True,
        )

    # =========================================================================
    # /pollnow
    # =========================================================================

    @app_commands.command(name="pollnow", description="Run a faction poll right now")
    async def pollnow_command(self, interaction: discord.Interaction) -> None:
        """Run one cycle through the same guard as the scheduler."""
        if not is_admin(interaction.user):
            await self._deny(interaction, "pollnow")
            return

        await interaction.response.defer(ephemeral=True)
        result = await self.bot.engine.run_cycle()

        messages = {
            CycleStatus.SKIPPED_OVERRUN: "A poll is already running, try again in a moment.",
            CycleStatus.SKIPPED_UNCONFIGURED: "Jail alerts are not configured yet. Use /jail first.",
            CycleStatus.UPSTREAM_UNAVAILABLE: f"Torn API unavailable: {result.error}",
            CycleStatus.UPSTREAM_ERROR: f"Torn API reported an error: {result.error}",
            CycleStatus.FAILED: "The poll failed, check the logs.",
        }
        if result.status is CycleStatus.COMPLETED:
            text = (
                f"{EmbedIcons.RELEASED} Poll complete: {result.members} members, "
                f"{len(result.events)} jail event(s), {len(result.retired)} record(s) retired."
            )
            if not result.persisted:
                text += "\nState could not be saved, check the logs."
        else:
            text = f"{EmbedIcons.DENIED} {messages[result.status]}"

        await interaction.followup.send(text, ephemeral=True)
        logger.info("Manual Poll Requested", [
            ("User", f"{interaction.user.name} ({interaction.user.id})"),
            ("Result", result.status.value),
        ])


# =============================================================================
# Setup Function
# =============================================================================

async def setup(bot: "FactionWatchBot") -> None:
    """Setup function for loading the cog."""
    await bot.add_cog(JailCog(bot))
    logger.info("Jail Cog Registered", [
        ("Commands", "/jail, /testjail, /jailstatus, /testapi, /debugapi, /pollnow"),
    ])


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["JailCog", "setup"]
