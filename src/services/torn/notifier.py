"""
FactionWatch Bot - Jail Notifier
================================

Turns JailEvents into Discord embeds in the configured alert channel.

Confined and ReConfined alerts ping the configured role; releases are
posted without a ping. Delivery errors from Discord propagate to the
caller, which handles them per event.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import discord

from src.core.colors import EmbedColors, EmbedIcons
from src.core.logger import logger
from src.core.settings import BotSettings
from src.services.torn.models import JailEvent, JailEventKind
from src.services.torn.reports import profile_link
from src.utils.duration import format_jail_time
from src.utils.helpers import safe_fetch_text_channel

if TYPE_CHECKING:
    from src.bot import FactionWatchBot


# =============================================================================
# Embed Builders
# =============================================================================

def build_jail_embed(event: JailEvent) -> discord.Embed:
    """Embed for one jail transition."""
    profile = profile_link(event.id)
    now = datetime.now(timezone.utc)

    if event.kind is JailEventKind.CONFINED:
        embed = discord.Embed(
            title=f"{EmbedIcons.JAILED} Member Jailed",
            description=f"**[{event.name}]({profile})** has been jailed.",
            color=EmbedColors.JAILED,
            timestamp=now,
        )
        embed.add_field(name="Time left", value=format_jail_time(event.confinement_seconds), inline=True)
    elif event.kind is JailEventKind.RECONFINED:
        embed = discord.Embed(
            title=f"{EmbedIcons.REJAILED} Member Re-Jailed",
            description=f"**[{event.name}]({profile})** was jailed again before release.",
            color=EmbedColors.REJAILED,
            timestamp=now,
        )
        embed.add_field(name="New sentence", value=format_jail_time(event.confinement_seconds), inline=True)
        embed.add_field(name="Previous", value=format_jail_time(event.previous_seconds), inline=True)
    else:
        embed = discord.Embed(
            title=f"{EmbedIcons.RELEASED} Member Released",
            description=f"**[{event.name}]({profile})** is out of jail.",
            color=EmbedColors.RELEASED,
            timestamp=now,
        )

    embed.add_field(name="Profile", value=f"[{event.id}]({profile})", inline=True)
    embed.set_footer(text=f"Player ID: {event.id}")
    return embed


def event_pings_role(event: JailEvent) -> bool:
    return event.kind in (JailEventKind.CONFINED, JailEventKind.RECONFINED)


# =============================================================================
# Jail Notifier
# =============================================================================

class JailNotifier:
    """Notification sink handed to the reconciliation engine."""

    def __init__(self, bot: "FactionWatchBot", settings: BotSettings) -> None:
        self.bot = bot
        self.settings = settings

    async def _resolve_channel(self) -> Optional[discord.abc.Messageable]:
        return await safe_fetch_text_channel(self.bot, self.settings.channel_id)

    async def send(self, event: JailEvent) -> bool:
        """
        Post one event. Returns False when no alert channel is reachable.

        Raises:
            discord.HTTPException: Discord rejected the message
        """
        channel = await self._resolve_channel()
        if channel is None:
            logger.warning("Jail Alert Not Sent", [
                ("Player", f"{event.name} [{event.id}]"),
                ("Event", event.kind.value),
                ("Reason", "Alert channel unavailable"),
            ])
            return False

        content = None
        allowed_mentions = discord.AllowedMentions.none()
        if event_pings_role(event) and self.settings.role_id:
            content = f"<@&{self.settings.role_id}>"
            allowed_mentions = discord.AllowedMentions(roles=True)

        await channel.send(
            content=content,
            embed=build_jail_embed(event),
            allowed_mentions=allowed_mentions,
        )

        emoji = {
            JailEventKind.CONFINED: EmbedIcons.JAILED,
            JailEventKind.RELEASED: EmbedIcons.RELEASED,
            JailEventKind.RECONFINED: EmbedIcons.REJAILED,
        }[event.kind]
        logger.tree(f"Jail Alert Sent: {event.kind.value}", [
            ("Player", f"{event.name} [{event.id}]"),
            ("Time Left", format_jail_time(event.confinement_seconds)),
            ("Pinged", "Yes" if content else "No"),
        ], emoji=emoji)
        return True

    async def __call__(self, event: JailEvent) -> None:
        await self.send(event)

    async def send_test_alert(self, requested_by: str) -> bool:
        """Post a sample Confined alert so admins can check channel and role."""
        event = JailEvent(
            id="0",
            name=f"Test Alert ({requested_by})",
            kind=JailEventKind.CONFINED,
            confinement_seconds=15 * 60,
        )
        return await self.send(event)


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "JailNotifier",
    "build_jail_embed",
    "event_pings_role",
]
