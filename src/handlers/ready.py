"""
FactionWatch Bot - Ready Handler
================================

Service initialization and startup logic.
"""

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable, List

import discord

from src.core.config import FACTION_ID, GUILD_ID, POLL_INTERVAL
from src.core.constants import TIMEOUT_EXTENDED, TIMEOUT_MEDIUM
from src.core.logger import logger
from src.core.presence import update_presence
from src.services.torn.scheduler import FactionPollScheduler, NotInOcReportScheduler

if TYPE_CHECKING:
    from src.bot import FactionWatchBot


# =============================================================================
# Ready Handler
# =============================================================================

# Default timeout for service initialization (seconds)
SERVICE_INIT_TIMEOUT: float = TIMEOUT_EXTENDED


async def _safe_init(
    name: str,
    init_func: Callable[["FactionWatchBot"], Awaitable[None]],
    bot: "FactionWatchBot",
    timeout: float = SERVICE_INIT_TIMEOUT
) -> bool:
    """
    Initialize a service with a timeout, logging instead of raising.

    Returns:
        True if initialization succeeded, False otherwise
    """
    try:
        async with asyncio.timeout(timeout):
            await init_func(bot)
        return True
    except asyncio.TimeoutError:
        logger.error("Timeout Initializing Service", [
            ("Service", name),
            ("Timeout", f"{timeout}s"),
            ("Status", "Skipped - continuing startup"),
        ])
        return False
    except Exception as e:
        logger.error("Failed To Initialize Service", [
            ("Service", name),
            ("Error Type", type(e).__name__),
            ("Error", str(e)),
            ("Status", "Skipped - continuing startup"),
        ])
        return False


async def on_ready_handler(bot: "FactionWatchBot") -> None:
    """
    Sync commands, set presence and start the schedulers.

    Args:
        bot: The FactionWatchBot instance
    """
    init_results: List[tuple[str, bool]] = []

    logger.tree(
        f"Bot Ready: {bot.user.name}",
        [
            ("Bot ID", str(bot.user.id)),
            ("Guilds", str(len(bot.guilds))),
            ("Faction", FACTION_ID or "Not Set"),
            ("Jail Channel", str(bot.settings.channel_id) if bot.settings.channel_id else "Not Set"),
            ("Jail Role", str(bot.settings.role_id) if bot.settings.role_id else "Not Set"),
            ("Not-in-OC Channel", str(bot.settings.not_oc_channel_id) if bot.settings.not_oc_channel_id else "Not Set"),
        ],
        emoji="✅",
    )

    try:
        async with asyncio.timeout(TIMEOUT_EXTENDED):
            await _sync_commands(bot)
    except asyncio.TimeoutError:
        logger.error("Timeout syncing commands - continuing startup")

    init_results.append(("Faction Poll Scheduler", await _safe_init("Faction Poll Scheduler", _init_poll_scheduler, bot)))
    init_results.append(("Not-in-OC Report Scheduler", await _safe_init("Not-in-OC Report Scheduler", _init_report_scheduler, bot)))

    try:
        async with asyncio.timeout(TIMEOUT_MEDIUM):
            await update_presence(bot)
    except asyncio.TimeoutError:
        logger.warning("Timeout setting initial presence")
    except Exception as e:
        logger.warning("Failed to set initial presence", [("Error", str(e))])

    succeeded = sum(1 for _, ok in init_results if ok)
    failed = sum(1 for _, ok in init_results if not ok)

    if failed > 0:
        failed_services = [name for name, ok in init_results if not ok]
        logger.warning("Startup Completed With Errors", [
            ("Services OK", str(succeeded)),
            ("Services Failed", str(failed)),
            ("Failed", ", ".join(failed_services)),
        ])
    else:
        logger.tree("All Services Initialized", [
            ("Services", str(succeeded)),
            ("Status", "All OK"),
        ], emoji="✅")


# =============================================================================
# Service Initialization
# =============================================================================

async def _init_poll_scheduler(bot: "FactionWatchBot") -> None:
    """Start polling; the first cycle runs as soon as the loop starts."""
    if bot.poll_scheduler is None:
        bot.poll_scheduler = FactionPollScheduler(bot, bot.engine)
    await bot.poll_scheduler.start()
    logger.tree("Faction Polling Started", [
        ("Faction", FACTION_ID),
        ("Interval", f"{POLL_INTERVAL}s"),
        ("Alerts", "Enabled" if bot.settings.is_jail_configured else "Waiting for /jail"),
    ], emoji="🔁")


async def _init_report_scheduler(bot: "FactionWatchBot") -> None:
    if bot.report_scheduler is None:
        bot.report_scheduler = NotInOcReportScheduler(bot, bot.engine, bot.settings)
    await bot.report_scheduler.start()


async def _sync_commands(bot: "FactionWatchBot") -> None:
    """Sync slash commands to GUILD_ID when set, otherwise globally.

    Guild sync is instant; global sync can take up to an hour to show up.
    """
    try:
        if GUILD_ID:
            guild = discord.Object(id=GUILD_ID)
            bot.tree.copy_global_to(guild=guild)
            synced = await bot.tree.sync(guild=guild)
            scope = f"Guild {GUILD_ID}"
        else:
            synced = await bot.tree.sync()
            scope = "Global"
        logger.tree("Synced Slash Commands", [
            ("Scope", scope),
            ("Commands", str(len(synced))),
        ], emoji="⚡")
    except Exception as e:
        logger.error("⚡ Failed To Sync Commands", [
            ("Error", str(e)),
        ])


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["on_ready_handler"]
