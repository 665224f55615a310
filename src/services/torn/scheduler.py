"""
FactionWatch Bot - Torn Schedulers
==================================

Background loops that drive the reconciliation engine.

- FactionPollScheduler: one reconciliation cycle every POLL_INTERVAL seconds,
  first tick as soon as the bot is ready
- NotInOcReportScheduler: the daily not-in-OC report at NOT_OC_REPORT_HOUR UTC
"""

import datetime
from typing import TYPE_CHECKING

import discord
from discord.ext import tasks

from src.core.config import NOT_OC_REPORT_HOUR, NOT_OC_REPORT_MAX_CHARS, POLL_INTERVAL
from src.core.logger import logger
from src.core.settings import BotSettings
from src.services.torn.engine import CycleStatus, ReconciliationEngine
from src.utils.helpers import safe_fetch_text_channel

if TYPE_CHECKING:
    from src.bot import FactionWatchBot


REPORT_TIME = datetime.time(hour=NOT_OC_REPORT_HOUR, tzinfo=datetime.timezone.utc)


# =============================================================================
# Faction Poll Scheduler
# =============================================================================

class FactionPollScheduler:
    """
    Runs one reconciliation cycle per tick.

    Overlap is prevented by the engine's Idle/Running guard, so a slow
    cycle simply makes the next tick a logged no-op.
    """

    def __init__(self, bot: "FactionWatchBot", engine: ReconciliationEngine) -> None:
        self.bot = bot
        self.engine = engine

    async def start(self) -> None:
        """Start the scheduler."""
        if not self._poll.is_running():
            self._poll.start()
            logger.info("Faction Poll Scheduler Started", [
                ("Interval", f"{POLL_INTERVAL}s"),
            ])

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._poll.is_running():
            self._poll.cancel()
            logger.info("Faction Poll Scheduler Stopped")

    @property
    def is_running(self) -> bool:
        return self._poll.is_running()

    @tasks.loop(seconds=POLL_INTERVAL)
    async def _poll(self) -> None:
        """Run a reconciliation cycle."""
        try:
            result = await self.engine.run_cycle()
        except Exception as e:
            logger.exception("Error In Faction Poll", [
                ("Error Type", type(e).__name__),
                ("Error", str(e)),
            ])
            return

        if result.status is CycleStatus.COMPLETED and result.events:
            logger.tree("Faction Poll Complete", [
                ("Members", str(result.members)),
                ("Jail Events", str(len(result.events))),
                ("Failed Alerts", str(result.notify_failures)),
            ], emoji="🔁")

    @_poll.before_loop
    async def _before_poll(self) -> None:
        """Wait until the bot is ready before starting."""
        await self.bot.wait_until_ready()


# =============================================================================
# Not-in-OC Report Scheduler
# =============================================================================

class NotInOcReportScheduler:
    """Posts the not-in-OC report once a day to the configured channel."""

    def __init__(
        self,
        bot: "FactionWatchBot",
        engine: ReconciliationEngine,
        settings: BotSettings,
    ) -> None:
        self.bot = bot
        self.engine = engine
        self.settings = settings

    async def start(self) -> None:
        """Start the scheduler."""
        if not self._daily_report.is_running():
            self._daily_report.start()
            logger.info("Not-in-OC Report Scheduler Started", [
                ("Time", f"{NOT_OC_REPORT_HOUR:02d}:00 UTC"),
            ])

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._daily_report.is_running():
            self._daily_report.cancel()
            logger.info("Not-in-OC Report Scheduler Stopped")

    async def post_report(self) -> bool:
        """Send the report now. Returns False when no channel is configured or reachable."""
        if not self.settings.not_oc_channel_id:
            logger.debug("Not-in-OC Report Skipped", [
                ("Reason", "No report channel configured"),
            ])
            return False

        channel = await safe_fetch_text_channel(self.bot, self.settings.not_oc_channel_id)
        if channel is None:
            logger.warning("Not-in-OC Report Not Sent", [
                ("Channel ID", str(self.settings.not_oc_channel_id)),
                ("Reason", "Channel unavailable"),
            ])
            return False

        report = self.engine.build_absence_report(NOT_OC_REPORT_MAX_CHARS)
        try:
            await channel.send(report, allowed_mentions=discord.AllowedMentions.none())
        except discord.HTTPException as e:
            logger.error("Failed to Post Not-in-OC Report", [
                ("Channel ID", str(self.settings.not_oc_channel_id)),
                ("Error", str(e)),
            ])
            return False

        logger.tree("Not-in-OC Report Posted", [
            ("Channel ID", str(self.settings.not_oc_channel_id)),
            ("Not In OC", str(sum(1 for _ in self.engine.activity_tracker.absent()))),
            ("Length", str(len(report))),
        ], emoji="📊")
        return True

    @tasks.loop(time=REPORT_TIME)
    async def _daily_report(self) -> None:
        """Post the daily report."""
        try:
            await self.post_report()
        except Exception as e:
            logger.exception("Error In Not-in-OC Report", [
                ("Error Type", type(e).__name__),
                ("Error", str(e)),
            ])

    @_daily_report.before_loop
    async def _before_report(self) -> None:
        """Wait until the bot is ready before starting."""
        await self.bot.wait_until_ready()


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "FactionPollScheduler",
    "NotInOcReportScheduler",
    "REPORT_TIME",
]
