"""
FactionWatch Bot - Main Bot Class
=================================

Discord client that watches one Torn faction.

ARCHITECTURE OVERVIEW:
======================

┌─────────────────────────────────────────────────────────────────┐
│                        BOT LAYER (bot.py)                        │
│  - Discord client setup and lifecycle                           │
│  - Owns settings, Torn client, engine, notifier, schedulers     │
└─────────────────────────────────────────────────────────────────┘
                              │
        ┌─────────────────────┼─────────────────────┐
        ▼                     ▼                     ▼
┌───────────────┐    ┌───────────────────┐    ┌───────────────┐
│   HANDLERS    │    │  SERVICES (torn/) │    │   COMMANDS    │
│ - ready.py    │    │ - engine          │    │ - jail.py     │
│ - shutdown.py │    │ - trackers        │    │ - oc.py       │
└───────────────┘    │ - client/notifier │    └───────────────┘
                     │ - schedulers      │
                     └───────────────────┘

Every POLL_INTERVAL seconds the poll scheduler runs one reconciliation
cycle: fetch the faction roster, update the jail and not-in-OC trackers,
post jail alerts, persist state.
"""

from typing import Optional

import discord
from discord.ext import commands

from src.core.config import (
    DATA_DIR,
    JAIL_STATE_FILE,
    NOT_OC_CSV_FILE,
    NOT_OC_JSON_FILE,
    SETTINGS_FILE,
)
from src.core.logger import logger
from src.core.settings import BotSettings
from src.handlers.ready import on_ready_handler
from src.handlers.shutdown import shutdown_handler
from src.services.torn.client import TornClient
from src.services.torn.engine import ReconciliationEngine
from src.services.torn.notifier import JailNotifier
from src.services.torn.persistence import AbsenceStateStore, JailStateStore
from src.services.torn.scheduler import FactionPollScheduler, NotInOcReportScheduler


# =============================================================================
# FactionWatchBot Class
# =============================================================================

class FactionWatchBot(commands.Bot):
    """
    Main Discord bot class.

    Services are built in __init__ so cogs can reach them from setup_hook;
    schedulers start in on_ready, once the gateway connection is up.

    INTENTS REQUIRED:
    - guilds: resolve channels and roles for alerts
    """

    # =========================================================================
    # Initialization
    # =========================================================================

    def __init__(self) -> None:
        intents = discord.Intents.default()
        intents.guilds = True

        super().__init__(
            command_prefix="!",  # Not used - bot uses slash commands only
            intents=intents,
            help_command=None,
        )

        # =================================================================
        # Runtime Settings (config.json)
        # =================================================================
        self.settings: BotSettings = BotSettings(DATA_DIR / SETTINGS_FILE)

        # =================================================================
        # Torn Services
        # =================================================================
        self.torn_client: TornClient = TornClient()
        self.notifier: JailNotifier = JailNotifier(self, self.settings)
        self.engine: ReconciliationEngine = ReconciliationEngine(
            fetch=self.torn_client.fetch_members,
            sink=self.notifier,
            is_configured=lambda: self.settings.is_jail_configured,
            jail_store=JailStateStore(DATA_DIR / JAIL_STATE_FILE),
            absence_store=AbsenceStateStore(DATA_DIR / NOT_OC_JSON_FILE, DATA_DIR / NOT_OC_CSV_FILE),
        )

        # =================================================================
        # Schedulers (started in on_ready)
        # =================================================================
        self.poll_scheduler: Optional[FactionPollScheduler] = None
        self.report_scheduler: Optional[NotInOcReportScheduler] = None

        # Discord can fire on_ready multiple times (reconnects, etc.)
        self._ready_initialized: bool = False

    # =========================================================================
    # Event Handlers
    # =========================================================================

    async def setup_hook(self) -> None:
        """Setup hook called when bot is starting."""
        self.settings.load()
        self.engine.load_state()

        await self.load_extension("src.commands.jail")
        await self.load_extension("src.commands.oc")

        # Commands are synced in on_ready
        logger.info("Bot setup complete - commands will sync on ready", [
            ("Jail Records", str(len(self.engine.jail_tracker))),
            ("OC Records", str(len(self.engine.activity_tracker))),
        ])

    async def on_ready(self) -> None:
        """Event handler called when bot is ready."""
        if self._ready_initialized:
            logger.info("🔄 Bot Reconnected (skipping re-initialization)")
            return

        self._ready_initialized = True
        await on_ready_handler(self)

    async def on_resumed(self) -> None:
        logger.info("Bot Connection Resumed")

    async def close(self) -> None:
        """Cleanup when bot is shutting down."""
        await shutdown_handler(self)
        await super().close()


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["FactionWatchBot"]
