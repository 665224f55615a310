"""
FactionWatch Bot - Main Entry Point
===================================

Application entry point with single-instance enforcement and graceful startup.

This module handles:
- Single-instance lock acquisition (prevents duplicate bots)
- Environment configuration loading
- Signal-driven graceful shutdown
- Bot initialization and execution

Usage:
    python main.py

Environment Variables:
    DISCORD_TOKEN: Required. Discord bot authentication token.
    TORN_API_KEY: Required. Torn API key with faction access.
    FACTION_ID: Required. Faction to watch.
"""

import os
import sys
import fcntl
import signal
import asyncio
import tempfile
from pathlib import Path
from typing import NoReturn, Optional

# CRITICAL: Load environment variables BEFORE importing any local modules
# that read from environment at import time (e.g., config.py)
from dotenv import load_dotenv
load_dotenv()

from src.core.logger import logger
from src.core.config import ConfigValidationError, FACTION_ID, POLL_INTERVAL, validate_and_log_config
from src.bot import FactionWatchBot


# =============================================================================
# Global State for Signal Handling
# =============================================================================

_bot_instance: Optional[FactionWatchBot] = None


# =============================================================================
# Constants
# =============================================================================

LOCK_FILE_PATH = Path(tempfile.gettempdir()) / "factionwatch_bot.lock"
"""Path to the lock file used for single-instance enforcement."""


# =============================================================================
# Single Instance Lock
# =============================================================================

def acquire_lock() -> int:
    """
    Take an exclusive flock on LOCK_FILE_PATH and write our PID into it.

    flock is dropped by the kernel when the holder exits, so a leftover file
    from a crashed run never blocks startup.

    Raises:
        SystemExit: the file cannot be opened, or another instance holds it
    """
    try:
        fd = os.open(str(LOCK_FILE_PATH), os.O_RDWR | os.O_CREAT, 0o644)
    except OSError as e:
        logger.error("Failed to Open Lock File", [
            ("Path", str(LOCK_FILE_PATH)),
            ("Error", str(e)),
        ])
        sys.exit(1)

    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        _report_existing_instance(fd)
        os.close(fd)
        sys.exit(1)

    os.truncate(fd, 0)
    os.write(fd, str(os.getpid()).encode())
    logger.info("🔒 Lock Acquired", [
        ("PID", str(os.getpid())),
        ("Path", str(LOCK_FILE_PATH)),
    ])
    return fd


def _report_existing_instance(fd: int) -> None:
    """Log the PID stored by the instance holding the lock."""
    try:
        os.lseek(fd, 0, os.SEEK_SET)
        holder = os.read(fd, 32).decode().strip() or "Unknown"
    except (OSError, UnicodeDecodeError):
        holder = "Unreadable"

    logger.error("🔒 FactionWatch Is Already Running", [
        ("Holder PID", holder),
        ("Lock File", str(LOCK_FILE_PATH)),
    ])


# =============================================================================
# Configuration
# =============================================================================

def load_configuration() -> str:
    """
    Validate environment configuration.

    Returns:
        Discord bot token.

    Raises:
        SystemExit: If required configuration is missing.
    """
    try:
        validate_and_log_config()
    except ConfigValidationError as e:
        logger.error("Configuration Validation Failed", [
            ("Error", str(e)),
            ("Action", "Check your .env file"),
        ])
        sys.exit(1)

    return os.environ["DISCORD_TOKEN"]


# =============================================================================
# Signal Handlers
# =============================================================================

def _handle_signal(signum: int) -> None:
    """Called from the event loop via loop.add_signal_handler()."""
    signal_name = signal.Signals(signum).name
    logger.info("Signal Received", [
        ("Signal", signal_name),
        ("Action", "Initiating graceful shutdown"),
    ])

    if _bot_instance and not _bot_instance.is_closed():
        asyncio.create_task(_bot_instance.close())


def _setup_async_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    """
    Register SIGTERM/SIGHUP handlers on the running loop.

    SIGINT surfaces as KeyboardInterrupt and is handled in main().
    """
    for sig in (signal.SIGTERM, signal.SIGHUP):
        try:
            loop.add_signal_handler(sig, lambda s=sig: _handle_signal(s))
            logger.debug(f"Registered async {sig.name} handler")
        except (ValueError, OSError, NotImplementedError) as e:
            logger.warning(f"Could not register {sig.name} handler", [
                ("Error", str(e)),
            ])


async def _run_bot(bot: FactionWatchBot, token: str) -> None:
    async with bot:
        _setup_async_signal_handlers(asyncio.get_running_loop())
        await bot.start(token)


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> NoReturn:
    """
    Main entry point for the FactionWatch bot.

    Execution flow:
    1. Acquire single-instance lock
    2. Validate environment configuration
    3. Initialize and start bot
    4. Handle shutdown gracefully
    """
    global _bot_instance

    lock_fd = acquire_lock()
    token = load_configuration()

    exit_code = 0
    try:
        logger.tree(
            "Starting FactionWatch Bot",
            [
                ("Faction", FACTION_ID),
                ("Poll Interval", f"{POLL_INTERVAL}s"),
                ("Lock File", str(LOCK_FILE_PATH)),
                ("PID", str(os.getpid())),
            ],
            emoji="🚨",
        )

        bot = FactionWatchBot()
        _bot_instance = bot
        asyncio.run(_run_bot(bot, token))

    except KeyboardInterrupt:
        logger.info("🛑 Shutdown Requested", [
            ("By", "User (Ctrl+C)"),
        ])

    except Exception as e:
        logger.exception("💥 Fatal Error During Bot Execution", [
            ("Error Type", type(e).__name__),
            ("Error", str(e)),
        ])
        exit_code = 1

    finally:
        try:
            os.close(lock_fd)
        except OSError:
            pass
        logger.info("🛑 Bot Shutdown Complete")

    sys.exit(exit_code)


# =============================================================================
# Script Execution
# =============================================================================

if __name__ == "__main__":
    main()
