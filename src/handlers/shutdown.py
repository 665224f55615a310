"""
FactionWatch Bot - Shutdown Handler
===================================

Graceful shutdown and cleanup logic.

Order matters: schedulers stop first so no cycle mutates state after the
final flush, then tracker state is written, then the HTTP session closes.
"""

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Tuple

from src.core.config import SHUTDOWN_TIMEOUT
from src.core.logger import logger

if TYPE_CHECKING:
    from src.bot import FactionWatchBot


# =============================================================================
# Shutdown Handler
# =============================================================================

async def _safe_cleanup(name: str, cleanup_coro: Any) -> bool:
    """
    Execute a cleanup coroutine with error handling.

    Args:
        name: Name of the cleanup task for logging
        cleanup_coro: Coroutine to execute

    Returns:
        True if cleanup succeeded, False otherwise
    """
    try:
        await cleanup_coro
        logger.debug("Cleanup Complete", [
            ("Task", name),
        ])
        return True
    except asyncio.CancelledError:
        logger.debug("Cleanup Cancelled", [
            ("Task", name),
        ])
        return True
    except asyncio.TimeoutError:
        logger.warning("Cleanup Timed Out", [
            ("Task", name),
        ])
        return False
    except Exception as e:
        logger.warning("Cleanup Failed", [
            ("Task", name),
            ("Error Type", type(e).__name__),
            ("Error", str(e)),
        ])
        return False


async def _run_phase(cleanup_tasks: List[Tuple[str, Callable[[], Awaitable[Any]]]]) -> Tuple[int, int]:
    """Run one group of cleanups concurrently. Returns (successful, failed)."""
    if not cleanup_tasks:
        return 0, 0
    results = await asyncio.gather(
        *[_safe_cleanup(name, factory()) for name, factory in cleanup_tasks],
        return_exceptions=True
    )
    successful = sum(1 for r in results if r is True)
    return successful, len(results) - successful


async def _flush_state(bot: "FactionWatchBot") -> None:
    """Write tracker state one last time."""
    if not bot.engine.persist():
        raise RuntimeError("Tracker state could not be written")
    logger.info("Tracker State Flushed", [
        ("Jail Records", str(len(bot.engine.jail_tracker))),
        ("OC Records", str(len(bot.engine.activity_tracker))),
    ])


async def shutdown_handler(bot: "FactionWatchBot") -> None:
    """
    Cleanup when bot is shutting down.

    Args:
        bot: The FactionWatchBot instance
    """
    logger.info("Shutting Down FactionWatch Bot", [
        ("Timeout", f"{SHUTDOWN_TIMEOUT}s"),
    ])

    phases: List[List[Tuple[str, Callable[[], Awaitable[Any]]]]] = []

    # 1. Stop schedulers
    stop_tasks: List[Tuple[str, Callable[[], Awaitable[Any]]]] = []
    if bot.poll_scheduler:
        stop_tasks.append(("Faction Poll Scheduler", bot.poll_scheduler.stop))
    if bot.report_scheduler:
        stop_tasks.append(("Not-in-OC Report Scheduler", bot.report_scheduler.stop))
    phases.append(stop_tasks)

    # 2. Flush tracker state, only after load_state()
    if bot.engine and bot.engine.state_loaded:
        phases.append([("Tracker State", lambda: _flush_state(bot))])
    elif bot.engine:
        logger.warning("Tracker State Flush Skipped", [
            ("Reason", "State was never loaded"),
            ("Action", "Keeping files on disk"),
        ])

    # 3. Close the Torn API session
    if bot.torn_client:
        phases.append([("Torn API Client", bot.torn_client.close)])

    successful = failed = 0
    try:
        async with asyncio.timeout(SHUTDOWN_TIMEOUT):
            for phase in phases:
                ok, bad = await _run_phase(phase)
                successful += ok
                failed += bad
    except asyncio.TimeoutError:
        logger.warning("Shutdown Cleanup Timed Out", [
            ("Timeout", f"{SHUTDOWN_TIMEOUT}s"),
            ("Note", "Some tasks may not have completed"),
        ])
    else:
        logger.info("Shutdown Cleanup Complete", [
            ("Successful", str(successful)),
            ("Failed", str(failed)),
        ])

    logger.tree("Bot Shutdown Complete", [
        ("Status", "All services stopped"),
    ], emoji="👋")


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["shutdown_handler"]
