"""
FactionWatch Bot - Handlers Package
===================================

Event handlers for bot lifecycle.
"""

from src.handlers.ready import on_ready_handler
from src.handlers.shutdown import shutdown_handler

__all__ = [
    "on_ready_handler",
    "shutdown_handler",
]
