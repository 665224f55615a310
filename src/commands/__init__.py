"""
FactionWatch Bot - Slash Commands Package
=========================================

Discord slash commands for jail alerts and OC tracking.

Available Commands:
- /jail, /testjail, /jailstatus, /testapi, /debugapi, /pollnow
- /setnotoc, /getnotoc, /oc, /notinoc
"""

from src.commands.jail import JailCog
from src.commands.oc import OrganizedCrimeCog

__all__ = [
    "JailCog",
    "OrganizedCrimeCog",
]
