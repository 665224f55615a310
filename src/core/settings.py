"""
FactionWatch Bot - Runtime Settings
===================================

Admin-controlled settings that change while the bot runs (alert channel,
alert role, not-in-OC report channel). Persisted as config.json in the data
directory, using the same camelCase keys as the original bot's file so an
existing config.json keeps working.
"""

import json
from pathlib import Path
from typing import Any, Optional

from src.core.logger import logger


# =============================================================================
# Bot Settings
# =============================================================================

class BotSettings:
    """Persisted runtime settings."""

    KEYS = ("channelId", "roleId", "notOcChannelId")

    def __init__(self, path: Path) -> None:
        self.path: Path = path
        self.channel_id: Optional[int] = None
        self.role_id: Optional[int] = None
        self.not_oc_channel_id: Optional[int] = None
        self._extra: dict[str, Any] = {}

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def is_jail_configured(self) -> bool:
        """Jail alerts need both a channel and a role to ping."""
        return self.channel_id is not None and self.role_id is not None

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    @staticmethod
    def _to_id(value: Any) -> Optional[int]:
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(str(value).strip())
        except ValueError:
            return None

    def load(self) -> "BotSettings":
        """Load settings from disk. Missing or unreadable files give empty settings."""
        if not self.path.exists():
            logger.info("No Settings File Found", [
                ("Path", str(self.path)),
                ("Action", "Use /jail to configure alerts"),
            ])
            return self

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Failed to Load Settings", [
                ("Path", str(self.path)),
                ("Error", str(e)),
            ])
            return self

        if not isinstance(data, dict):
            logger.warning("Ignoring Malformed Settings File", [
                ("Path", str(self.path)),
                ("Type", type(data).__name__),
            ])
            return self

        self.channel_id = self._to_id(data.get("channelId"))
        self.role_id = self._to_id(data.get("roleId"))
        self.not_oc_channel_id = self._to_id(data.get("notOcChannelId"))
        # keys written by features this bot does not own are preserved on save
        self._extra = {k: v for k, v in data.items() if k not in self.KEYS}

        logger.info("Loaded Settings", [
            ("Jail Channel", str(self.channel_id) if self.channel_id else "Not Set"),
            ("Jail Role", str(self.role_id) if self.role_id else "Not Set"),
            ("Not-in-OC Channel", str(self.not_oc_channel_id) if self.not_oc_channel_id else "Not Set"),
        ])
        return self

    def to_dict(self) -> dict[str, Any]:
        data = dict(self._extra)
        data["channelId"] = str(self.channel_id) if self.channel_id else None
        data["roleId"] = str(self.role_id) if self.role_id else None
        data["notOcChannelId"] = str(self.not_oc_channel_id) if self.not_oc_channel_id else None
        return data

    def save(self) -> bool:
        """Write settings to disk. Returns False (and logs) on failure."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
            return True
        except OSError as e:
            logger.error("Failed to Save Settings", [
                ("Path", str(self.path)),
                ("Error", str(e)),
            ])
            return False

    # -------------------------------------------------------------------------
    # Setters
    # -------------------------------------------------------------------------

    def set_jail_target(self, channel_id: int, role_id: int) -> bool:
        self.channel_id = channel_id
        self.role_id = role_id
        return self.save()

    def set_not_oc_channel(self, channel_id: int) -> bool:
        self.not_oc_channel_id = channel_id
        return self.save()


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["BotSettings"]
