"""
FactionWatch Bot - Configuration Module
=======================================

Environment configuration, validation and shared tunables.

Importing this module never raises: every value has a default. Startup
validation happens in validate_and_log_config(), which main.py calls after
loading the .env file.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from src.core.logger import logger


# =============================================================================
# Configuration Validation
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    valid: bool
    missing_required: list[str] = field(default_factory=list)
    missing_optional: list[str] = field(default_factory=list)
    invalid_format: list[tuple[str, str]] = field(default_factory=list)  # (var_name, reason)


# Required environment variables (bot won't start without these)
REQUIRED_ENV_VARS: list[str] = [
    "DISCORD_TOKEN",
    "TORN_API_KEY",
    "FACTION_ID",
]

# Optional environment variables with their descriptions
OPTIONAL_ENV_VARS: dict[str, str] = {
    "GUILD_ID": "Instant guild-scoped slash command sync",
    "POLL_INTERVAL": "Seconds between faction polls (default 60)",
    "DATA_DIR": "State directory (default ./data)",
    "NOT_OC_REPORT_HOUR": "UTC hour for the daily not-in-OC report (default 12)",
}

# Variables that must be numeric when set
NUMERIC_ENV_VARS: list[str] = ["FACTION_ID", "GUILD_ID", "POLL_INTERVAL", "NOT_OC_REPORT_HOUR"]


def validate_config() -> ConfigValidationResult:
    """
    Validate all environment variables at startup.

    Returns:
        ConfigValidationResult with validation status and any issues found.
    """
    result = ConfigValidationResult(valid=True)

    for var in REQUIRED_ENV_VARS:
        if not os.getenv(var):
            result.missing_required.append(var)
            result.valid = False

    for var in OPTIONAL_ENV_VARS:
        if not os.getenv(var):
            result.missing_optional.append(var)

    for var in NUMERIC_ENV_VARS:
        value = os.getenv(var)
        if value and not value.strip().isdigit():
            result.invalid_format.append((var, "Must be a positive integer"))
            if var in REQUIRED_ENV_VARS:
                result.valid = False

    hour = os.getenv("NOT_OC_REPORT_HOUR")
    if hour and hour.strip().isdigit() and not 0 <= int(hour) <= 23:
        result.invalid_format.append(("NOT_OC_REPORT_HOUR", "Must be between 0 and 23"))

    return result


def validate_and_log_config() -> None:
    """
    Validate configuration and log results.

    Raises:
        ConfigValidationError: If required configuration is missing or malformed.
    """
    result = validate_config()

    for var in result.missing_required:
        logger.error("Missing Required Configuration", [
            ("Variable", var),
            ("Action", f"Add {var}=<value> to your .env file"),
        ])

    for var, reason in result.invalid_format:
        logger.error("Invalid Configuration Format", [
            ("Variable", var),
            ("Reason", reason),
        ])

    if result.missing_optional:
        logger.info("Optional Settings Using Defaults", [
            ("Variables", ", ".join(result.missing_optional)),
        ])

    if not result.valid:
        invalid_required = [v for v, _ in result.invalid_format if v in REQUIRED_ENV_VARS]
        raise ConfigValidationError(
            f"Missing required config: {', '.join(result.missing_required) or 'none'}"
            + (f"; Invalid format: {', '.join(invalid_required)}" if invalid_required else "")
        )

    logger.info("Configuration Validated Successfully", [
        ("Required", f"{len(REQUIRED_ENV_VARS)} OK"),
        ("Optional", f"{len(OPTIONAL_ENV_VARS) - len(result.missing_optional)}/{len(OPTIONAL_ENV_VARS)} configured"),
        ("Faction", FACTION_ID or "Not Set"),
        ("Poll Interval", f"{POLL_INTERVAL}s"),
    ])


# =============================================================================
# Loaders
# =============================================================================

def _load_optional_id(env_var: str) -> Optional[int]:
    """Load an optional numeric ID, None when unset or malformed."""
    value = os.getenv(env_var, "").strip()
    if not value or not value.isdigit():
        return None
    return int(value)


def _load_positive_int(env_var: str, default: int) -> int:
    """Load a positive integer, falling back to default on anything else."""
    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return value if value > 0 else default


def _load_hour(env_var: str, default: int) -> int:
    """Load an hour of day in 0-23."""
    try:
        value = int(os.getenv(env_var, str(default)))
    except ValueError:
        return default
    return value if 0 <= value <= 23 else default


# =============================================================================
# Torn API
# =============================================================================

TORN_API_KEY: str = os.getenv("TORN_API_KEY", "")
FACTION_ID: str = os.getenv("FACTION_ID", "").strip()
TORN_API_BASE: str = "https://api.torn.com/v2"
TORN_PROFILE_URL: str = "https://www.torn.com/profiles.php?XID={player_id}"


# =============================================================================
# Discord
# =============================================================================

GUILD_ID: Optional[int] = _load_optional_id("GUILD_ID")


# =============================================================================
# Polling & Tracking
# =============================================================================

POLL_INTERVAL: int = _load_positive_int("POLL_INTERVAL", 60)  # seconds
RETENTION_SECONDS: int = 7 * 24 * 60 * 60  # jail records kept 7 days after last sighting
RECONFINE_SLACK_SECONDS: int = 60  # jitter allowed before a longer sentence counts as re-jailed
NOT_OC_REPORT_HOUR: int = _load_hour("NOT_OC_REPORT_HOUR", 12)  # UTC
NOT_OC_REPORT_MAX_CHARS: int = 1900


# =============================================================================
# Network Constants
# =============================================================================

NETWORK_TIMEOUT: int = 10  # aiohttp total timeout per request (seconds)
FETCH_TIMEOUT: float = 15.0  # hard cap on one upstream fetch inside a cycle (seconds)
SHUTDOWN_TIMEOUT: float = 10.0


# =============================================================================
# Storage
# =============================================================================

DATA_DIR: Path = Path(os.getenv("DATA_DIR", "data"))
SETTINGS_FILE: str = "config.json"
JAIL_STATE_FILE: str = "jailstate.json"
NOT_OC_JSON_FILE: str = "not_oc.json"
NOT_OC_CSV_FILE: str = "not_oc.csv"


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    # Validation
    "ConfigValidationError",
    "ConfigValidationResult",
    "validate_config",
    "validate_and_log_config",
    # Torn API
    "TORN_API_KEY",
    "FACTION_ID",
    "TORN_API_BASE",
    "TORN_PROFILE_URL",
    # Discord
    "GUILD_ID",
    # Polling & Tracking
    "POLL_INTERVAL",
    "RETENTION_SECONDS",
    "RECONFINE_SLACK_SECONDS",
    "NOT_OC_REPORT_HOUR",
    "NOT_OC_REPORT_MAX_CHARS",
    # Network
    "NETWORK_TIMEOUT",
    "FETCH_TIMEOUT",
    "SHUTDOWN_TIMEOUT",
    # Storage
    "DATA_DIR",
    "SETTINGS_FILE",
    "JAIL_STATE_FILE",
    "NOT_OC_JSON_FILE",
    "NOT_OC_CSV_FILE",
]
