"""
FactionWatch Bot - Snapshot Normalizer
======================================

Turns a raw faction payload from the Torn API into a list of MemberSnapshot.

The upstream shape is not stable. The members collection has been seen as a
list, as a mapping keyed by player ID, and nested under `faction`. Whether a
member is in an organised crime is not documented at all, so detection runs
through an ordered list of detector strategies; the first one that fires
wins and anything unmatched counts as NOT in OC.

The OC detectors are best-effort guesses against an undocumented schema.
If detection looks wrong, report it rather than reordering them.

Pure function: no I/O besides logging, and it never raises on bad input.
"""

import math
import re
import warnings
from typing import Any, Callable, Iterable, Optional

from src.core.logger import logger
from src.services.torn.errors import NormalizationWarning
from src.services.torn.models import MemberSnapshot


# =============================================================================
# Field Tables
# =============================================================================

# Paths tried, in order, to find the members collection
MEMBER_COLLECTION_PATHS: tuple[tuple[str, ...], ...] = (
    ("members",),
    ("faction", "members"),
)

ID_FIELDS: tuple[str, ...] = ("id", "player_id")
NAME_FIELDS: tuple[str, ...] = ("name", "player_name")
JAILED_STATES: frozenset[str] = frozenset({"Jailed", "Jail"})
LEGACY_JAIL_FIELD = "jail_time"

OC_FLAG_FIELDS: tuple[str, ...] = ("organised_crime", "organisedCrime", "organisedcrime")
OC_COUNT_FIELDS: tuple[str, ...] = ("organised_crime_count", "organisedCrimeCount")
OC_STATE_PATTERN = re.compile(r"organis|organis?ed|crime", re.IGNORECASE)


# =============================================================================
# Value Helpers
# =============================================================================

def _is_truthy(value: Any) -> bool:
    """Loose truthiness matching the upstream's JSON producers (empty {} / [] count as set)."""
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value != 0 and value == value  # NaN is not truthy
    if isinstance(value, str):
        return value != ""
    return True


def _as_number(value: Any) -> Optional[float]:
    """Finite numeric value of ints, floats and numeric strings; None otherwise."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip())
        else:
            return None
    except (ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _canonical_id(value: Any) -> Optional[str]:
    """Stringify a player ID; 123, 123.0 and "123" all become "123"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if value != value or not value.is_integer():
            return None
        return str(int(value))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _first_present(member: dict, fields: Iterable[str]) -> Any:
    for field_name in fields:
        value = member.get(field_name)
        if _is_truthy(value):
            return value
    return None


# =============================================================================
# Organised Crime Detection
# =============================================================================

def _has_flag(source: dict) -> bool:
    return any(_is_truthy(source.get(f)) for f in OC_FLAG_FIELDS)


def _has_positive_count(source: dict) -> bool:
    for field_name in OC_COUNT_FIELDS:
        value = source.get(field_name)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return True
    return False


def _status_of(member: dict) -> dict:
    status = member.get("status")
    return status if isinstance(status, dict) else {}


def _status_has_flag(member: dict) -> bool:
    return _has_flag(_status_of(member))


def _status_has_positive_count(member: dict) -> bool:
    return _has_positive_count(_status_of(member))


def _status_state_mentions_crime(member: dict) -> bool:
    state = _status_of(member).get("state")
    return isinstance(state, str) and OC_STATE_PATTERN.search(state) is not None


# Ordered detectors: new upstream shapes get a new entry here
OC_DETECTORS: list[tuple[str, Callable[[dict], bool]]] = [
    ("flag", _has_flag),
    ("count", _has_positive_count),
    ("status.flag", _status_has_flag),
    ("status.count", _status_has_positive_count),
    ("status.state", _status_state_mentions_crime),
]


def detect_organized_crime(member: Any) -> bool:
    """True when any detector finds an organised-crime signal on the member."""
    if not isinstance(member, dict):
        return False
    for _name, detector in OC_DETECTORS:
        try:
            if detector(member):
                return True
        except (TypeError, ValueError, AttributeError):
            continue
    return False


# =============================================================================
# Jail Time
# =============================================================================

def confinement_seconds(member: dict, now: int, allow_legacy: bool = False) -> int:
    """
    Remaining jail time in seconds.

    Derived from status.state in JAILED_STATES plus an absolute status.until.
    With allow_legacy, members without any status object fall back to a
    pre-computed jail_time field.
    """
    status = member.get("status")
    if isinstance(status, dict):
        if status.get("state") in JAILED_STATES:
            until = _as_number(status.get("until"))
            if until:
                return max(0, int(until) - int(now))
        return 0

    if allow_legacy and status is None:
        legacy = _as_number(member.get(LEGACY_JAIL_FIELD))
        if legacy is not None:
            return max(0, int(legacy))
    return 0


# =============================================================================
# Normalization
# =============================================================================

def _locate_members(payload: dict) -> Any:
    for path in MEMBER_COLLECTION_PATHS:
        node: Any = payload
        for key in path:
            if not isinstance(node, dict):
                node = None
                break
            node = node.get(key)
        if isinstance(node, (list, dict)):
            return node
    return None


def _to_snapshot(
    member: Any,
    now: int,
    fallback_id: Any = None,
    allow_legacy: bool = False,
) -> Optional[MemberSnapshot]:
    if not isinstance(member, dict):
        return None

    player_id = _canonical_id(_first_present(member, ID_FIELDS))
    if player_id is None:
        player_id = _canonical_id(fallback_id)
    if player_id is None:
        return None

    name = _first_present(member, NAME_FIELDS)
    return MemberSnapshot(
        id=player_id,
        name=str(name) if name is not None else "Unknown",
        confinement_seconds=confinement_seconds(member, now, allow_legacy=allow_legacy),
        in_organized_activity=detect_organized_crime(member),
    )


def _warn(message: str, details: list[tuple[str, Any]]) -> None:
    logger.warning(message, details)
    warnings.warn(message, NormalizationWarning, stacklevel=3)


def normalize_members(payload: Any, now: int) -> list[MemberSnapshot]:
    """
    Convert a raw faction payload into member snapshots.

    Args:
        payload: Decoded JSON from the faction endpoint (any shape)
        now: Current UNIX time in seconds, used to turn status.until into remaining time

    Returns:
        List of MemberSnapshot. Empty, with a NormalizationWarning, when the
        payload is missing or has no members collection.
    """
    if payload is None:
        _warn("Faction Payload Missing", [("Result", "0 members")])
        return []

    if not isinstance(payload, dict):
        _warn("Faction Payload Not An Object", [
            ("Type", type(payload).__name__),
            ("Result", "0 members"),
        ])
        return []

    collection = _locate_members(payload)
    if collection is None:
        _warn("No Members Collection In Payload", [
            ("Keys", ", ".join(map(str, list(payload.keys())[:10])) or "(none)"),
            ("Result", "0 members"),
        ])
        return []

    members: list[MemberSnapshot] = []
    skipped = 0

    if isinstance(collection, list):
        shape = "array"
        entries: Iterable[tuple[Any, Any]] = ((None, m) for m in collection)
        allow_legacy = False
    else:
        shape = "object"
        entries = collection.items()
        allow_legacy = True

    for key, raw in entries:
        try:
            snapshot = _to_snapshot(raw, now, fallback_id=key, allow_legacy=allow_legacy)
        except (TypeError, ValueError, AttributeError, OverflowError):
            snapshot = None
        if snapshot is None:
            skipped += 1
            continue
        members.append(snapshot)

    logger.debug("Normalized Faction Members", [
        ("Format", shape),
        ("Members", str(len(members))),
        ("Skipped", str(skipped)),
    ])

    jailed = [m for m in members if m.confinement_seconds > 0]
    if jailed:
        logger.debug("Jailed Members In Snapshot", [
            (m.name, f"{m.confinement_seconds}s") for m in jailed[:10]
        ])

    return members


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "normalize_members",
    "detect_organized_crime",
    "confinement_seconds",
    "MEMBER_COLLECTION_PATHS",
    "OC_DETECTORS",
    "JAILED_STATES",
]
