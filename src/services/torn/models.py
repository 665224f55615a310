"""
FactionWatch Bot - Torn Tracking Models
=======================================

Dataclasses shared by the normalizer, the two trackers, the reconciliation
engine and the persistence adapters.

All timestamps are integer UNIX seconds.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Optional


# =============================================================================
# Snapshot
# =============================================================================

@dataclass(frozen=True)
class MemberSnapshot:
    """One faction member as seen in a single poll."""
    id: str
    name: str = "Unknown"
    confinement_seconds: int = 0
    in_organized_activity: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# Tracker Records
# =============================================================================

@dataclass
class JailRecord:
    """Per-member jail state owned by JailStateTracker."""
    id: str
    name: str
    confinement_seconds: int = 0
    last_seen_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted jailstate.json shape."""
        return {
            "time": self.confinement_seconds,
            "lastSeen": self.last_seen_at,
            "name": self.name,
        }


@dataclass
class AbsenceRecord:
    """Per-member not-in-OC state owned by ActivityWindowTracker."""
    id: str
    name: str
    absence_started_at: Optional[int] = None
    last_seen_at: int = 0

    @property
    def is_absent(self) -> bool:
        return self.absence_started_at is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted not_oc.json shape."""
        return {
            "name": self.name,
            "last_not_in_oc": self.absence_started_at,
            "lastSeen": self.last_seen_at,
        }


# =============================================================================
# Jail Events
# =============================================================================

class JailEventKind(str, Enum):
    """Jail transitions detected between two polls."""
    CONFINED = "Confined"
    RELEASED = "Released"
    RECONFINED = "ReConfined"


@dataclass(frozen=True)
class JailEvent:
    """Structured payload handed to the notification sink."""
    id: str
    name: str
    kind: JailEventKind
    confinement_seconds: int
    previous_seconds: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "eventKind": self.kind.value,
            "confinementSeconds": self.confinement_seconds,
        }


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "MemberSnapshot",
    "JailRecord",
    "AbsenceRecord",
    "JailEventKind",
    "JailEvent",
]
