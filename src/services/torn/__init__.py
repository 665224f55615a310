"""
FactionWatch Bot - Torn Tracking Package
========================================

Faction polling, jail tracking and not-in-OC tracking.
"""

from src.services.torn.activity_tracker import ActivityWindowTracker
from src.services.torn.client import TornClient
from src.services.torn.engine import CycleResult, CycleState, CycleStatus, ReconciliationEngine
from src.services.torn.errors import (
    NormalizationWarning,
    PersistenceFailure,
    TornError,
    UpstreamReportedError,
    UpstreamUnavailable,
)
from src.services.torn.jail_tracker import JailStateTracker
from src.services.torn.models import AbsenceRecord, JailEvent, JailEventKind, JailRecord, MemberSnapshot
from src.services.torn.normalizer import detect_organized_crime, normalize_members
from src.services.torn.notifier import JailNotifier
from src.services.torn.persistence import AbsenceStateStore, JailStateStore
from src.services.torn.scheduler import FactionPollScheduler, NotInOcReportScheduler

__all__ = [
    # Models
    "MemberSnapshot",
    "JailRecord",
    "AbsenceRecord",
    "JailEvent",
    "JailEventKind",
    # Errors
    "TornError",
    "UpstreamUnavailable",
    "UpstreamReportedError",
    "PersistenceFailure",
    "NormalizationWarning",
    # Core
    "normalize_members",
    "detect_organized_crime",
    "JailStateTracker",
    "ActivityWindowTracker",
    "ReconciliationEngine",
    "CycleResult",
    "CycleState",
    "CycleStatus",
    # Adapters
    "TornClient",
    "JailStateStore",
    "AbsenceStateStore",
    "JailNotifier",
    "FactionPollScheduler",
    "NotInOcReportScheduler",
]
