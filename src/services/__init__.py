"""
FactionWatch Bot - Services Package
===================================

Backend services for faction tracking and scheduling.
"""

from src.services.torn import (
    ReconciliationEngine,
    TornClient,
    JailNotifier,
    FactionPollScheduler,
    NotInOcReportScheduler,
)

__all__ = [
    "ReconciliationEngine",
    "TornClient",
    "JailNotifier",
    "FactionPollScheduler",
    "NotInOcReportScheduler",
]
