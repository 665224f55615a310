"""
FactionWatch Bot - Reconciliation Engine
========================================

One reconciliation cycle:

    fetch -> normalize -> observe (jail + OC trackers) -> notify -> retire -> persist

The engine owns both trackers and is built with its collaborators injected
(fetch coroutine, notification sink, clock, stores), so it can be driven
from tests without a network or a real clock.

Cycles never overlap. A call that arrives while a cycle is RUNNING returns
immediately with an overrun result instead of starting a second pass.
Failures are contained within the cycle: a failed fetch leaves state and
files exactly as the last good cycle left them.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional

from src.core.config import FETCH_TIMEOUT, RETENTION_SECONDS
from src.core.logger import logger
from src.services.torn.activity_tracker import ActivityWindowTracker
from src.services.torn.errors import PersistenceFailure, UpstreamReportedError, UpstreamUnavailable
from src.services.torn.jail_tracker import JailStateTracker
from src.services.torn.models import JailEvent, MemberSnapshot
from src.services.torn.normalizer import normalize_members
from src.services.torn.persistence import AbsenceStateStore, JailStateStore
from src.services.torn.reports import build_absence_report, build_jail_status_report


FetchFunc = Callable[[], Awaitable[Any]]
NotifySink = Callable[[JailEvent], Awaitable[None]]
Clock = Callable[[], float]


# =============================================================================
# Cycle State & Results
# =============================================================================

class CycleState(str, Enum):
    IDLE = "Idle"
    RUNNING = "Running"


class CycleStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED_UNCONFIGURED = "skipped_unconfigured"
    SKIPPED_OVERRUN = "skipped_overrun"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    UPSTREAM_ERROR = "upstream_error"
    FAILED = "failed"


@dataclass
class CycleResult:
    """Summary of one run_cycle() call."""
    status: CycleStatus
    members: int = 0
    events: list[JailEvent] = field(default_factory=list)
    notify_failures: int = 0
    retired: list[str] = field(default_factory=list)
    persisted: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is CycleStatus.COMPLETED


# =============================================================================
# Reconciliation Engine
# =============================================================================

class ReconciliationEngine:
    """Owns the trackers and runs reconciliation cycles."""

    def __init__(
        self,
        fetch: FetchFunc,
        sink: Optional[NotifySink] = None,
        clock: Clock = time.time,
        is_configured: Callable[[], bool] = lambda: True,
        jail_store: Optional[JailStateStore] = None,
        absence_store: Optional[AbsenceStateStore] = None,
        jail_tracker: Optional[JailStateTracker] = None,
        activity_tracker: Optional[ActivityWindowTracker] = None,
        fetch_timeout: float = FETCH_TIMEOUT,
        retention_seconds: int = RETENTION_SECONDS,
    ) -> None:
        self.fetch: FetchFunc = fetch
        self.sink: Optional[NotifySink] = sink
        self.clock: Clock = clock
        self.is_configured: Callable[[], bool] = is_configured
        self.jail_store: Optional[JailStateStore] = jail_store
        self.absence_store: Optional[AbsenceStateStore] = absence_store
        self.jail_tracker: JailStateTracker = jail_tracker or JailStateTracker()
        self.activity_tracker: ActivityWindowTracker = activity_tracker or ActivityWindowTracker()
        self.fetch_timeout: float = fetch_timeout
        self.retention_seconds: int = retention_seconds

        self.state_loaded: bool = False
        self.state: CycleState = CycleState.IDLE
        self.cycles_completed: int = 0
        self.last_success_at: Optional[int] = None
        self.last_result: Optional[CycleResult] = None

    def now(self) -> int:
        return int(self.clock())

    # -------------------------------------------------------------------------
    # State Loading / Saving
    # -------------------------------------------------------------------------

    def load_state(self) -> None:
        """Replace tracker contents with whatever the stores hold on disk."""
        if self.jail_store:
            self.jail_tracker.records = self.jail_store.load()
        if self.absence_store:
            self.activity_tracker.records = self.absence_store.load()
        self.state_loaded = True

    def persist(self) -> bool:
        """
        Write both trackers out. Returns False when any write failed.

        Failures are logged; in-memory state stays authoritative and the
        next successful cycle rewrites the files.
        """
        ok = True
        if self.jail_store:
            try:
                self.jail_store.save(self.jail_tracker.records)
            except PersistenceFailure as e:
                ok = False
                logger.error("Failed to Save Jail State", [
                    ("Path", str(e.path)),
                    ("Error", str(e.cause)),
                ])
        if self.absence_store:
            try:
                self.absence_store.save(self.activity_tracker.records)
            except PersistenceFailure as e:
                ok = False
                logger.error("Failed to Save Not-in-OC State", [
                    ("Path", str(e.path)),
                    ("Error", str(e.cause)),
                ])
        return ok

    # -------------------------------------------------------------------------
    # Cycle
    # -------------------------------------------------------------------------

    def apply_snapshot(
        self,
        members: Iterable[MemberSnapshot],
        now: int,
    ) -> tuple[list[JailEvent], set[str]]:
        """
        Feed one poll's members through both trackers.

        Runs without awaiting, so no other coroutine sees a half-updated map.

        Returns:
            (jail events in member order, IDs present in this poll)
        """
        events: list[JailEvent] = []
        present_ids: set[str] = set()

        for member in members:
            present_ids.add(member.id)
            event = self.jail_tracker.observe(member, now)
            if event is not None:
                events.append(event)
            self.activity_tracker.observe(member, now)

        return events, present_ids

    async def _notify(self, events: list[JailEvent]) -> int:
        """Deliver events one by one; returns how many deliveries failed."""
        if self.sink is None:
            return 0

        failures = 0
        for event in events:
            try:
                await self.sink(event)
            except Exception as e:
                failures += 1
                logger.error("Failed to Deliver Jail Notification", [
                    ("Player", f"{event.name} [{event.id}]"),
                    ("Event", event.kind.value),
                    ("Error Type", type(e).__name__),
                    ("Error", str(e)),
                ])
        return failures

    async def run_cycle(self) -> CycleResult:
        """
        Run one reconciliation cycle.

        Never raises: every failure becomes a CycleResult with a non-completed status.
        """
        if self.state is CycleState.RUNNING:
            logger.warning("Cycle Overrun", [
                ("State", self.state.value),
                ("Action", "Skipping tick, previous cycle still running"),
            ])
            return CycleResult(status=CycleStatus.SKIPPED_OVERRUN)

        if not self.is_configured():
            logger.debug("Jail Check Skipped", [
                ("Reason", "Alert channel or role not configured"),
            ])
            result = CycleResult(status=CycleStatus.SKIPPED_UNCONFIGURED)
            self.last_result = result
            return result

        self.state = CycleState.RUNNING
        try:
            result = await self._run_cycle()
        finally:
            self.state = CycleState.IDLE

        self.last_result = result
        return result

    async def _run_cycle(self) -> CycleResult:
        try:
            async with asyncio.timeout(self.fetch_timeout):
                payload = await self.fetch()
        except UpstreamReportedError as e:
            logger.error("Torn API Reported An Error", [
                ("Code", str(e.code) if e.code is not None else "Unknown"),
                ("Error", e.detail),
                ("Action", "Cycle aborted"),
            ])
            return CycleResult(status=CycleStatus.UPSTREAM_ERROR, error=str(e))
        except UpstreamUnavailable as e:
            logger.error("Torn API Unavailable", [
                ("Status", str(e.status) if e.status is not None else "N/A"),
                ("Error", str(e)),
                ("Action", "Cycle aborted"),
            ])
            return CycleResult(status=CycleStatus.UPSTREAM_UNAVAILABLE, error=str(e))
        except asyncio.TimeoutError:
            logger.error("Torn API Fetch Timed Out", [
                ("Timeout", f"{self.fetch_timeout}s"),
                ("Action", "Cycle aborted"),
            ])
            return CycleResult(status=CycleStatus.UPSTREAM_UNAVAILABLE, error="fetch timed out")
        except Exception as e:
            logger.exception("Unexpected Error Fetching Faction", [
                ("Error Type", type(e).__name__),
                ("Error", str(e)),
            ])
            return CycleResult(status=CycleStatus.FAILED, error=str(e))

        now = self.now()

        try:
            members = normalize_members(payload, now)
            events, present_ids = self.apply_snapshot(members, now)
        except Exception as e:
            logger.exception("Failed to Apply Faction Snapshot", [
                ("Error Type", type(e).__name__),
                ("Error", str(e)),
            ])
            return CycleResult(status=CycleStatus.FAILED, error=str(e))

        notify_failures = await self._notify(events)

        retired = self.jail_tracker.retire_stale(present_ids, now, self.retention_seconds)
        persisted = self.persist()

        self.cycles_completed += 1
        self.last_success_at = now

        logger.debug("Reconciliation Cycle Complete", [
            ("Members", str(len(members))),
            ("Events", str(len(events))),
            ("Retired", str(len(retired))),
            ("Persisted", "Yes" if persisted else "No"),
        ])

        return CycleResult(
            status=CycleStatus.COMPLETED,
            members=len(members),
            events=events,
            notify_failures=notify_failures,
            retired=retired,
            persisted=persisted,
        )

    # -------------------------------------------------------------------------
    # Report Query Surface
    # -------------------------------------------------------------------------

    def build_absence_report(self, max_chars: int, now: Optional[int] = None) -> str:
        return build_absence_report(self.activity_tracker, max_chars, self.now() if now is None else now)

    def build_jail_status_report(self, now: Optional[int] = None) -> str:
        return build_jail_status_report(self.jail_tracker, self.now() if now is None else now)

    def current_absence_duration(self, player_id: str, now: Optional[int] = None) -> Optional[int]:
        return self.activity_tracker.current_absence_duration(
            str(player_id), self.now() if now is None else now
        )


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "ReconciliationEngine",
    "CycleState",
    "CycleStatus",
    "CycleResult",
]
