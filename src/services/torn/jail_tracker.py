"""
FactionWatch Bot - Jail State Tracker
=====================================

Per-member jail state machine. Each poll the engine feeds every member's
snapshot through observe(); comparing the stored remaining time with the new
one yields at most one transition event:

    previous == 0, current > 0            -> Confined
    previous > 0,  current == 0           -> Released
    previous > 0,  current > previous+60  -> ReConfined

Remaining time naturally shrinks between polls, so only a jump of more than
RECONFINE_SLACK_SECONDS counts as a fresh sentence.
"""

from typing import Iterable, Iterator, Optional

from src.core.config import RETENTION_SECONDS, RECONFINE_SLACK_SECONDS
from src.core.logger import logger
from src.services.torn.models import JailEvent, JailEventKind, JailRecord, MemberSnapshot


# =============================================================================
# Jail State Tracker
# =============================================================================

class JailStateTracker:
    """Owns the JailRecord map and detects jail transitions."""

    def __init__(
        self,
        records: Optional[dict[str, JailRecord]] = None,
        slack_seconds: int = RECONFINE_SLACK_SECONDS,
    ) -> None:
        self.records: dict[str, JailRecord] = dict(records or {})
        self.slack_seconds: int = slack_seconds

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self.records

    def get(self, player_id: str) -> Optional[JailRecord]:
        return self.records.get(player_id)

    # -------------------------------------------------------------------------
    # Observation
    # -------------------------------------------------------------------------

    def observe(self, snapshot: MemberSnapshot, now: int) -> Optional[JailEvent]:
        """
        Fold one member snapshot into the tracker.

        Args:
            snapshot: The member as seen in this poll
            now: Poll time (UNIX seconds)

        Returns:
            The transition event, or None when nothing changed state
        """
        record = self.records.get(snapshot.id)
        if record is None:
            record = JailRecord(id=snapshot.id, name=snapshot.name, confinement_seconds=0, last_seen_at=now)
            self.records[snapshot.id] = record

        previous = max(0, int(record.confinement_seconds))
        current = max(0, int(snapshot.confinement_seconds))

        record.last_seen_at = now
        record.name = snapshot.name

        kind: Optional[JailEventKind] = None
        if current > 0 and previous == 0:
            kind = JailEventKind.CONFINED
        elif previous > 0 and current == 0:
            kind = JailEventKind.RELEASED
        elif previous > 0 and current > previous + self.slack_seconds:
            kind = JailEventKind.RECONFINED

        record.confinement_seconds = current

        if kind is None:
            return None

        logger.tree(f"Jail Transition: {kind.value}", [
            ("Player", f"{snapshot.name} [{snapshot.id}]"),
            ("Previous", f"{previous}s"),
            ("Current", f"{current}s"),
        ], emoji="🚨" if kind is not JailEventKind.RELEASED else "✅")

        return JailEvent(
            id=snapshot.id,
            name=snapshot.name,
            kind=kind,
            confinement_seconds=current,
            previous_seconds=previous,
        )

    # -------------------------------------------------------------------------
    # Retention
    # -------------------------------------------------------------------------

    def retire_stale(
        self,
        present_ids: Iterable[str],
        now: int,
        retention_seconds: int = RETENTION_SECONDS,
    ) -> list[str]:
        """
        Delete records missing from the latest poll and unseen for longer than retention.

        Records that are absent but still inside the retention window are
        left untouched.

        Returns:
            IDs of the deleted records
        """
        present = set(present_ids)
        stale = [
            player_id
            for player_id, record in self.records.items()
            if player_id not in present and now - record.last_seen_at > retention_seconds
        ]
        for player_id in stale:
            del self.records[player_id]

        if stale:
            logger.info("Retired Stale Jail Records", [
                ("Removed", str(len(stale))),
                ("Remaining", str(len(self.records))),
            ])
        return stale

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def jailed(self) -> Iterator[JailRecord]:
        """Records currently in jail, in insertion order."""
        return (r for r in self.records.values() if r.confinement_seconds > 0)

    def to_dict(self) -> dict[str, dict]:
        return {player_id: record.to_dict() for player_id, record in self.records.items()}


# =============================================================================
# Module Export
# =============================================================================

__all__ = ["JailStateTracker"]
